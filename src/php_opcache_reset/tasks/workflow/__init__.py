"""Explicit workflow domain concepts.

This package introduces first-class types for:
- Deployment tasks returning a `TaskResult`
- The state machine of a reset run (init, waiting, attempting, terminal states)

Both keep task control flow inspectable and deterministic.
"""

__all__: list[str] = []
