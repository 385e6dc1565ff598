"""PHP related deployment tasks."""

from php_opcache_reset.tasks.php.script import generate_script_identifier, write_reset_script
from php_opcache_reset.tasks.php.trigger import AttemptResult, ResetTrigger, TriggerOutcome

__all__ = [
    "AttemptResult",
    "ResetTrigger",
    "TriggerOutcome",
    "generate_script_identifier",
    "write_reset_script",
]
