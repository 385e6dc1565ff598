"""PHP opcache reset deployment tasks.

Provides:
- a task writing a self-deleting reset script into a web directory
- a task requesting that script over HTTP, with bounded retries
- configuration loaded from `.env` and structured logging for the CLI
"""

__version__ = "0.1.0"

from php_opcache_reset.core.config import ConfigurationError, TriggerConfig
from php_opcache_reset.tasks.php.trigger import ResetTrigger

__all__ = ["__version__", "ConfigurationError", "ResetTrigger", "TriggerConfig"]
