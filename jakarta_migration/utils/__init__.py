"""
Utility modules for the migration toolkit.
"""

from jakarta_migration.utils.logging_config import get_logger, setup_logging, LogContext, log_progress

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "log_progress",
]
