"""Configuration for nosql-persistence: settings and logging."""

from .settings import PersistenceSettings, get_settings
from .logging_config import (
    LogLevel,
    LogVerbosity,
    LogFormat,
    LoggingConfig,
    setup_logging,
    get_logger,
    get_log_level_from_verbosity,
)

__all__ = [
    "PersistenceSettings",
    "get_settings",
    "LogLevel",
    "LogVerbosity",
    "LogFormat",
    "LoggingConfig",
    "setup_logging",
    "get_logger",
    "get_log_level_from_verbosity",
]
