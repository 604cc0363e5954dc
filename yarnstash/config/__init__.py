"""
Configuration management for YarnStash.
"""

from .settings import (
    AppConfig,
    ApiConfig,
    BackupConfig,
    DatabaseConfig,
    DriveConfig,
    LogLevel,
    StorageBackend,
)
from .environment import EnvironmentLoader
from .validation import ConfigValidator
from .manager import ConfigManager

__all__ = [
    "AppConfig",
    "ApiConfig",
    "BackupConfig",
    "DatabaseConfig",
    "DriveConfig",
    "LogLevel",
    "StorageBackend",
    "EnvironmentLoader",
    "ConfigValidator",
    "ConfigManager",
]
