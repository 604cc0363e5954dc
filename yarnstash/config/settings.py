"""
Configuration dataclasses for YarnStash.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StorageBackend(Enum):
    GOOGLE_DRIVE = "google_drive"
    MEMORY = "memory"


@dataclass
class DatabaseConfig:
    """SQLite database settings."""
    path: str = "data/yarnstash.db"
    pool_size: int = 5


@dataclass
class DriveConfig:
    """Google Drive and OAuth settings."""
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:5000/api/v1/drive/callback"
    app_folder: str = "Yarn Management"
    call_timeout_seconds: float = 60.0
    token_encryption_key: Optional[str] = None
    backend: StorageBackend = StorageBackend.GOOGLE_DRIVE

    @property
    def oauth_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass
class BackupConfig:
    """Backup, retention and scheduling settings."""
    keep_count: int = 10
    schedule_enabled: bool = False
    schedule_hour: int = 3
    pattern_files_dir: str = "data/patterns"


@dataclass
class ApiConfig:
    """HTTP API settings."""
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = field(default_factory=list)
    jwt_secret: str = "change-in-production"
    jwt_expiration_hours: int = 24
    frontend_url: str = "http://localhost:3000"


@dataclass
class AppConfig:
    """Top level application configuration."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    drive: DriveConfig = field(default_factory=DriveConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    log_level: LogLevel = LogLevel.INFO
    log_file: Optional[str] = None
