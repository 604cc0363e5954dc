"""
Environment variable handling for YarnStash configuration.
"""

import os
from typing import List

from dotenv import load_dotenv

from .settings import (
    AppConfig, ApiConfig, BackupConfig, DatabaseConfig, DriveConfig,
    LogLevel, StorageBackend
)


class EnvironmentLoader:
    """Loads configuration from environment variables."""

    @staticmethod
    def load_config(dotenv: bool = True) -> AppConfig:
        """Load configuration from environment variables."""
        if dotenv:
            load_dotenv(override=False)

        database_config = DatabaseConfig(
            path=os.getenv('DATABASE_PATH', 'data/yarnstash.db'),
            pool_size=int(os.getenv('DB_POOL_SIZE', '5')),
        )

        backend_str = os.getenv('STORAGE_BACKEND', 'google_drive').lower()
        backend = StorageBackend.GOOGLE_DRIVE
        try:
            backend = StorageBackend(backend_str)
        except ValueError:
            pass  # Use default

        drive_config = DriveConfig(
            client_id=os.getenv('GOOGLE_CLIENT_ID', ''),
            client_secret=os.getenv('GOOGLE_CLIENT_SECRET', ''),
            redirect_uri=os.getenv(
                'GOOGLE_REDIRECT_URI',
                'http://localhost:5000/api/v1/drive/callback'
            ),
            app_folder=os.getenv('DRIVE_APP_FOLDER', 'Yarn Management'),
            call_timeout_seconds=float(os.getenv('DRIVE_CALL_TIMEOUT_SECONDS', '60')),
            token_encryption_key=os.getenv('DRIVE_TOKEN_ENCRYPTION_KEY'),
            backend=backend,
        )

        backup_config = BackupConfig(
            keep_count=int(os.getenv('BACKUP_KEEP_COUNT', '10')),
            schedule_enabled=os.getenv('BACKUP_SCHEDULE_ENABLED', 'false').lower() == 'true',
            schedule_hour=int(os.getenv('BACKUP_SCHEDULE_HOUR', '3')),
            pattern_files_dir=os.getenv('PATTERN_FILES_DIR', 'data/patterns'),
        )

        api_config = ApiConfig(
            host=os.getenv('API_HOST', '0.0.0.0'),
            port=int(os.getenv('API_PORT', '5000')),
            cors_origins=EnvironmentLoader._parse_list(os.getenv('API_CORS_ORIGINS', '')),
            jwt_secret=os.getenv('JWT_SECRET', 'change-in-production'),
            jwt_expiration_hours=int(os.getenv('JWT_EXPIRATION_HOURS', '24')),
            frontend_url=os.getenv('FRONTEND_URL', 'http://localhost:3000'),
        )

        log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
        log_level = LogLevel.INFO
        try:
            log_level = LogLevel(log_level_str)
        except ValueError:
            pass  # Use default

        return AppConfig(
            database=database_config,
            drive=drive_config,
            backup=backup_config,
            api=api_config,
            log_level=log_level,
            log_file=os.getenv('LOG_FILE') or None,
        )

    @staticmethod
    def _parse_list(value: str, delimiter: str = ',') -> List[str]:
        """Parse a comma-separated string into a list."""
        if not value:
            return []
        return [item.strip() for item in value.split(delimiter) if item.strip()]
