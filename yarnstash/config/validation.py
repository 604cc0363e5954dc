"""
Configuration validation for YarnStash.
"""

from typing import List

from .settings import AppConfig, StorageBackend


class ConfigValidator:
    """Validates configuration settings."""

    @staticmethod
    def validate_config(config: AppConfig) -> List[str]:
        """Validate the entire application configuration."""
        errors = []
        errors.extend(ConfigValidator._validate_database(config))
        errors.extend(ConfigValidator._validate_drive(config))
        errors.extend(ConfigValidator._validate_backup(config))
        errors.extend(ConfigValidator._validate_api(config))
        return errors

    @staticmethod
    def _validate_database(config: AppConfig) -> List[str]:
        errors = []
        if not config.database.path:
            errors.append("DATABASE_PATH must not be empty")
        if config.database.pool_size < 1:
            errors.append("DB_POOL_SIZE must be at least 1")
        return errors

    @staticmethod
    def _validate_drive(config: AppConfig) -> List[str]:
        errors = []
        drive = config.drive

        if drive.call_timeout_seconds <= 0:
            errors.append("DRIVE_CALL_TIMEOUT_SECONDS must be positive")

        if not drive.app_folder.strip():
            errors.append("DRIVE_APP_FOLDER must not be empty")

        if drive.backend == StorageBackend.GOOGLE_DRIVE:
            if bool(drive.client_id) != bool(drive.client_secret):
                errors.append(
                    "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set together"
                )

        return errors

    @staticmethod
    def _validate_backup(config: AppConfig) -> List[str]:
        errors = []
        backup = config.backup

        if backup.keep_count < 0:
            errors.append("BACKUP_KEEP_COUNT must not be negative")

        if not 0 <= backup.schedule_hour <= 23:
            errors.append("BACKUP_SCHEDULE_HOUR must be between 0 and 23")

        return errors

    @staticmethod
    def _validate_api(config: AppConfig) -> List[str]:
        errors = []
        api = config.api

        if not 1 <= api.port <= 65535:
            errors.append(f"API_PORT must be between 1 and 65535, got {api.port}")

        if not api.jwt_secret:
            errors.append("JWT_SECRET must not be empty")

        if api.jwt_expiration_hours < 1:
            errors.append("JWT_EXPIRATION_HOURS must be at least 1")

        return errors
