"""
Configuration manager: loads and validates settings once per process.
"""

import logging
from typing import Optional

from .environment import EnvironmentLoader
from .settings import AppConfig
from .validation import ConfigValidator
from ..exceptions import ConfigurationError, create_error_context

logger = logging.getLogger(__name__)


class ConfigManager:
    """Loads, validates and caches the application configuration."""

    def __init__(self, dotenv: bool = True):
        self.dotenv = dotenv
        self._config: Optional[AppConfig] = None

    async def load_config(self) -> AppConfig:
        """Load configuration from the environment and validate it.

        Raises:
            ConfigurationError: If any setting is invalid
        """
        config = EnvironmentLoader.load_config(dotenv=self.dotenv)
        errors = ConfigValidator.validate_config(config)

        if errors:
            for error in errors:
                logger.error(f"Configuration error: {error}")
            raise ConfigurationError(
                message=f"Invalid configuration: {'; '.join(errors)}",
                error_code="INVALID_CONFIGURATION",
                context=create_error_context(operation="load_config", errors=errors),
            )

        if not config.drive.oauth_configured:
            logger.warning(
                "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET not set. "
                "Google Drive backups will not be available."
            )

        self._config = config
        return config

    def get_current_config(self) -> Optional[AppConfig]:
        return self._config
