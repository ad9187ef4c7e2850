"""Main application settings and configuration management.

This module composes the settings from the different modules (app, registry)
into a single, accessible `Settings` class.

It loads settings from environment variables and .env files, validates them,
and provides a single `settings` object for use throughout the service.

Environment Support:
- Development: Uses .env, debug mode enabled
- Test: Uses .env.test
- Staging: Uses .env.staging
- Production: Uses .env.production
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .registry import RegistrySettings

logger = logging.getLogger(__name__)


class Settings(AppSettings, RegistrySettings):
    """The main settings class that aggregates all service configurations.

    Environment Support:
        - Automatically loads the correct .env file based on APP_ENV
        - Development: debug mode enabled, exposing the metrics endpoint

    Security Note:
        - AUTHORIZATION_LEVEL grants the same tier to every caller of the
          process; keep it at READ_ONLY unless writes are required.
    Usage:
        - Access settings via the singleton instance `settings` throughout the service.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    def __init__(self, **kwargs):
        """Initialize settings with environment-specific configuration."""
        super().__init__(**kwargs)
        self._set_environment_defaults(self.APP_ENV)

    def _set_environment_defaults(self, env: str) -> None:
        """Set environment-specific default values.

        Args:
            env: Environment name
        """
        if env == "development":
            self.DEBUG = True
            logger.info("Debug mode enabled for development environment")
        elif env == "production":
            if self.REGISTRY_BACKEND == "memory":
                logger.warning("Production is configured with the in-memory registry backend")
            if not self.ALLOWED_PATHS_FILE:
                logger.warning("No ALLOWED_PATHS_FILE set; the built-in policy applies")

        logger.info(
            f"Service running in {env} environment "
            f"(authorization level {self.AUTHORIZATION_LEVEL}, backend {self.REGISTRY_BACKEND})"
        )


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")

    env_files = {
        "development": ".env",
        "test": ".env.test",
        "staging": ".env.staging",
        "production": ".env.production"
    }

    env_file = env_files.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info(f"Loading environment configuration from {env_file}")
        settings_instance = Settings(_env_file=env_file)
    elif Path(".env").exists():
        logger.info(f"Loading environment configuration from .env (environment: {env})")
        settings_instance = Settings()
    else:
        logger.info(f"No .env file found, using environment variables only (environment: {env})")
        settings_instance = Settings()

    return settings_instance


# Create a singleton instance of the settings to be used across the service.
settings = create_settings()
