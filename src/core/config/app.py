"""
Application-specific settings.
"""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines service-wide settings like project name, debug mode and logging.

    Security Note:
        - DEBUG exposes the metrics endpoint; keep it off in production.
        - Bind API_HOST to a loopback address unless the service sits behind
          an authenticating proxy; callers are not authenticated here.
    """
    PROJECT_NAME: str = "regguard"
    VERSION: str = "0.1.0"
    APP_ENV: str = "development"
    DEBUG: bool = False

    API_HOST: str = "127.0.0.1"
    API_PORT: int = Field(ge=1, le=65535, default=8000)
    RELOAD: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """
        Upper-cases the log level name so `info` and `INFO` behave alike.

        Args:
            v: Input value.

        Returns:
            The upper-cased level name.
        """
        if isinstance(v, str):
            return v.strip().upper()
        return v
