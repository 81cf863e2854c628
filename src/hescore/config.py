"""
hescore Configuration Module

Provides runtime configuration with:
- Environment variable loading (HS_ prefix)
- Type validation via Pydantic
- Development overrides via .env file

The cryptographic parameter profile is deliberately NOT part of the
settings: it is a versioned constant in ``hescore.bfv.params`` so that
the encrypting and decrypting sides cannot drift apart through
configuration.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigValidationError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class HEScoreSettings(BaseSettings):
    """
    hescore settings.

    Loads from environment variables with HS_ prefix.

    Usage:
        from hescore.config import settings

        if settings.is_production():
            ...
    """

    model_config = SettingsConfigDict(
        env_prefix="HS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # GENERAL
    # ==========================================================================
    ENVIRONMENT: str = Field(default="development", description="Runtime environment: development, production")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # ==========================================================================
    # KEYS
    # ==========================================================================
    KEY_DIR: Optional[str] = Field(default=None, description="Default key directory when callers pass none")
    SECRET_KEY_FILE_MODE: int = Field(default=0o600, description="File mode applied to secret_key.k")

    @field_validator("LOG_LEVEL")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        if value.upper() not in _LOG_LEVELS:
            raise ConfigValidationError("LOG_LEVEL", f"must be one of {', '.join(_LOG_LEVELS)}")
        return value.upper()

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"


# Global settings instance
settings = HEScoreSettings()
