"""
Settings
========

Engine and compiler settings using Pydantic Settings. Every value can be
overridden through ``PARGO_``-prefixed environment variables or a ``.env``
file.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pargo settings with environment variable support."""

    # Engine Configuration
    max_depth: int = Field(
        default=200, ge=1, description="Recursion budget for a single match call"
    )
    memoize: bool = Field(
        default=True, description="Cache rule results per (rule, position) within a match"
    )

    # Compiler Configuration
    error_preview_length: int = Field(
        default=20, ge=1, description="Characters of unparsed text shown in errors"
    )
    json_indent: int = Field(default=2, ge=0, description="Indentation of the JSON artifact")

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Logging level")
    log_format: str = Field(default="console", description="Log renderer: console or json")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log renderer."""
        allowed = {"console", "json"}
        if v.lower() not in allowed:
            raise ValueError(f"Log format must be one of: {allowed}")
        return v.lower()

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="PARGO_"
    )


# Global settings instance - will be initialized when needed
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
