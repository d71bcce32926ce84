"""Settings for floe-factory.

FactorySettings can be loaded from environment variables with the
FLOE_FACTORY_ prefix, or constructed explicitly.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class FactorySettings(BaseSettings):
    """Configuration for a factory catalog.

    Example:
        >>> # From environment (FLOE_FACTORY_FAKER_SEED=42 ...)
        >>> settings = FactorySettings()
        >>>
        >>> # Explicit
        >>> settings = FactorySettings(faker_locale="de_DE", faker_seed=42)
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOE_FACTORY_",
        env_file=".env",
        extra="ignore",
    )

    faker_locale: str = Field(
        default="en_US",
        min_length=2,
        description="Locale passed to Faker",
    )
    faker_seed: int | None = Field(
        default=None,
        description="Seed for the Faker instance (None for non-deterministic data)",
    )
    strict_attribute_names: bool = Field(
        default=False,
        description="Raise on attribute names the relation schema does not know",
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum log level",
    )
    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON instead of console output",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            msg = f"log_level must be one of {', '.join(LOG_LEVELS)}, got: {v}"
            raise ValueError(msg)
        return level
