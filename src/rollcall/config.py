"""Engine settings.

Read from environment variables (or a .env file beside the host application)
the first time get_config() is called. Tests call reset_config() after
changing the environment.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EngineConfig(BaseSettings):
    """Tunables for strategy selection, store reads and logging."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Used when an organization has no engine version stored
    default_engine_version: str = "v1_legacy"

    store_retry_attempts: int = Field(default=3, ge=1)
    store_retry_wait_seconds: float = Field(default=0.5, ge=0)

    log_json: bool = False  # JSON lines instead of console rendering
    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value):
        return value.upper() if isinstance(value, str) else value


_config: EngineConfig | None = None


def get_config() -> EngineConfig:
    """Return the process-wide EngineConfig, loading it on first use."""
    global _config
    if _config is None:
        _config = EngineConfig()
    return _config


def reset_config() -> None:
    """Forget the loaded settings so the next get_config() re-reads them."""
    global _config
    _config = None
