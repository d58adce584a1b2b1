"""
Configuration management for the ConsenSource client.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GATEWAY_URL = "http://localhost:9009"
DEFAULT_KEY_DIR = Path.home() / ".sawtooth" / "keys"


class LogLevel(str, Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ClientConfig(BaseSettings):
    """
    Configuration settings for the ConsenSource client.

    All settings can be configured via environment variables with the
    CONSENSOURCE_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONSENSOURCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Gateway settings
    gateway_url: str = Field(
        default=DEFAULT_GATEWAY_URL,
        description="Base URL of the ConsenSource REST API"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single HTTP request to the gateway"
    )

    # Signing key settings
    key_name: Optional[str] = Field(
        default=None,
        description="Name of the signing key (defaults to the OS user name)"
    )
    key_dir: Path = Field(
        default=DEFAULT_KEY_DIR,
        description="Directory holding <name>.priv key files"
    )

    # Status polling
    poll_interval_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Pause between status polls while a batch is pending"
    )
    wait_server_side: bool = Field(
        default=True,
        description="Ask the gateway to hold each status request until a change"
    )
    max_poll_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Give up after this many status polls (unbounded if unset)"
    )
    poll_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Give up after this much time spent polling (unbounded if unset)"
    )

    # Logging settings
    log_level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


# Global config instance
_config: Optional[ClientConfig] = None


def get_config() -> ClientConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = ClientConfig()
    return _config


def set_config(config: ClientConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
