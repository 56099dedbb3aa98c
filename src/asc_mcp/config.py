"""Configuration management."""

import logging
import os
import sys
from functools import cache

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from .consts import BASE_URL, DEFAULT_TIMEOUT_SECONDS


class Config(BaseSettings):
    """App Store Connect credentials and server settings."""

    model_config = ConfigDict(env_prefix="ASC_", case_sensitive=False, extra="ignore")

    issuer_id: str = Field(
        ..., min_length=1, description="App Store Connect API issuer ID"
    )
    key_id: str = Field(..., min_length=1, description="App Store Connect API key ID")
    private_key_path: str = Field(
        ..., min_length=1, description="Path to the .p8 private key file"
    )
    base_url: str = Field(
        default=BASE_URL, description="Base URL for the App Store Connect API"
    )
    log_level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
        description="Logging level",
    )
    timeout_seconds: int = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        le=300,
        description="HTTP request timeout in seconds",
    )

    @field_validator("private_key_path")
    @classmethod
    def _key_file_exists(cls, value: str) -> str:
        path = os.path.expanduser(value)
        if not os.path.isfile(path):
            raise ValueError(f"private key file not found: {value}")
        return path

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def __repr__(self) -> str:
        return f"Config(base_url='{self.base_url}', key_id='{self.key_id}', log_level='{self.log_level}')"


@cache
def get_config() -> Config:
    """Get a cached Config instance.

    Raises:
        pydantic.ValidationError: If required settings are missing or invalid.
    """
    return Config()


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure logging for the entire application.

    Logs go to stderr: stdout is reserved for protocol messages.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )
    return logging.getLogger("asc-mcp")
