"""Application configuration using Pydantic BaseSettings."""

import logging
import re
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from outline_exporter.constants import (
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_METRICS_PATH,
    DEFAULT_OUTLINE_API_URL,
    DEFAULT_PAGE_LIMIT,
    DEFAULT_SCRAPE_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> float:
    """
    Parse a Go-style duration string into seconds.

    Accepts compound values such as "1m30s" or "250ms", and bare numbers
    which are taken as seconds.

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    try:
        return float(text)
    except ValueError:
        pass

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Load .env first, then .env.local (for local/test overrides)
        env_file=[".env", ".env.local"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Outline Configuration
    outline_api_url: str = Field(
        default=DEFAULT_OUTLINE_API_URL,
        description="Base URL of the Outline instance",
    )
    outline_api_key: str = Field(
        ..., min_length=1, description="Outline API key (bearer token)"
    )

    # Server Configuration
    listen_address: str = Field(
        default=DEFAULT_LISTEN_ADDRESS,
        description="host:port the exporter listens on (empty host = all interfaces)",
    )
    metrics_path: str = Field(
        default=DEFAULT_METRICS_PATH, description="Path serving Prometheus metrics"
    )

    # Scrape Configuration
    scrape_timeout: float = Field(
        default=DEFAULT_SCRAPE_TIMEOUT_SECONDS,
        gt=0,
        description="Per-request timeout for Outline API calls (seconds, or Go duration like 10s)",
    )
    page_limit: int = Field(
        default=DEFAULT_PAGE_LIMIT,
        gt=0,
        description="Number of items requested per page",
    )
    debug: bool = Field(
        default=False, description="Dump requests/responses and pagination decisions"
    )

    # Environment
    env: Literal["local", "prod"] = Field(
        default="local", description="Current environment"
    )
    log_level: str = Field(default="INFO", description="Python logging level")

    # Logfire Configuration
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for cloud logging"
    )

    @field_validator("outline_api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("metrics_path")
    @classmethod
    def _ensure_leading_slash(cls, value: str) -> str:
        value = value.strip() or DEFAULT_METRICS_PATH
        return value if value.startswith("/") else f"/{value}"

    @field_validator("scrape_timeout", "page_limit", "debug", mode="wrap")
    @classmethod
    def _default_on_invalid(cls, value: Any, handler, info: ValidationInfo) -> Any:
        """Fall back to the field default instead of refusing to start."""
        try:
            if info.field_name == "scrape_timeout" and isinstance(value, str):
                value = parse_duration(value)
            return handler(value)
        except ValueError:  # includes pydantic's ValidationError
            default = cls.model_fields[info.field_name].default
            logger.warning(
                "Invalid value for %s: %r, using default: %r",
                info.field_name.upper(),
                value,
                default,
            )
            return default

    @property
    def listen_host(self) -> str:
        """Host part of listen_address ("0.0.0.0" when omitted)."""
        host, _, _ = self.listen_address.rpartition(":")
        return host.strip("[]") or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        """Port part of listen_address."""
        _, _, port = self.listen_address.rpartition(":")
        return int(port)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
