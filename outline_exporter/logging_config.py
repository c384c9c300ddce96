"""Centralized logging configuration with Pydantic Logfire integration."""

import logging
from typing import Any

import logfire
from fastapi import FastAPI

from outline_exporter.config import Settings

SENSITIVE_KEYS = frozenset(
    (
        "token",
        "access_token",
        "api_key",
        "outline_api_key",
        "secret",
        "password",
        "authorization",
        "auth",
    )
)


def setup_logfire(app: FastAPI, settings: Settings) -> None:
    """
    Initialize and configure Pydantic Logfire for observability.

    Sets up:
    - FastAPI instrumentation (request/response tracing)
    - Environment-aware configuration
    - Console formatting locally, bare messages in production
    - DEBUG level everywhere when debug mode is on
    """
    logfire_config: dict[str, Any] = {
        "environment": settings.env,
        "service_name": "outline-exporter",
        # Only ship to Logfire cloud when a token is configured
        "send_to_logfire": "if-token-present",
    }

    if settings.logfire_token:
        logfire_config["token"] = settings.logfire_token

    if settings.debug:
        logfire_config["console"] = logfire.ConsoleOptions(min_log_level="debug")

    logfire.configure(**logfire_config)
    logfire.instrument_fastapi(app)

    log_level = "DEBUG" if settings.debug else settings.log_level.upper()

    if settings.env == "local":
        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    else:
        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format="%(message)s",  # Logfire handles structured formatting
        )


def mask_pii(value: str | None, mask_char: str = "*") -> str:
    """
    Mask potentially sensitive data in logs.

    Args:
        value: Value to mask
        mask_char: Character to use for masking

    Returns:
        Masked string
    """
    if not value:
        return ""

    if len(value) <= 4:
        return mask_char * len(value)

    # Show first 2 and last 2 characters, mask the rest
    return f"{value[:2]}{mask_char * (len(value) - 4)}{value[-2:]}"


def redact_tokens(data: dict[str, Any]) -> dict[str, Any]:
    """
    Redact authentication tokens and API keys from log data.

    Keys are matched case-insensitively so HTTP headers
    ("Authorization") are covered as well as settings fields.

    Args:
        data: Dictionary that may contain sensitive tokens

    Returns:
        Dictionary with tokens redacted
    """
    redacted = dict(data)

    for key, value in redacted.items():
        if key.lower() not in SENSITIVE_KEYS:
            continue
        if isinstance(value, str):
            redacted[key] = mask_pii(value)
        elif isinstance(value, dict):
            redacted[key] = redact_tokens(value)

    return redacted
