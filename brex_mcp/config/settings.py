#!/usr/bin/env python3
"""
Runtime settings for the Brex MCP server.

Values come from environment variables; the CLI in core/mcp_server.py
may override individual fields.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from brex_mcp.config.constants import API_REQUEST_TIMEOUT_SECONDS, DEFAULT_BREX_API_URL
from brex_mcp.utils.validation import (
    ValidationError,
    validate_choice,
    validate_non_negative_float,
    validate_url,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigurationError(RuntimeError):
    """Raised when the server cannot be configured from its environment"""

    pass


@dataclass(frozen=True)
class BrexSettings:
    """Connection and logging settings."""

    api_key: str
    api_url: str = DEFAULT_BREX_API_URL
    log_level: str = "INFO"
    request_timeout: float = API_REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BrexSettings":
        """
        Build settings from environment variables.

        Environment Variables:
            BREX_API_KEY          - API token (required)
            BREX_API_URL          - API base URL (optional)
            LOG_LEVEL             - Logging level (optional, default: INFO)
            BREX_REQUEST_TIMEOUT  - Request timeout in seconds (optional)

        Raises:
            ConfigurationError: If the API key is missing or a value is invalid
        """
        env = os.environ if environ is None else environ

        api_key = env.get("BREX_API_KEY", "").strip()
        if not api_key:
            raise ConfigurationError(
                "Missing required environment variable: BREX_API_KEY"
            )

        try:
            return cls(
                api_key=api_key,
                api_url=validate_url(
                    env.get("BREX_API_URL") or DEFAULT_BREX_API_URL,
                    "BREX_API_URL",
                ),
                log_level=validate_choice(
                    env.get("LOG_LEVEL", "INFO").upper(), "LOG_LEVEL", LOG_LEVELS
                ),
                request_timeout=validate_non_negative_float(
                    env.get("BREX_REQUEST_TIMEOUT", API_REQUEST_TIMEOUT_SECONDS),
                    "BREX_REQUEST_TIMEOUT",
                ),
            )
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

    def with_overrides(self, **overrides) -> "BrexSettings":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "log_level" in changes:
            changes["log_level"] = validate_choice(
                str(changes["log_level"]).upper(), "log_level", LOG_LEVELS
            )
        if "api_url" in changes:
            changes["api_url"] = validate_url(changes["api_url"], "api_url")
        if "request_timeout" in changes:
            changes["request_timeout"] = validate_non_negative_float(
                changes["request_timeout"], "request_timeout"
            )
        return replace(self, **changes)
