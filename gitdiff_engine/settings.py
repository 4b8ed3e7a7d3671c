"""Centralized environment configuration for the diff/conflict engine.

All environment variables are read through this module using the GITDIFF_ENGINE_
prefix for consistency.

Usage:
    from gitdiff_engine.settings import settings

    max_bytes = settings.max_diff_bytes()
"""

from __future__ import annotations

import os

DEFAULT_MAX_DIFF_BYTES = 50_000_000
DEFAULT_MAX_DIFF_LINES = 100_000


def _get(name: str, default: str = "") -> str:
    """Get an environment variable value."""
    return os.environ.get(name, "").strip() or default


def _get_int(name: str, default: int = 0) -> int:
    """Get a positive integer environment variable."""
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


class Settings:
    """Centralized settings for the engine.

    Environment variables use the GITDIFF_ENGINE_ prefix.
    """

    # -------------------------------------------------------------------------
    # Parser Limits
    # -------------------------------------------------------------------------

    @staticmethod
    def max_diff_bytes() -> int:
        """Byte cap applied to diff text before it is split into lines.

        Env: GITDIFF_ENGINE_MAX_DIFF_BYTES (default: 50000000)
        """
        return _get_int("GITDIFF_ENGINE_MAX_DIFF_BYTES", default=DEFAULT_MAX_DIFF_BYTES)

    @staticmethod
    def max_diff_lines() -> int:
        """Number of diff lines processed before parsing stops.

        Env: GITDIFF_ENGINE_MAX_DIFF_LINES (default: 100000)
        """
        return _get_int("GITDIFF_ENGINE_MAX_DIFF_LINES", default=DEFAULT_MAX_DIFF_LINES)

    # -------------------------------------------------------------------------
    # Logging Settings
    # -------------------------------------------------------------------------

    @staticmethod
    def log_level() -> str:
        """Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

        Env: GITDIFF_ENGINE_LOG_LEVEL (default: INFO)
        """
        return _get("GITDIFF_ENGINE_LOG_LEVEL", default="INFO").upper()

    @staticmethod
    def log_format() -> str:
        """Log format: "console" for dev-friendly, "json" for structured.

        Env: GITDIFF_ENGINE_LOG_FORMAT (default: console)
        """
        return _get("GITDIFF_ENGINE_LOG_FORMAT", default="console").lower()


settings = Settings()
