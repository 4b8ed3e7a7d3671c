"""Structlog configuration used by the engine and its command line.

Log output goes to stderr so the command line can keep stdout for its
diff and conflict summaries.
"""

from __future__ import annotations

import logging
import logging.config
import sys
from typing import Optional

import structlog

from .settings import settings

# GitPython logs every command it runs at DEBUG
_GIT_LOGGER_FLOOR = logging.INFO


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _resolve_level(level_name: Optional[str]) -> int:
    name = (level_name or settings.log_level()).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        level: Level name overriding GITDIFF_ENGINE_LOG_LEVEL, e.g. from --log-level
    """
    log_level = _resolve_level(level)
    shared = _shared_processors()

    # Module loggers are bound at import time, so they must not cache the
    # configuration they first saw.
    structlog.configure(
        processors=shared + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=_renderer(settings.log_format()),
        foreign_pre_chain=shared,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"structlog": {"()": lambda: formatter}},
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "structlog",
                    "stream": sys.stderr,
                }
            },
            "root": {"handlers": ["stderr"], "level": log_level},
            "loggers": {
                "git": {
                    "handlers": ["stderr"],
                    "level": max(log_level, _GIT_LOGGER_FLOOR),
                    "propagate": False,
                },
            },
        }
    )
