"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from soonish.core.context import get_conversation_id, get_request_id


class RequestIdFilter(logging.Filter):
    """Add request_id and conversation_id attributes to log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - minimal logic
        record.request_id = get_request_id() or "-"
        record.conversation_id = get_conversation_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO", debug: bool = False) -> None:
    """Configure application logging once at startup.

    With ``debug`` on, SQLAlchemy statements are logged as well.
    """
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": (
                        "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | "
                        "conv=%(conversation_id)s | %(message)s"
                    ),
                }
            },
            "filters": {
                "request_id": {
                    "()": "soonish.core.logging.RequestIdFilter",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": log_level,
                    "filters": ["request_id"],
                }
            },
            "loggers": {
                "soonish": {"level": log_level},
                "sqlalchemy.engine": {"level": "INFO" if debug else "WARNING"},
            },
            "root": {
                "handlers": ["console"],
                "level": log_level,
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
    setattr(configure_logging, "_configured", True)
