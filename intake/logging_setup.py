"""Central logging configuration for the intake service.

Applies a root stdout handler so module loggers emit without per-module setup.
Records are JSON (python-json-logger) unless `LOG_FORMAT=text`; fields passed
through `extra=` become top-level JSON keys. Keeps uvicorn loggers visible and
avoids duplicate handlers on reloads.
"""
from __future__ import annotations

import logging
import os
from logging.config import dictConfig

_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_TEXT_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


def build_logging_config(level: str | None = None, fmt: str | None = None) -> dict:
    level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    fmt = (fmt or os.getenv("LOG_FORMAT") or "json").lower()
    formatter = "text" if fmt == "text" else "json"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "fmt": _JSON_FORMAT,
            },
            "text": {"format": _TEXT_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": formatter,
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": level, "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers, return to prevent duplicate output
    (important under reloaders/watchers and test runners).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(build_logging_config(level, fmt))


__all__ = ["build_logging_config", "configure_logging"]
