"""Central logging configuration for the application.

Applies a root stdout handler so every module logger emits records without
per-module setup. Keeps uvicorn loggers visible and avoids duplicate handlers
on reloads.
"""

import logging
from logging.config import dictConfig

from .config import get_settings


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging() -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers, return to prevent duplicate
    output (reloaders, pytest's capture handler).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(_dict_config(get_settings().log_level.upper()))
