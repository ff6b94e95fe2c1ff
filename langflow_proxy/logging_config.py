"""Logging setup for the proxy.

Configures the root logger through ``logging.config.dictConfig`` with a
key-value formatter on stdout. The level comes from ``LOG_LEVEL`` and is
forced to ``DEBUG`` when ``config.DEBUG`` is on.
"""

from __future__ import annotations

import logging
import logging.config
import os
from typing import Any

import langflow_proxy.config as config


def _build_config(log_level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "kv": {
                "format": "level=%(levelname)s logger=%(name)s message=%(message)s",
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "kv",
                "level": log_level,
            }
        },
        "root": {"handlers": ["default"], "level": log_level},
    }


def setup_logging() -> None:
    """Configure root logging. Call after ``config.load_env()``."""
    log_level = "DEBUG" if config.DEBUG else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.config.dictConfig(_build_config(log_level))
