"""Public entry point for configuring application logging."""

from __future__ import annotations

import logging
import logging.config
import os
from typing import Any

from .formatter import SERVICE_NAME


def configure_logging() -> None:
    """Configure structured logging for the application."""

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    json_enabled = os.getenv("LOG_JSON", "true").lower() in {"1", "true", "yes", "on"}
    log_file = os.getenv("LOG_FILE")

    formatter_name = "json" if json_enabled else "plain"

    formatters: dict[str, dict[str, Any]] = {
        "json": {
            "()": "catalog_api.logging.formatter.ECSJsonFormatter",
            "service_name": SERVICE_NAME,
        },
        "plain": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    }

    filters = {
        "context": {"()": "catalog_api.logging.filters.RequestContextFilter"},
        "privacy": {"()": "catalog_api.logging.filters.PrivacyFilter"},
    }

    handlers: dict[str, dict[str, Any]] = {
        "stdout": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": formatter_name,
            "filters": ["context", "privacy"],
            "stream": "ext://sys.stdout",
        }
    }
    root_handlers = ["stdout"]

    if log_file:
        abs_path = os.path.abspath(log_file)
        os.makedirs(os.path.dirname(abs_path) or ".", exist_ok=True)
        handlers["file"] = {
            "class": "catalog_api.logging.handlers.SecureWatchedFileHandler",
            "level": log_level,
            "formatter": formatter_name,
            "filters": ["context", "privacy"],
            "filename": abs_path,
            "delay": True,
        }
        root_handlers.append("file")

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "filters": filters,
            "handlers": handlers,
            "root": {"level": log_level, "handlers": root_handlers},
            "loggers": {
                "uvicorn": {"level": "INFO", "handlers": [], "propagate": True},
                "uvicorn.error": {"level": "INFO", "handlers": [], "propagate": True},
                "uvicorn.access": {"level": "INFO", "handlers": [], "propagate": True},
                "catalog_api.audit": {"level": "INFO", "handlers": [], "propagate": True},
            },
        }
    )
    logging.captureWarnings(True)
