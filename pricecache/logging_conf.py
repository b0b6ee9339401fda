# pricecache/logging_conf.py
from __future__ import annotations

import json
import logging
import os
from logging.config import dictConfig
from typing import Any

# extras attached via logger.info(..., extra={...}) that we surface as top-level fields
_EXTRA_KEYS = (
    "module",
    "funcName",
    "coin_id",
    # request log fields from observability.timing_middleware
    "route",
    "status_code",
    "duration_s",
    "client",
)


class JsonFormatter(logging.Formatter):
    """One JSON object per line on stdout."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = getattr(record, key, None)
            if val is not None and val != "":
                payload[key] = val
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _logger(level: str) -> dict[str, Any]:
    return {"level": level, "handlers": ["console"], "propagate": False}


def setup_logging(level: str | None = None) -> None:
    """
    Route root, uvicorn and pricecache loggers through a single stdout handler.
    LOG_FORMAT=plain switches to human-readable lines for local runs.
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    fmt = "plain" if os.getenv("LOG_FORMAT", "json").lower() == "plain" else "json"

    dict_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JsonFormatter},
            "plain": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": fmt,
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"level": log_level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": _logger(log_level),
            "uvicorn.error": _logger(log_level),
            # the timing middleware writes its own request line
            "uvicorn.access": _logger("WARNING"),
            "httpx": _logger("WARNING"),
            "pricecache": _logger(log_level),
            "request": _logger(log_level),
        },
    }

    dictConfig(dict_config)
