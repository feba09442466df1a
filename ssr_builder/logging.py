"""Structured logging helpers: JSON lines with build context."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

# Keys accepted through ``extra=`` and copied into the JSON payload.
_CONTEXT_FIELDS = ("stage", "entrypoint", "route", "path", "size")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def get_logger(name: str = "ssr_builder") -> logging.Logger:
    # Handler lives on the package logger; module loggers propagate to it.
    base = logging.getLogger("ssr_builder")
    if not base.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(JsonFormatter())
        base.addHandler(handler)
        base.setLevel(logging.INFO)
    return logging.getLogger(name)
