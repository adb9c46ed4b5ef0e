"""Logging setup for the launcher process.

``configure_logging`` installs a single console handler on the root logger
using the text or JSON formatter chosen by ``LoggingConfig``.
``setup_logging`` only does so when nothing is configured yet, so embedding
hosts (web servers, test runners) keep their own handlers.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from launcher.config.schemas import LoggingConfig

_STANDARD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields kept under "fields"."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        extras = {
            k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS
        }
        if extras:
            payload["fields"] = extras
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def _resolve_formatter(kind: str) -> logging.Formatter:
    if kind.strip().lower() == "json":
        return JsonFormatter()
    return logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")


def _resolve_level(name: str) -> int:
    normalized = name.strip().upper()
    if normalized == "WARN":
        normalized = "WARNING"
    return getattr(logging, normalized, logging.INFO)


def configure_logging(config: LoggingConfig) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(_resolve_formatter(config.format))
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(_resolve_level(config.level))
    root.addHandler(handler)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure logging if no handlers are present."""
    if logging.getLogger().handlers:
        return
    configure_logging(config or LoggingConfig())


__all__ = ["JsonFormatter", "configure_logging", "setup_logging"]
