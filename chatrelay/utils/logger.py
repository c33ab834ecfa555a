from __future__ import annotations
import contextvars
import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

"""
Centralized logging for the chat relay backend.

- init_logging(): configure the root logger (console, plus rotating JSON file
  when a log directory is given)
- get_logger(name): named logger, initializing logging on first use
- request_id contextvar with set_request_id/clear_request_id, stamped on every
  record by RequestIDFilter
"""

LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)

# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "request_id", "request_id_part",
    "taskName", "asctime",
))


def set_request_id(rid: Optional[str]) -> None:
    """Set the request/correlation id for the current context."""
    request_id.set(rid)


def clear_request_id() -> None:
    request_id.set(None)


class RequestIDFilter(logging.Filter):
    """Attach the current request_id (if any) to every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id.get()
        return True


class ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        rid = getattr(record, "request_id", None)
        record.request_id_part = f" [request_id={rid}]" if rid else ""
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including any `extra` keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "line": record.lineno,
            "request_id": getattr(record, "request_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for k, v in record.__dict__.items():
            if k in _RESERVED_ATTRS:
                continue
            try:
                json.dumps({k: v})
                payload[k] = v
            except (TypeError, ValueError):
                payload[k] = str(v)
        return json.dumps(payload, ensure_ascii=False)


def init_logging(
    *,
    level: Optional[str] = None,
    log_dir: Optional[str] = None,
    filename: str = "app.log",
) -> None:
    """
    Initialize the root logger. Safe to call multiple times (handlers replaced).
    - level: level name, defaults to INFO
    - log_dir: when set, also write rotated JSON logs to log_dir/filename
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    chosen_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    root.setLevel(chosen_level)

    request_filter = RequestIDFilter()

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(chosen_level)
    ch.setFormatter(ConsoleFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s%(request_id_part)s", "%Y-%m-%d %H:%M:%S"))
    ch.addFilter(request_filter)
    root.addHandler(ch)

    if log_dir is None:
        return

    try:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(str(path / filename), maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8")
        fh.setLevel(chosen_level)
        fh.setFormatter(JsonFormatter())
        fh.addFilter(request_filter)
        root.addHandler(fh)
    except OSError:
        # Console logging still works without the file handler
        root.warning("Failed to initialize file handler for logging; continuing with console only", exc_info=True)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if not logging.getLogger().handlers:
        init_logging()
    return logging.getLogger(name)
