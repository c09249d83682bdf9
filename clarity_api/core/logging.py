"""
Structured logging setup.

With LOG_JSON=true every log record is emitted as a single-line JSON
object. With LOG_JSON=false logs are plain human-readable text.

What the service logs: startup parameters (scoring defaults, auth and
rate-limit mode) from the lifespan handler, one INFO line per scored
request or batch, DEBUG per-image scores passed as `extra={}` fields
(clarity_score, raw_clarity_score, is_blurred, elapsed_ms), and domain
errors at WARNING (ERROR for computation failures). Pipeline stages
themselves never log.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Attributes present on every LogRecord; anything else came in via `extra={}`.
_RESERVED_ATTRS = frozenset({
    "args", "asctime", "created", "exc_info", "exc_text",
    "filename", "funcName", "levelname", "levelno", "lineno",
    "message", "module", "msecs", "msg", "name", "pathname",
    "process", "processName", "relativeCreated", "stack_info",
    "taskName", "thread", "threadName",
})


class JsonFormatter(logging.Formatter):
    """Emit each log record as a JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            log_obj["exc"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_obj["stack"] = self.formatStack(record.stack_info)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_obj[key] = value
        return json.dumps(log_obj, default=str)


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    # Quieten noisy third-party loggers.
    for noisy in ("httpx", "uvicorn.access", "multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
