"""
Exam Cell Question Bank - Logging Configuration
JSON lines in production, readable text when DEBUG is on.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from config.settings import get_settings

SERVICE_NAME = "examcell-question-bank"

# Correlation attributes copied onto the JSON line when a caller sets them
CONTEXT_FIELDS = ("request_id", "session_id", "submission_id")

NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
            "service": SERVICE_NAME,
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value

        # logger.info(..., extra={"extra_data": {...}})
        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, dict):
            entry.update(extra_data)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging() -> None:
    """Install a single stdout handler on the root logger."""
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG
        formatter = logging.Formatter("%(asctime)s %(levelname)-8s [%(name)s] %(message)s")
    else:
        level = getattr(logging, settings.log_level.upper(), logging.INFO)
        formatter = JSONFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
