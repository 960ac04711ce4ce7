"""Logging configuration for the command-line tool.

Library code logs through ``logging.getLogger(__name__)`` (or an injected
logger) with structured fields passed as ``extra``. The CLI renders those
records either with Rich or as one JSON object per line.
"""

import json
import logging
from logging.config import dictConfig

# Structured fields the copy modules attach through ``extra``
STRUCTURED_FIELDS = (
    "context",
    "event",
    "state",
    "upload_id",
    "part_number",
    "part_numbers",
)


class JsonFormatter(logging.Formatter):
    """Formats a record and its structured fields as a JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in STRUCTURED_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure the ``multipart_copy`` logger.

    Args:
        level: Log level name.
        json_logs: Emit JSON lines instead of Rich-formatted output.
    """
    if json_logs:
        handler = {
            "class": "logging.StreamHandler",
            "formatter": "json",
        }
    else:
        handler = {
            "class": "rich.logging.RichHandler",
            "formatter": "plain",
            "show_path": False,
            "rich_tracebacks": True,
        }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                },
                "plain": {
                    "format": "%(message)s",
                    "datefmt": "[%X]",
                },
            },
            "handlers": {
                "console": handler,
            },
            "loggers": {
                "multipart_copy": {
                    "level": level.upper(),
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
        }
    )
