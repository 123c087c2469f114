"""SocialHub Logging Configuration.

Two output modes: ``structured`` writes one JSON object per record for log
shipping, ``dev`` writes a single readable line. Authentication code attaches
request context through ``extra=`` (see ``CONTEXT_FIELDS``); both modes carry
those fields so a rejected credential can be traced to its route and subject.
"""

import json
import logging
import sys
from typing import Any, Literal

# Extra attributes copied from a record into the output when present
CONTEXT_FIELDS = ("method", "path", "client_ip", "user_id", "jti", "error_code")

DEV_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s%(context)s"

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("uvicorn.access", "aiosqlite", "asyncio")


def log_context(**fields: Any) -> dict[str, Any]:
    """Build an ``extra=`` mapping, dropping empty values."""
    return {key: value for key, value in fields.items() if value is not None}


def _context_of(record: logging.LogRecord) -> dict[str, Any]:
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context fields flattened in."""

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_context_of(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevFormatter(logging.Formatter):
    """Readable line with context appended as ``key=value`` pairs."""

    def __init__(self):
        super().__init__(fmt=DEV_FORMAT, datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        context = _context_of(record)
        record.context = (
            " " + " ".join(f"{k}={v}" for k, v in context.items()) if context else ""
        )
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'structured' for JSON lines, 'dev' for readable output
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if format_type == "structured" else DevFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # SQL echo only when debugging
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if level.upper() == "DEBUG" else logging.WARNING
    )

    get_logger("logging").debug(f"Logging configured: level={level}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``socialhub`` namespace."""
    return logging.getLogger(f"socialhub.{name}")
