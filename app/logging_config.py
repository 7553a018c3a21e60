"""
Logging configuration.

- Development: human-readable colored lines on stderr
- Production: one JSON object per line (LOG_FORMAT=json)
- Level: LOG_LEVEL env variable
"""
import json
import logging
import sys
from datetime import datetime, timezone

from app.config import settings

# Extra fields services attach via ``extra={...}``
_EXTRA_FIELDS = (
    "event_type",
    "request_id",
    "commitment_id",
    "volunteer_id",
    "actor_id",
    "operation",
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        return json.dumps(log_entry, ensure_ascii=False)


class ReadableFormatter(logging.Formatter):
    """Human-readable colored formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",      # cyan
        "INFO": "\033[32m",       # green
        "WARNING": "\033[33m",    # yellow
        "ERROR": "\033[31m",      # red
        "CRITICAL": "\033[35m",   # magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now().strftime("%H:%M:%S")
        base = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def configure_logging(level: str = None, fmt: str = None) -> logging.Logger:
    """
    Attach a single stderr handler to the ``app`` logger.

    Safe to call more than once; an existing handler is replaced.
    """
    level = (level or settings.LOG_LEVEL).upper()
    fmt = (fmt or settings.LOG_FORMAT).lower()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ReadableFormatter())

    app_logger = logging.getLogger("app")
    for existing in list(app_logger.handlers):
        app_logger.removeHandler(existing)
    app_logger.addHandler(handler)
    app_logger.setLevel(getattr(logging, level, logging.INFO))
    app_logger.propagate = False

    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return app_logger
