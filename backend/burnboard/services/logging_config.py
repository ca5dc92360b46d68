"""Structured logging configuration for Burnboard."""
import logging
import json
import sys
from datetime import datetime, timezone

# Attributes passed through ``extra=`` that are copied into JSON log lines
_EXTRA_FIELDS = (
    "client_id",
    "snapshot_date",
    "request_id",
    "http_method",
    "http_path",
    "http_status",
    "duration_ms",
)


class JSONFormatter(logging.Formatter):
    """JSON structured log formatter for production."""
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", json_output: bool = True):
    """Configure application logging."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
        ))

    root.handlers = [handler]

    # Suppress noisy loggers
    for name in ["uvicorn.access", "httpcore", "httpx", "sqlalchemy.engine"]:
        logging.getLogger(name).setLevel(logging.WARNING)
