"""Structured Logging — JSON formatter and setup for production observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (method, path, error_code, status_code, client_key) surfaced when present
    - setup_logging is idempotent: repeated calls replace the handlers it installed

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - Optional file sinks: error.log (errors only) and combined.log (everything)
"""

import json
import logging
import os
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "method", "path", "error_code", "status_code", "client_key", "signal",
)

# LOG_LEVEL uses "warn"; stdlib uses "WARNING"
_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

_installed: list[logging.Handler] = []


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    return logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_logging(level: str = "info", fmt: str = "json", log_dir: str | None = None):
    """Configure root logging for the application."""
    for handler in _installed:
        logging.root.removeHandler(handler)
        handler.close()
    _installed.clear()

    formatter = _build_formatter(fmt)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        error_file = logging.FileHandler(os.path.join(log_dir, "error.log"))
        error_file.setLevel(logging.ERROR)
        handlers.append(error_file)
        handlers.append(logging.FileHandler(os.path.join(log_dir, "combined.log")))

    for handler in handlers:
        handler.setFormatter(formatter)
        logging.root.addHandler(handler)
        _installed.append(handler)
    logging.root.setLevel(_LEVELS.get(level.lower(), logging.INFO))
