"""Logging setup for the Lambda handlers.

Modules log through ``logging.getLogger(__name__)``. The handlers call
``configure_logging`` once per cold start so every record under the
``opt_in_regions`` logger is emitted as a single JSON line, which keeps
CloudWatch Logs Insights queries simple.
"""

import json
import logging
import os
from typing import Any, Dict, Optional


PACKAGE_LOGGER = "opt_in_regions"


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON object."""

    # Standard LogRecord attributes, everything else came in through ``extra``
    _EXCLUDE_FIELDS = {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "taskName",
        "message",
        "aws_request_id",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self._EXCLUDE_FIELDS:
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the package logger.

    Calling it again only updates the level.

    Args:
        level: Log level name, defaults to ``LOG_LEVEL`` or INFO

    Returns:
        The package logger
    """
    level = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    if not any(getattr(h, "_opt_in_regions", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        handler._opt_in_regions = True
        logger.handlers = [handler]
        logger.propagate = False

    return logger
