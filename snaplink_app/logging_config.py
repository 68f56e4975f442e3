"""Logging configuration for SnapLink."""

import json
import logging
import sys
from datetime import datetime, timezone


LOGGER_NAME = "snaplink_app"
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, safe for quotes and newlines in messages"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", json_format: bool = False) -> logging.Logger:
    """Configure the package logger once; modules log via getLogger(__name__).

    Calling it again replaces the handler, so tests and reloads never
    duplicate output.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)

    return logger
