"""Logger setup - console and rotating JSON file logging.

Every module logs through ``logging.getLogger(__name__)``; this module wires
the handlers once at process start.
"""

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

from logging_module.config import LoggingConfig

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else arrived through `extra`
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Formats log records as JSON with timestamp, level, message, and extra fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted string
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "event"):
            log_data["event"] = record.event

        # Add all custom extra fields
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Configure the root logger with console and optional file handlers.

    Args:
        config: Logging configuration (read from environment if omitted)

    Returns:
        The configured root logger

    Raises:
        ValueError: If configuration is invalid
    """
    if config is None:
        config = LoggingConfig.from_env()
    config.validate()

    level = getattr(logging, config.log_level)
    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    # Console handler (stdout)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if config.json_console:
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    # Rotating file handler (JSON format)
    if config.log_path:
        try:
            os.makedirs(config.log_path, exist_ok=True)
            log_file = os.path.join(config.log_path, config.log_file_name)

            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=config.log_file_max_bytes,
                backupCount=config.log_file_backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(JsonFormatter())
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not create log file: {e}. Logging to console only.")

    return logger
