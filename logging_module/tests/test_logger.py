"""Unit tests for logging_module.logger."""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler

import pytest

from logging_module.config import LoggingConfig
from logging_module.logger import JsonFormatter, setup_logging


def make_record(msg="Test message", level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_only_by_default(self, restore_root_logger):
        root = setup_logging(LoggingConfig())

        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, logging.Formatter)
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_file_handler_writes_json(self, test_config, temp_dir, restore_root_logger):
        root = setup_logging(test_config)
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]

        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 4096
        assert file_handlers[0].backupCount == 2

        logging.getLogger("daemon_config.store").info(
            "Backup created", extra={"event": "backup_created"}
        )
        file_handlers[0].flush()

        lines = (temp_dir / "logs" / test_config.log_file_name).read_text(encoding="utf-8").splitlines()
        data = json.loads(lines[-1])
        assert data["event"] == "backup_created"
        assert data["logger"] == "daemon_config.store"

    def test_json_console(self, restore_root_logger):
        root = setup_logging(LoggingConfig(json_console=True))

        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_replaces_existing_handlers(self, restore_root_logger):
        setup_logging(LoggingConfig())
        root = setup_logging(LoggingConfig(log_level="WARNING"))

        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_unwritable_log_path_falls_back(self, temp_dir, restore_root_logger):
        blocker = temp_dir / "not-a-dir"
        blocker.write_text("", encoding="utf-8")

        root = setup_logging(LoggingConfig(log_path=str(blocker / "logs")))

        assert len(root.handlers) == 1

    def test_invalid_config(self, restore_root_logger):
        with pytest.raises(ValueError):
            setup_logging(LoggingConfig(log_level="VERBOSE"))


class TestJsonFormatter:
    """Tests for JsonFormatter class."""

    def test_format_basic(self):
        """Test basic JSON formatting."""
        data = json.loads(JsonFormatter().format(make_record()))

        assert data["message"] == "Test message"
        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert "timestamp" in data
        assert "lineno" not in data

    def test_format_with_extra_fields(self):
        """Test JSON formatting with extra fields."""
        record = make_record("Error message", level=logging.ERROR)
        record.event = "test_event"
        record.custom_field = "custom_value"

        data = json.loads(JsonFormatter().format(record))

        assert data["event"] == "test_event"
        assert data["custom_field"] == "custom_value"

    def test_format_non_serializable_extra(self):
        record = make_record()
        record.path = object()

        data = json.loads(JsonFormatter().format(record))

        assert data["path"].startswith("<object")

    def test_format_with_exception(self):
        """Test JSON formatting with exception info."""
        try:
            raise ValueError("Test exception")
        except ValueError:
            record = make_record("Exception occurred", logging.ERROR, sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError" in data["exception"]
        assert "Test exception" in data["exception"]
