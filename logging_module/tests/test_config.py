"""Unit tests for logging_module.config."""

import pytest

from logging_module.config import LoggingConfig, get_config


class TestLoggingConfig:
    """Tests for LoggingConfig class."""

    def test_default_values(self):
        """Test default configuration values."""
        config = LoggingConfig()

        assert config.log_level == "INFO"
        assert config.log_path == ""
        assert config.log_file_backup_count == 5
        assert config.json_console is False

    def test_from_env(self, monkeypatch):
        """Test configuration from environment variables."""
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_PATH", "/tmp/panel-logs")
        monkeypatch.setenv("LOG_FILE_MAX_BYTES", "2048")
        monkeypatch.setenv("LOG_FILE_BACKUP_COUNT", "3")
        monkeypatch.setenv("LOG_JSON", "true")

        config = LoggingConfig.from_env()

        assert config.log_level == "WARNING"
        assert config.log_path == "/tmp/panel-logs"
        assert config.log_file_max_bytes == 2048
        assert config.log_file_backup_count == 3
        assert config.json_console is True

    def test_validate_success(self):
        LoggingConfig().validate()

    def test_validate_invalid_log_level(self):
        with pytest.raises(ValueError, match="Invalid log_level"):
            LoggingConfig(log_level="INVALID").validate()

    def test_validate_small_file_size(self):
        with pytest.raises(ValueError, match="log_file_max_bytes"):
            LoggingConfig(log_file_max_bytes=100).validate()

    def test_validate_backup_count(self):
        with pytest.raises(ValueError, match="log_file_backup_count"):
            LoggingConfig(log_file_backup_count=0).validate()

    def test_get_config(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        assert get_config().log_level == "DEBUG"
