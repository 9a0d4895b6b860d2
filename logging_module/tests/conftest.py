"""Pytest configuration and fixtures for logging_module tests."""

import logging
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from logging_module.config import LoggingConfig


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for log files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> LoggingConfig:
    """Create test configuration writing into a temp directory."""
    return LoggingConfig(
        log_level="DEBUG",
        log_path=str(temp_dir / "logs"),
        log_file_max_bytes=4096,
        log_file_backup_count=2,
    )


@pytest.fixture
def restore_root_logger() -> Generator[logging.Logger, None, None]:
    """Put the root logger's handlers and level back after a test reconfigures it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
