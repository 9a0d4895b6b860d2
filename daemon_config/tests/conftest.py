"""
Pytest configuration and fixtures for config store tests.
"""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest

from daemon_config.store import ConfigStore

SAMPLE_CONFIG = """# Streaming daemon config
sunshine_name = living-room
port = 47989

# Display
output_name = {old-device}
fps = 60
min_threads = 2
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config_file(temp_dir: Path) -> Path:
    """Create a sample daemon config file."""
    path = temp_dir / "sunshine.conf"
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def ticking_clock() -> Callable[[], datetime]:
    """Clock that advances one second per call."""
    state = {"now": datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)}

    def clock() -> datetime:
        state["now"] += timedelta(seconds=1)
        return state["now"]

    return clock


@pytest.fixture
def store(config_file: Path, ticking_clock) -> ConfigStore:
    """Create a config store over the sample file."""
    return ConfigStore(config_file, max_backups=5, clock=ticking_clock)
