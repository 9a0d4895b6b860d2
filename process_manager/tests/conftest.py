"""
Pytest configuration and fixtures for process manager tests.
"""

import tempfile
from pathlib import Path
from typing import Generator, List, Optional
from unittest.mock import MagicMock, patch

import pytest

from process_manager.config import SupervisorConfig
from process_manager.process_manager import DaemonProcessManager


class FakeProcessTable:
    """Stands in for the OS process table seen through psutil."""

    def __init__(self):
        self.procs: List[MagicMock] = []
        self._next_pid = 4000

    def add(self, name: str = "sunshine", killable: bool = True, status: str = "running") -> MagicMock:
        self._next_pid += 1
        proc = MagicMock()
        proc.pid = self._next_pid
        proc.info = {"name": name, "status": status}
        if killable:
            proc.kill.side_effect = lambda: self.procs.remove(proc)
        self.procs.append(proc)
        return proc

    def process_iter(self, attrs: Optional[list] = None) -> List[MagicMock]:
        return list(self.procs)

    def names(self) -> List[str]:
        return [proc.info["name"] for proc in self.procs]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def process_table() -> Generator[FakeProcessTable, None, None]:
    """Patch psutil.process_iter with a fake process table."""
    table = FakeProcessTable()
    with patch("psutil.process_iter", side_effect=table.process_iter):
        yield table


@pytest.fixture
def test_config(temp_dir: Path) -> SupervisorConfig:
    """Create a fast supervisor configuration."""
    return SupervisorConfig(
        binary_path="/opt/sunshine/sunshine",
        process_name="sunshine",
        poll_interval=0.01,
        state_timeout=0.1,
        settle_delay=0.0,
        lock_wait_timeout=0.2,
        shutdown_hook_command="",
        marker_path=str(temp_dir / "session-state.json"),
    )


@pytest.fixture
def process_manager(test_config: SupervisorConfig) -> DaemonProcessManager:
    """Create a process manager for testing."""
    return DaemonProcessManager(config=test_config)
