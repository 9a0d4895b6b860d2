"""
Pytest configuration and fixtures for monitoring tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from monitoring.config import MonitoringConfig
from monitoring.metrics import ControlMetrics


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> MonitoringConfig:
    """Create a monitoring configuration with fast timers."""
    return MonitoringConfig(
        status_poll_interval=0.01,
        session_poll_interval=0.01,
        recovery_delay=0.05,
        watchdog_delay=0.05,
        marker_path=str(temp_dir / "session-state.json"),
        hook_config_path=str(temp_dir / "hook-config.json"),
        display_settle_delay=0.0,
        mode_settle_delay=0.0,
    )


@pytest.fixture
def metrics() -> ControlMetrics:
    """Create metrics bound to an isolated registry."""
    return ControlMetrics(registry=CollectorRegistry())
