"""
Pytest configuration and fixtures for control panel tests.

The supervisor and status probe are mocked; everything else runs against
files in a temporary directory.
"""

import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import CollectorRegistry

from control_panel.config import PanelConfig
from control_panel.panel import ControlPanel
from daemon_config.config import StoreConfig
from logging_module.config import LoggingConfig
from monitoring.config import MonitoringConfig
from monitoring.metrics import ControlMetrics
from monitoring.status_probe import ProcessStatus
from preset_engine.config import PresetConfig
from process_manager.config import SupervisorConfig
from shared.results import OperationResult

DAEMON_CONFIG = """# Daemon config
port = 47989
credentials_file = credentials.json

fps = 30
min_threads = 4
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config_file(temp_dir: Path) -> Path:
    path = temp_dir / "sunshine.conf"
    path.write_text(DAEMON_CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def panel_config(temp_dir: Path, config_file: Path) -> PanelConfig:
    """Panel configuration rooted in the temp dir with fast timers."""
    return PanelConfig(
        server_name="test-host",
        device_id_retries=2,
        device_id_retry_delay=0.0,
        store=StoreConfig(path=str(config_file), max_backups=5),
        supervisor=SupervisorConfig(binary_path="/opt/sunshine/sunshine", settle_delay=0.0),
        monitoring=MonitoringConfig(
            status_poll_interval=0.01,
            session_poll_interval=0.01,
            recovery_delay=0.05,
            watchdog_delay=0.05,
            marker_path=str(temp_dir / "session-state.json"),
            hook_config_path=str(temp_dir / "hook-config.json"),
            display_settle_delay=0.0,
            mode_settle_delay=0.0,
        ),
        presets=PresetConfig(data_dir=str(temp_dir / "data"), export_dir=str(temp_dir / "export")),
        logging=LoggingConfig(),
    )


@pytest.fixture
def supervisor() -> MagicMock:
    supervisor = MagicMock()
    supervisor.start = AsyncMock(return_value=OperationResult.ok())
    supervisor.stop = AsyncMock(return_value=OperationResult.ok())
    supervisor.restart = AsyncMock(return_value=OperationResult.ok())
    supervisor.is_running = MagicMock(return_value=False)
    supervisor.get_status = MagicMock(return_value={"state": "running", "running": True})
    return supervisor


@pytest.fixture
def probe() -> MagicMock:
    probe = MagicMock()
    probe.probe = AsyncMock(return_value=ProcessStatus.ONLINE)
    return probe


@pytest.fixture
def display_controller() -> MagicMock:
    controller = MagicMock()
    controller.virtual_display_running.return_value = False
    return controller


@pytest.fixture
def metrics() -> ControlMetrics:
    return ControlMetrics(registry=CollectorRegistry())


@pytest.fixture
def panel(panel_config, supervisor, probe, metrics, display_controller) -> ControlPanel:
    """Create a control panel with mocked process control."""
    return ControlPanel(
        panel_config,
        supervisor=supervisor,
        probe=probe,
        metrics=metrics,
        device_ids=lambda: "VDD-1",
        controller_factory=lambda hook: display_controller,
    )
