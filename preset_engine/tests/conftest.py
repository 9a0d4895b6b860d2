"""
Pytest configuration and fixtures for preset engine tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from daemon_config.store import ConfigStore
from preset_engine.exporter import SnapshotExporter
from preset_engine.models import (
    AssuranceMode,
    AudioConfig,
    AudioMode,
    DisplayConfig,
    InputsConfig,
    NetworkConfig,
    Preset,
    Resolution,
    ResolutionStrategy,
)
from preset_engine.profiles import EncoderProfile
from preset_engine.repository import PresetRepository

LIVE_CONFIG = """# Daemon config
sunshine_name = living-room
port = 47989
credentials_file = credentials.json
system_tray = disabled

fps = 30
min_threads = 4
hevc_mode = 2
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config_file(temp_dir: Path) -> Path:
    """Create a daemon config with protected and expert keys."""
    path = temp_dir / "sunshine.conf"
    path.write_text(LIVE_CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def store(config_file: Path) -> ConfigStore:
    """Create a config store over the live config."""
    return ConfigStore(config_file, max_backups=5)


@pytest.fixture
def exporter(temp_dir: Path) -> SnapshotExporter:
    """Create a snapshot exporter writing under the temp dir."""
    return SnapshotExporter(temp_dir / "export")


@pytest.fixture
def repository(temp_dir: Path, exporter: SnapshotExporter) -> PresetRepository:
    """Create an empty preset repository."""
    return PresetRepository(temp_dir / "data" / "preset-store.json", exporter=exporter)


@pytest.fixture
def gaming_preset() -> Preset:
    """A high refresh preset targeting a specific display."""
    return Preset(
        id="gaming",
        name="Gaming",
        display=DisplayConfig(
            mode=AssuranceMode.ENABLE_PRIMARY,
            device_id="{X}",
            fps=120,
            bitrate=50,
            encoder_profile=EncoderProfile.LOW_LATENCY,
        ),
        audio=AudioConfig(mode=AudioMode.CLIENT_ONLY),
        network=NetworkConfig(upnp=True),
    )


@pytest.fixture
def desk_preset() -> Preset:
    """A manual resolution preset with host audio."""
    return Preset(
        id="desk",
        name="Desk",
        display=DisplayConfig(
            mode=AssuranceMode.FOCUS,
            resolution_strategy=ResolutionStrategy.MANUAL,
            resolution=Resolution(width=2560, height=1440),
            refresh_rate=144,
            fps=90,
            bitrate=80,
            encoder_profile=EncoderProfile.QUALITY,
        ),
        audio=AudioConfig(mode=AudioMode.BOTH, device_id="{speakers}"),
        inputs=InputsConfig(gamepad=False),
    )


@pytest.fixture
def standard_preset() -> Preset:
    """A preset whose display mode resolves to 'disabled'."""
    return Preset(
        id="standard",
        name="Standard",
        display=DisplayConfig(mode=AssuranceMode.STANDARD, fps=60, bitrate=35),
        network=NetworkConfig(upnp=True),
        inputs=InputsConfig(keyboard=True, mouse=True, gamepad=True),
    )
