"""Configuration for preset storage and snapshot export."""

import os
from dataclasses import dataclass
from pathlib import Path


def _default_data_dir() -> str:
    base = os.getenv("APPDATA") or str(Path.home() / ".config")
    return str(Path(base) / "stream-host-control")


@dataclass
class PresetConfig:
    """Preset storage and snapshot export configuration.

    Attributes:
        data_dir: Directory holding the preset store
        export_dir: Directory the external session hooks read snapshots from
        bootstrap_default: Apply the default preset when nothing is active at startup
    """

    data_dir: str = ""
    export_dir: str = ""
    bootstrap_default: bool = True

    def __post_init__(self):
        if not self.data_dir:
            self.data_dir = _default_data_dir()
        if not self.export_dir:
            self.export_dir = self.data_dir

    @property
    def presets_file(self) -> Path:
        return Path(self.data_dir) / "preset-store.json"

    @classmethod
    def from_env(cls) -> "PresetConfig":
        """Create configuration from environment variables.

        Environment variables:
            PRESET_DATA_DIR: Preset store directory
            PRESET_EXPORT_DIR: Snapshot export directory (default: data dir)
            PRESET_BOOTSTRAP_DEFAULT: Apply default preset on first start (default: true)

        Returns:
            PresetConfig instance with values from environment
        """
        return cls(
            data_dir=os.getenv("PRESET_DATA_DIR", ""),
            export_dir=os.getenv("PRESET_EXPORT_DIR", ""),
            bootstrap_default=os.getenv("PRESET_BOOTSTRAP_DEFAULT", "true").lower() == "true",
        )

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        for name in ("data_dir", "export_dir"):
            path = Path(getattr(self, name))
            if path.exists() and not path.is_dir():
                raise ValueError(f"{name} is not a directory: {path}")


def get_config() -> PresetConfig:
    """Get validated preset configuration from the environment."""
    config = PresetConfig.from_env()
    config.validate()
    return config
