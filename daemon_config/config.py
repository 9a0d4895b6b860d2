"""
Config store settings.

Locates the daemon's config file and controls backup retention.
"""

import os
from pathlib import Path

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


def _default_config_path() -> str:
    if os.name == "nt":
        program_files = os.getenv("ProgramFiles", r"C:\Program Files")
        return str(Path(program_files) / "Sunshine" / "config" / "sunshine.conf")
    return str(Path.home() / ".config" / "sunshine" / "sunshine.conf")


class StoreConfig(BaseSettings):
    """Daemon config store settings from environment variables."""

    path: str = Field(
        default_factory=_default_config_path,
        description="Path to the daemon's key = value config file",
    )

    max_backups: int = Field(
        default=5,
        description="Number of timestamped backups retained",
        ge=1,
        le=50,
    )

    model_config = ConfigDict(
        env_prefix="DAEMON_CONFIG_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_config() -> StoreConfig:
    """
    Get config store settings from environment variables.

    Returns:
        StoreConfig: Configuration instance
    """
    return StoreConfig()
