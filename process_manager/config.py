"""
Process supervisor configuration.

Where the daemon binary lives, how its process is recognized, and the
timing used when waiting for it to come up or go away.
"""

import os

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

from shared.paths import default_marker_path

if os.name == "nt":
    _DEFAULT_BINARY = r"C:\Program Files\Sunshine\sunshine.exe"
    _DEFAULT_PROCESS_NAME = "sunshine.exe"
else:
    _DEFAULT_BINARY = "/usr/bin/sunshine"
    _DEFAULT_PROCESS_NAME = "sunshine"


class SupervisorConfig(BaseSettings):
    """Daemon process supervisor configuration from environment variables."""

    # Daemon binary
    binary_path: str = Field(
        default=_DEFAULT_BINARY,
        description="Path to the streaming daemon executable",
    )

    process_name: str = Field(
        default=_DEFAULT_PROCESS_NAME,
        description="Process name used to detect the running daemon",
    )

    config_path: str = Field(
        default="",
        description="Config file passed to the daemon on start (empty for its default)",
    )

    # State polling
    poll_interval: float = Field(
        default=0.3,
        description="Interval between process presence checks (seconds)",
        ge=0.01,
        le=5.0,
    )

    state_timeout: float = Field(
        default=5.0,
        description="Deadline for the daemon to start or stop (seconds)",
        ge=0.1,
        le=60.0,
    )

    settle_delay: float = Field(
        default=2.0,
        description="Pause between stop and start on restart, lets ports be released (seconds)",
        ge=0.0,
        le=30.0,
    )

    lock_wait_timeout: float = Field(
        default=10.0,
        description="How long a lifecycle call waits for one already in flight (seconds)",
        ge=0.1,
        le=120.0,
    )

    # Graceful shutdown hook
    shutdown_hook_command: str = Field(
        default="",
        description="Command that undoes session display changes before a forced stop",
    )

    shutdown_hook_timeout: float = Field(
        default=10.0,
        description="Timeout for the graceful shutdown hook (seconds)",
        ge=1.0,
        le=120.0,
    )

    shutdown_hook_settle: float = Field(
        default=0.5,
        description="Pause after the shutdown hook before killing the daemon (seconds)",
        ge=0.0,
        le=10.0,
    )

    marker_path: str = Field(
        default_factory=default_marker_path,
        description="Session state marker written by the session-start hook",
    )

    model_config = ConfigDict(
        env_prefix="DAEMON_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_config() -> SupervisorConfig:
    """
    Get supervisor configuration from environment variables.

    Returns:
        SupervisorConfig: Configuration instance
    """
    return SupervisorConfig()
