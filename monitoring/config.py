"""Configuration for monitoring module."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from shared.paths import default_marker_path


def _default_hook_config_path() -> str:
    base = os.getenv("APPDATA") or str(Path.home() / ".config")
    return str(Path(base) / "stream-host-control" / "hook-config.json")


@dataclass
class MonitoringConfig:
    """Configuration for status polling, the watchdog and crash recovery."""

    # Status polling
    status_poll_interval: float = 3.0  # seconds
    session_poll_interval: float = 4.0  # seconds

    # Corrective timers
    recovery_delay: float = 7.0  # seconds after a session ends
    watchdog_delay: float = 4.0  # seconds after an unexpected stop
    enable_watchdog: bool = True

    # Daemon web API
    api_url: str = "https://localhost:47990"
    api_timeout: float = 10.0  # seconds
    logs_timeout: float = 5.0  # seconds
    log_tail_lines: int = 100

    # Session hook files
    marker_path: str = field(default_factory=default_marker_path)
    hook_config_path: str = field(default_factory=_default_hook_config_path)

    # Display restore pacing
    display_settle_delay: float = 1.0  # after re-enabling displays
    mode_settle_delay: float = 0.3  # between per-display mode changes

    # Metrics
    enable_metrics: bool = True

    @classmethod
    def from_env(cls) -> "MonitoringConfig":
        """Create configuration from environment variables.

        Returns:
            MonitoringConfig instance
        """
        return cls(
            status_poll_interval=float(os.getenv("STATUS_POLL_INTERVAL", "3.0")),
            session_poll_interval=float(os.getenv("SESSION_POLL_INTERVAL", "4.0")),
            recovery_delay=float(os.getenv("RECOVERY_DELAY", "7.0")),
            watchdog_delay=float(os.getenv("WATCHDOG_DELAY", "4.0")),
            enable_watchdog=os.getenv("ENABLE_WATCHDOG", "true").lower() == "true",
            api_url=os.getenv("DAEMON_API_URL", "https://localhost:47990"),
            api_timeout=float(os.getenv("DAEMON_API_TIMEOUT", "10.0")),
            logs_timeout=float(os.getenv("DAEMON_LOGS_TIMEOUT", "5.0")),
            log_tail_lines=int(os.getenv("DAEMON_LOG_TAIL_LINES", "100")),
            marker_path=os.getenv("SESSION_MARKER_PATH", default_marker_path()),
            hook_config_path=os.getenv("HOOK_CONFIG_PATH", _default_hook_config_path()),
            display_settle_delay=float(os.getenv("DISPLAY_SETTLE_DELAY", "1.0")),
            mode_settle_delay=float(os.getenv("MODE_SETTLE_DELAY", "0.3")),
            enable_metrics=os.getenv("ENABLE_METRICS", "true").lower() == "true",
        )

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.status_poll_interval <= 0:
            raise ValueError(f"Invalid status_poll_interval: {self.status_poll_interval}")

        if self.session_poll_interval <= 0:
            raise ValueError(f"Invalid session_poll_interval: {self.session_poll_interval}")

        if self.recovery_delay < 0 or self.watchdog_delay < 0:
            raise ValueError("Timer delays must be non-negative")

        if not self.api_url.startswith(("http://", "https://")):
            raise ValueError(f"Invalid api_url: {self.api_url}")

        if self.log_tail_lines < 1:
            raise ValueError(f"Invalid log_tail_lines: {self.log_tail_lines}")


def get_config() -> MonitoringConfig:
    """Get monitoring configuration from environment.

    Returns:
        MonitoringConfig instance
    """
    config = MonitoringConfig.from_env()
    config.validate()
    return config
