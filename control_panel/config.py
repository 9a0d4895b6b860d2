"""Configuration for the control panel.

Aggregates the per-module configurations so a single object describes a
running panel.
"""

import os
import socket
from dataclasses import dataclass, field
from typing import Optional, Tuple

from daemon_config.config import StoreConfig
from logging_module.config import LoggingConfig
from monitoring.config import MonitoringConfig
from preset_engine.config import PresetConfig
from process_manager.config import SupervisorConfig


@dataclass
class PanelConfig:
    """Top-level control panel configuration.

    Attributes:
        server_name: Name written to the daemon config when it has none
        api_username: Daemon web API user for the status probe
        api_password: Daemon web API password for the status probe
        restore_tray_on_shutdown: Give the daemon back its tray icon on exit
        device_id_retries: Attempts to read the virtual display id
        device_id_retry_delay: Seconds between those attempts
    """

    server_name: str = field(default_factory=socket.gethostname)
    api_username: Optional[str] = None
    api_password: Optional[str] = None
    restore_tray_on_shutdown: bool = True
    device_id_retries: int = 3
    device_id_retry_delay: float = 1.0

    store: StoreConfig = field(default_factory=StoreConfig)
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    presets: PresetConfig = field(default_factory=PresetConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        # The hook runner and the recovery must agree on one marker file
        self.supervisor.marker_path = self.monitoring.marker_path

    def credentials(self) -> Optional[Tuple[str, str]]:
        if not self.api_username:
            return None
        return self.api_username, self.api_password or ""

    @classmethod
    def from_env(cls) -> "PanelConfig":
        """Create configuration from environment variables.

        Environment variables:
            PANEL_SERVER_NAME: Default daemon server name (default: host name)
            DAEMON_API_USER / DAEMON_API_PASSWORD: Web API credentials
            PANEL_RESTORE_TRAY: Restore daemon tray icon on exit (default: true)

        Returns:
            PanelConfig instance
        """
        return cls(
            server_name=os.getenv("PANEL_SERVER_NAME") or socket.gethostname(),
            api_username=os.getenv("DAEMON_API_USER"),
            api_password=os.getenv("DAEMON_API_PASSWORD"),
            restore_tray_on_shutdown=os.getenv("PANEL_RESTORE_TRAY", "true").lower() == "true",
            device_id_retries=int(os.getenv("PANEL_DEVICE_ID_RETRIES", "3")),
            device_id_retry_delay=float(os.getenv("PANEL_DEVICE_ID_RETRY_DELAY", "1.0")),
            store=StoreConfig(),
            supervisor=SupervisorConfig(),
            monitoring=MonitoringConfig.from_env(),
            presets=PresetConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.server_name:
            raise ValueError("server_name cannot be empty")

        if self.device_id_retries < 1:
            raise ValueError(f"device_id_retries must be >= 1, got {self.device_id_retries}")

        self.monitoring.validate()
        self.presets.validate()
        self.logging.validate()


def get_config() -> PanelConfig:
    """Get validated panel configuration from the environment."""
    config = PanelConfig.from_env()
    config.validate()
    return config
