"""Display control through the external monitor and device tools."""

import logging
import subprocess
from pathlib import Path
from typing import List, Protocol

from monitoring.hook_config import HookConfig

logger = logging.getLogger(__name__)

DRIVER_RUNNING = "Driver is running"


class DisplayController(Protocol):
    """Operations recovery needs to put the host displays back."""

    def enable_display(self, name: str) -> None: ...

    def set_mode(self, name: str, width: int, height: int, frequency: int) -> None: ...

    def set_primary(self, name: str) -> None: ...

    def virtual_display_running(self) -> bool: ...

    def disable_virtual_display(self) -> None: ...


class DisplayToolController:
    """Drives MultiMonitorTool and devcon with subprocess.run.

    Every method raises on failure (missing tool, non-zero exit); callers
    treat each call as a best-effort step.
    """

    def __init__(self, hook_config: HookConfig, timeout: float = 15.0):
        self.hook_config = hook_config
        self.timeout = timeout

    def _tool(self, path: str, label: str) -> str:
        if not path or not Path(path).exists():
            raise FileNotFoundError(f"{label} not found: {path or '<unset>'}")
        return path

    @property
    def _mmt(self) -> str:
        return self._tool(self.hook_config.multi_monitor_tool_path, "MultiMonitorTool")

    @property
    def _devcon(self) -> str:
        return self._tool(self.hook_config.devcon_path, "devcon")

    @property
    def _vdd_instance(self) -> str:
        if not self.hook_config.vdd_instance_id:
            raise ValueError("Virtual display instance id not configured")
        return f"@{self.hook_config.vdd_instance_id}"

    def _run(self, args: List[str]) -> str:
        logger.debug(f"Running: {' '.join(args)}")
        completed = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=True,
        )
        return completed.stdout or ""

    def enable_display(self, name: str) -> None:
        self._run([self._mmt, "/enable", name])

    def set_mode(self, name: str, width: int, height: int, frequency: int) -> None:
        spec = f"Name={name} Width={width} Height={height} DisplayFrequency={frequency}"
        self._run([self._mmt, "/SetMonitors", spec])

    def set_primary(self, name: str) -> None:
        self._run([self._mmt, "/SetPrimary", name])

    def virtual_display_running(self) -> bool:
        output = self._run([self._devcon, "status", self._vdd_instance])
        return DRIVER_RUNNING in output

    def disable_virtual_display(self) -> None:
        self._run([self._devcon, "disable", self._vdd_instance])

