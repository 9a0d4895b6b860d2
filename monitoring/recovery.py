"""
Orphaned session recovery.

The session-start hook records the host's display layout in a marker file
and the session-end hook removes it after undoing its changes. A marker
that outlives its session means the end hook never ran (daemon crash,
forced kill), so the display changes are undone here instead.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from monitoring.config import MonitoringConfig
from monitoring.display_tools import DisplayController, DisplayToolController
from monitoring.hook_config import HookConfig, load_hook_config, read_json_text
from monitoring.metrics import ControlMetrics
from shared.errors import RecoveryIncomplete

logger = logging.getLogger(__name__)

# Display modes under which the start hook changes the primary display
PRIMARY_CHANGING_MODES = ("enable-primary", "focus")


class _MarkerModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class DisplayInfo(_MarkerModel):
    width: int = 0
    height: int = 0
    frequency: int = 0
    primary: bool = False


class OrphanMarker(_MarkerModel):
    """Pre-session display state recorded by the session-start hook."""

    timestamp: Optional[str] = None
    vdd_was_enabled: bool = False
    initial_primary: Optional[str] = None
    initial_displays: Dict[str, DisplayInfo] = {}
    disabled_displays: List[str] = []
    display_mode: str = ""

    @field_validator("vdd_was_enabled", mode="before")
    @classmethod
    def _coerce_list_bool(cls, value: Any) -> Any:
        # PowerShell serializes $false as an empty array
        if isinstance(value, list):
            return len(value) > 0
        return bool(value) if value is not None else False

    @field_validator("initial_displays", "disabled_displays", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any, info) -> Any:
        if value is None:
            return {} if info.field_name == "initial_displays" else []
        if info.field_name == "disabled_displays" and isinstance(value, str):
            return [value]
        return value

    @classmethod
    def load(cls, path: Union[str, Path]) -> "OrphanMarker":
        return cls.model_validate_json(read_json_text(path))


@dataclass
class StepResult:
    """Outcome of one best-effort recovery step."""

    step: str
    target: Optional[str]
    success: bool
    error: Optional[str] = None

    def describe(self) -> str:
        label = f"{self.step} {self.target}" if self.target else self.step
        return label if self.success else f"{label} (failed: {self.error})"


@dataclass
class RecoveryReport:
    """What a recovery run found and did."""

    needed: bool
    recovered: bool = False
    complete: bool = True
    error: Optional[str] = None
    steps: List[StepResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def outcome(self) -> str:
        if not self.needed:
            return "not_needed"
        if not self.success:
            return "failed"
        return "complete" if self.complete else "incomplete"

    def details(self) -> str:
        if not self.needed:
            return "No orphaned session state"
        if self.error:
            return f"Recovery failed: {self.error}"
        if not self.complete:
            return "Marker removed but hook config missing, partial recovery"
        if not self.steps:
            return "No recovery actions needed"
        return "Recovered: " + ", ".join(step.describe() for step in self.steps)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "needed": self.needed,
            "recovered": self.recovered,
            "complete": self.complete,
            "error": self.error,
            "details": self.details(),
            "steps": [step.__dict__ for step in self.steps],
        }


class OrphanRecovery:
    """Restores the host displays from an orphaned session marker."""

    def __init__(
        self,
        config: Optional[MonitoringConfig] = None,
        controller_factory: Callable[[HookConfig], DisplayController] = DisplayToolController,
        metrics: Optional[ControlMetrics] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if config is None:
            from monitoring.config import get_config
            config = get_config()

        self.config = config
        self.marker_path = Path(config.marker_path)
        self.hook_config_path = Path(config.hook_config_path)
        self._controller_factory = controller_factory
        self.metrics = metrics
        self._sleep = sleep

    def marker_exists(self) -> bool:
        return self.marker_path.exists()

    def recover(self) -> RecoveryReport:
        """Undo an orphaned session's display changes.

        Always removes the marker once it has been seen, so a marker that
        cannot be processed does not trigger recovery forever.

        Returns:
            RecoveryReport describing the run
        """
        if not self.marker_exists():
            logger.debug("No orphaned session marker")
            report = RecoveryReport(needed=False)
            self._record(report)
            return report

        logger.warning(
            f"Orphaned session marker found: {self.marker_path}",
            extra={"event": "recovery_started"},
        )
        report = RecoveryReport(needed=True)

        try:
            marker = OrphanMarker.load(self.marker_path)
            logger.info(
                f"Marker from {marker.timestamp}: mode={marker.display_mode}, "
                f"displays={len(marker.initial_displays)}, "
                f"disabled={marker.disabled_displays}, vdd_was_enabled={marker.vdd_was_enabled}"
            )

            hook_config = load_hook_config(self.hook_config_path)
            if hook_config is None:
                incomplete = RecoveryIncomplete(
                    f"Hook config not found at {self.hook_config_path}, displays not restored"
                )
                logger.warning(incomplete.message)
                report.complete = False
            else:
                controller = self._controller_factory(hook_config)
                report.steps = self._restore(marker, hook_config, controller)
            report.recovered = True

        except (OSError, ValueError) as e:
            logger.error(f"Recovery failed: {e}")
            report.error = str(e)

        finally:
            self._remove_marker()

        logger.info(report.details(), extra={"event": "recovery_finished"})
        self._record(report)
        return report

    def _restore(
        self,
        marker: OrphanMarker,
        hook_config: HookConfig,
        controller: DisplayController,
    ) -> List[StepResult]:
        steps: List[StepResult] = []

        for name in marker.disabled_displays:
            steps.append(self._step("re-enable", name, lambda n=name: controller.enable_display(n)))
        if marker.disabled_displays:
            self._sleep(self.config.display_settle_delay)

        restored_any = False
        for name, info in marker.initial_displays.items():
            if not (info.width and info.height and info.frequency):
                continue
            restored_any = True
            steps.append(
                self._step(
                    "restore mode",
                    name,
                    lambda n=name, i=info: controller.set_mode(n, i.width, i.height, i.frequency),
                )
            )
        if restored_any:
            self._sleep(self.config.mode_settle_delay)

        if marker.display_mode in PRIMARY_CHANGING_MODES and marker.initial_primary:
            primary = marker.initial_primary
            steps.append(self._step("restore primary", primary, lambda: controller.set_primary(primary)))
        else:
            logger.debug(f"Primary display untouched by mode '{marker.display_mode}'")

        if not marker.vdd_was_enabled and hook_config.vdd_instance_id:
            steps.append(self._step("disable virtual display", None, lambda: self._disable_vdd(controller)))

        return steps

    def _disable_vdd(self, controller: DisplayController) -> None:
        if controller.virtual_display_running():
            controller.disable_virtual_display()
            logger.info("Virtual display disabled")
        else:
            logger.info("Virtual display already disabled")

    def _step(self, step: str, target: Optional[str], action: Callable[[], None]) -> StepResult:
        try:
            action()
        except Exception as e:
            logger.warning(f"Recovery step '{step}' failed for {target or 'host'}: {e}")
            return StepResult(step=step, target=target, success=False, error=str(e))
        return StepResult(step=step, target=target, success=True)

    def _remove_marker(self) -> None:
        try:
            self.marker_path.unlink()
            logger.info("Orphaned session marker removed")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove session marker: {e}")

    def _record(self, report: RecoveryReport) -> None:
        if self.metrics:
            self.metrics.record_recovery(report.outcome)
