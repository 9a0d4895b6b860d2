"""
Control panel context.

Owns one instance of every component and exposes the operations a UI (or
the CLI) drives. Nothing here is a module-level singleton; two panels in
one process are fully independent.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from prometheus_client import CollectorRegistry

from control_panel.config import PanelConfig
from daemon_config.store import ConfigStore
from monitoring.display_tools import DisplayController, DisplayToolController
from monitoring.hook_config import HookConfig, device_id_provider
from monitoring.metrics import ControlMetrics
from monitoring.recovery import OrphanRecovery, RecoveryReport
from monitoring.session_monitor import SessionMarkerMonitor
from monitoring.status_probe import StatusProbe
from monitoring.watchdog import StatusWatchdog
from preset_engine.applicator import PresetApplicator
from preset_engine.exporter import SnapshotExporter
from preset_engine.matcher import MatchResult, match_preset
from preset_engine.models import Preset
from preset_engine.reconciler import ActivePresetReconciler
from preset_engine.repository import DEFAULT_PRESET_ID, PresetRepository
from process_manager.process_manager import DaemonProcessManager
from shared.errors import PanelError, PartialApply
from shared.results import ApplyResult, OperationResult

logger = logging.getLogger(__name__)


class ControlPanel:
    """
    Explicit context wiring the config store, preset engine, supervisor
    and monitoring together.

    Example:
        >>> panel = ControlPanel(PanelConfig.from_env())
        >>> await panel.startup()
        >>> await panel.activate_preset("default")
        >>> await panel.shutdown()
    """

    def __init__(
        self,
        config: Optional[PanelConfig] = None,
        supervisor: Optional[DaemonProcessManager] = None,
        probe: Optional[StatusProbe] = None,
        metrics: Optional[ControlMetrics] = None,
        device_ids: Optional[Callable[[], Optional[str]]] = None,
        controller_factory: Callable[[HookConfig], DisplayController] = DisplayToolController,
    ):
        """
        Build every component from configuration.

        Args:
            config: Panel configuration (read from environment if omitted)
            supervisor: Process manager override
            probe: Status probe override
            metrics: Metrics sink (an isolated registry is created if omitted)
            device_ids: Virtual display device id provider override
            controller_factory: Builds the display controller used by recovery
        """
        if config is None:
            from control_panel.config import get_config

            config = get_config()

        self.config = config
        monitoring = config.monitoring

        if metrics is None and monitoring.enable_metrics:
            metrics = ControlMetrics(registry=CollectorRegistry())
        self.metrics = metrics

        self.device_id_provider = device_ids or device_id_provider(monitoring.hook_config_path)

        self.store = ConfigStore(config=config.store)
        self.applicator = PresetApplicator(self.store)
        self.exporter = SnapshotExporter(config.presets.export_dir)
        self.repository = PresetRepository(config.presets.presets_file, exporter=self.exporter)
        self.reconciler = ActivePresetReconciler(
            self.store,
            self.repository,
            self.exporter,
            device_id_provider=self.device_id_provider,
        )

        self.supervisor = supervisor or DaemonProcessManager(config=config.supervisor)
        self.probe = probe or StatusProbe(config=monitoring, credentials=config.credentials)
        self.recovery = OrphanRecovery(
            config=monitoring,
            controller_factory=controller_factory,
            metrics=self.metrics,
        )
        self.watchdog = StatusWatchdog(
            probe=self.probe,
            supervisor=self.supervisor,
            resync=self.resync,
            recover=self.run_recovery,
            config=monitoring,
            metrics=self.metrics,
        )
        self.session_monitor = SessionMarkerMonitor(
            monitoring.marker_path,
            poll_interval=monitoring.session_poll_interval,
            on_stream_started=self._on_stream_started,
            on_stream_ended=self._on_stream_ended,
        )
        self.session_active = False

        logger.info("Control panel initialized")

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    def _device_id(self) -> Optional[str]:
        try:
            return self.device_id_provider()
        except Exception as e:
            logger.warning(f"Device id lookup failed: {e}")
            return None

    def _record_apply(self, result: ApplyResult) -> ApplyResult:
        if self.metrics:
            self.metrics.record_apply(result.success, result.phase)
        return result

    async def _restart_for_config(self, rollback_on_failure: bool) -> Optional[ApplyResult]:
        """Restart after a config write; returns a failure result or None."""
        restart = await self.supervisor.restart()
        if self.metrics:
            self.metrics.record_restart(reason="config")
        if restart.success:
            return None

        error = PartialApply(f"Config written but daemon restart failed: {restart.error}")
        logger.error(error.message)
        if rollback_on_failure:
            rolled_back = self.rollback()
            if not rolled_back.success:
                logger.error(f"Rollback also failed: {rolled_back.error}")
        return ApplyResult.failed("restart", error)

    async def activate_preset(
        self,
        preset_id: str,
        restart: bool = True,
        rollback_on_failure: bool = False,
    ) -> ApplyResult:
        """
        Apply a stored preset and make it active.

        Args:
            preset_id: Preset to activate
            restart: Restart the daemon so it picks up the new config
            rollback_on_failure: Restore the latest backup if the restart fails

        Returns:
            ApplyResult; phase "restart" with code PartialApply when the
            config was written but the daemon did not come back
        """
        try:
            preset = self.repository.get(preset_id)
        except PanelError as e:
            return self._record_apply(ApplyResult.failed("lookup", e))

        preset = preset.with_device_id(self._device_id())
        result = self.applicator.apply(preset)
        if not result.success:
            return self._record_apply(result)

        if restart:
            failure = await self._restart_for_config(rollback_on_failure)
            if failure is not None:
                return self._record_apply(failure)

        try:
            self.repository.set_active(preset.id)
        except PanelError as e:
            logger.error(f"Preset applied but active id not saved: {e}")
        self.exporter.export_config(self.store.read())
        self.exporter.export_active_preset(preset.id)

        logger.info(
            f"Preset activated: {preset.name}",
            extra={"event": "preset_activated", "preset_id": preset.id},
        )
        return self._record_apply(ApplyResult.ok())

    def deactivate_preset(self) -> None:
        """Clear the active preset without touching the daemon config."""
        self.repository.set_active(None)
        self.exporter.export_active_preset(None)
        logger.info("Active preset cleared")

    def list_presets(self) -> List[Preset]:
        return self.repository.list()

    def get_preset(self, preset_id: str) -> Preset:
        return self.repository.get(preset_id)

    def create_preset(self, data: Mapping[str, Any]) -> Preset:
        return self.repository.create(data)

    async def update_preset(self, preset_id: str, changes: Mapping[str, Any]) -> Preset:
        """
        Update a preset; if it is the active one, re-apply it.

        Raises:
            PresetNotFound, PresetReadOnly, pydantic.ValidationError
        """
        preset = self.repository.update(preset_id, changes)
        if self.repository.active_id == preset_id:
            logger.info("Active preset modified, re-applying")
            result = await self.activate_preset(preset_id)
            if not result.success:
                logger.error(f"Re-applying updated preset failed at {result.phase}: {result.error}")
        return preset

    def delete_preset(self, preset_id: str) -> None:
        self.repository.delete(preset_id)

    def match(self) -> List[MatchResult]:
        """Compare the live config against every preset."""
        live = self.store.read()
        device_id = self._device_id()
        return [match_preset(live, p.with_device_id(device_id)) for p in self.repository.list()]

    async def resync(self) -> Optional[str]:
        """Re-derive the active preset from the live config."""
        return self.reconciler.resync()

    # ------------------------------------------------------------------
    # Raw config
    # ------------------------------------------------------------------

    def backup(self) -> OperationResult:
        try:
            path = self.store.backup()
        except (PanelError, OSError) as e:
            return OperationResult.failed(e)
        logger.info(f"Manual backup: {path.name}")
        return OperationResult.ok()

    def rollback(self) -> OperationResult:
        """Restore the newest config backup."""
        try:
            restored = self.store.restore_latest()
        except PanelError as e:
            logger.error(f"Rollback failed: {e}")
            return OperationResult.failed(e)
        logger.warning(f"Config rolled back to {restored.name}", extra={"event": "config_rollback"})
        return OperationResult.ok()

    async def import_config(
        self,
        values: Mapping[str, str],
        restart: bool = True,
        rollback_on_failure: bool = True,
    ) -> ApplyResult:
        """Write a raw config map verbatim, then optionally restart."""
        result = self.applicator.write_full_config(values)
        if not result.success:
            return result

        if restart:
            failure = await self._restart_for_config(rollback_on_failure)
            if failure is not None:
                return failure

        await self.resync()
        return result

    async def _wait_for_device_id(self) -> Optional[str]:
        attempts = self.config.device_id_retries
        for attempt in range(1, attempts + 1):
            device_id = self._device_id()
            if device_id:
                return device_id
            logger.info(f"Virtual display id unavailable, attempt {attempt}/{attempts}")
            if attempt < attempts:
                await asyncio.sleep(self.config.device_id_retry_delay)
        return None

    async def configure_virtual_display(self) -> ApplyResult:
        """
        Point the daemon at the virtual display and restart it.

        The config is rolled back if the daemon does not come back.
        """
        device_id = await self._wait_for_device_id()
        if not device_id:
            return ApplyResult.failed("detect", PanelError("Virtual display device id unavailable"))

        try:
            self.store.backup()
            self.store.update_output_name(device_id)
        except (PanelError, OSError) as e:
            return ApplyResult.failed("write", e, key="output_name")

        failure = await self._restart_for_config(rollback_on_failure=True)
        if failure is not None:
            return failure

        logger.info(f"Daemon configured for virtual display {device_id}")
        return ApplyResult.ok()

    # ------------------------------------------------------------------
    # Daemon lifecycle
    # ------------------------------------------------------------------

    async def start_daemon(self) -> OperationResult:
        return await self.supervisor.start()

    async def stop_daemon(self) -> OperationResult:
        """Stop the daemon without the watchdog bringing it back."""
        self.watchdog.mark_user_initiated_stop()
        return await self.supervisor.stop()

    async def restart_daemon(self) -> OperationResult:
        result = await self.supervisor.restart()
        if self.metrics:
            self.metrics.record_restart(reason="user")
        return result

    async def status(self) -> Dict[str, Any]:
        daemon_status = await self.probe.probe()
        return {
            "daemon": daemon_status.value,
            "process": self.supervisor.get_status(),
            "active_preset": self.repository.active_id,
            "session_active": self.session_active,
            "watchdog": self.watchdog.get_status(),
        }

    # ------------------------------------------------------------------
    # Recovery and session tracking
    # ------------------------------------------------------------------

    async def run_recovery(self) -> RecoveryReport:
        """Run orphan recovery off the event loop; it shells out and sleeps."""
        return await asyncio.to_thread(self.recovery.recover)

    def _on_stream_started(self) -> None:
        self.session_active = True

    def _on_stream_ended(self) -> None:
        self.session_active = False

    # ------------------------------------------------------------------
    # Startup / shutdown
    # ------------------------------------------------------------------

    def _apply_guards(self) -> None:
        try:
            self.store.ensure_tray_disabled()
            self.store.ensure_server_name(self.config.server_name)
        except PanelError as e:
            logger.warning(f"Config guards skipped: {e}")

    async def startup(self, monitor: bool = True) -> None:
        """
        Bring the panel up.

        1. Recover an orphaned session left by a crash
        2. Hide the daemon's tray icon and make sure it has a server name
        3. Apply the default preset when nothing is active
        4. Start the status watchdog and the session monitor
        """
        logger.info("Control panel starting", extra={"event": "panel_startup"})

        if self.recovery.marker_exists():
            report = await self.run_recovery()
            logger.info(f"Startup recovery: {report.details()}")

        self._apply_guards()

        if self.config.presets.bootstrap_default and self.repository.active_id is None:
            logger.info("No active preset, applying default")
            result = await self.activate_preset(
                DEFAULT_PRESET_ID, restart=self.supervisor.is_running()
            )
            if not result.success:
                logger.warning(f"Default preset bootstrap failed at {result.phase}: {result.error}")

        if monitor:
            self.watchdog.start()
            self.session_monitor.start()

    async def shutdown(self) -> None:
        """Stop background loops and hand the tray icon back to the daemon."""
        await self.watchdog.stop()
        await self.session_monitor.stop()

        if self.config.restore_tray_on_shutdown:
            try:
                self.store.restore_tray()
            except PanelError as e:
                logger.warning(f"Could not restore daemon tray setting: {e}")

        logger.info("Control panel stopped", extra={"event": "panel_shutdown"})

