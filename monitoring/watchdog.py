"""Status watchdog.

Polls the daemon status and reacts to transitions: resyncs the active
preset when the daemon comes online, schedules orphan recovery after a
stream ends, and restarts the daemon when it disappears without the user
asking for it.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from monitoring.config import MonitoringConfig
from monitoring.metrics import ControlMetrics
from monitoring.status_probe import ProcessStatus, StatusProbe

logger = logging.getLogger(__name__)

AsyncCallback = Callable[[], Awaitable[Any]]

_LIVE = (ProcessStatus.ONLINE, ProcessStatus.STREAMING)


class CancellationToken:
    """One-way flag checked by a scheduled action before it runs."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ScheduledAction:
    """One-shot delayed coroutine owning its cancellation token.

    The token is checked after the delay and before the action starts, so a
    cancel issued at any point before that is honored. Once the action has
    started it runs to completion.
    """

    def __init__(self, name: str, delay: float, action: AsyncCallback):
        self.name = name
        self.delay = delay
        self._action = action
        self.token = CancellationToken()
        self._started = False
        self._task: Optional[asyncio.Task] = None

    def schedule(self) -> "ScheduledAction":
        self._task = asyncio.create_task(self._run())
        return self

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        if self.token.cancelled:
            logger.debug(f"Scheduled {self.name} skipped after cancellation")
            return
        self._started = True
        try:
            await self._action()
        except Exception as e:
            logger.error(f"Scheduled {self.name} failed: {e}", exc_info=True)

    def cancel(self) -> None:
        self.token.cancel()
        if self._task and not self._started and not self._task.done():
            self._task.cancel()

    @property
    def pending(self) -> bool:
        return (
            self._task is not None
            and not self._task.done()
            and not self.token.cancelled
            and not self._started
        )

    async def wait(self) -> None:
        """Wait for the action to finish or be cancelled."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class StatusWatchdog:
    """Status polling loop with recovery and auto-restart timers."""

    def __init__(
        self,
        probe: StatusProbe,
        supervisor,
        resync: AsyncCallback,
        recover: AsyncCallback,
        config: Optional[MonitoringConfig] = None,
        metrics: Optional[ControlMetrics] = None,
    ):
        """Initialize the watchdog.

        Args:
            probe: Status probe
            supervisor: Process manager exposing async start()
            resync: Coroutine function resyncing the active preset
            recover: Coroutine function running orphan recovery
            config: Monitoring configuration
            metrics: Optional metrics sink
        """
        if config is None:
            from monitoring.config import get_config
            config = get_config()

        self.config = config
        self.probe = probe
        self.supervisor = supervisor
        self._resync = resync
        self._recover = recover
        self.metrics = metrics

        self.previous_status: Optional[ProcessStatus] = None
        self._first_poll = True
        self._user_initiated_stop = False

        self._recovery: Optional[ScheduledAction] = None
        self._watchdog: Optional[ScheduledAction] = None
        self._loop_task: Optional[asyncio.Task] = None
        # Strong references to timer tasks until they finish, cancelled or not
        self._background: Set[asyncio.Task] = set()

    @property
    def is_polling(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def recovery_pending(self) -> bool:
        return self._recovery is not None and self._recovery.pending

    @property
    def watchdog_pending(self) -> bool:
        return self._watchdog is not None and self._watchdog.pending

    def mark_user_initiated_stop(self) -> None:
        """Suppress the auto-restart for the next ONLINE to OFFLINE transition."""
        logger.info("Next daemon stop marked as user-initiated")
        self._user_initiated_stop = True

    async def poll_once(self) -> ProcessStatus:
        """Sample the status once and react to the transition."""
        status = await self.probe.probe()

        if self._first_poll and status in _LIVE:
            logger.info("Daemon already online at first poll, resyncing active preset")
            await self._run_resync()
        self._first_poll = False

        await self.handle_transition(self.previous_status, status)
        self.previous_status = status

        if self.metrics:
            self.metrics.set_status(status)
        return status

    async def handle_transition(
        self, previous: Optional[ProcessStatus], current: ProcessStatus
    ) -> None:
        """Apply the transition rules for one status change."""
        if previous == ProcessStatus.STREAMING and current != ProcessStatus.STREAMING:
            logger.info(
                f"Stream ended, recovery check in {self.config.recovery_delay}s",
                extra={"event": "stream_ended"},
            )
            self._schedule_recovery()

        if previous == ProcessStatus.OFFLINE and current in _LIVE:
            logger.info("Daemon came online, resyncing active preset")
            self.cancel_recovery()
            self.cancel_watchdog()
            await self._run_resync()

        if previous == ProcessStatus.ONLINE and current == ProcessStatus.OFFLINE:
            if self._user_initiated_stop:
                logger.info("Daemon stopped by user, no auto-restart")
                self._user_initiated_stop = False
            elif self.config.enable_watchdog:
                logger.warning(
                    f"Daemon stopped unexpectedly, restart in {self.config.watchdog_delay}s",
                    extra={"event": "daemon_lost"},
                )
                self._schedule_watchdog()

        if previous != ProcessStatus.STREAMING and current == ProcessStatus.STREAMING:
            logger.info("Stream started", extra={"event": "stream_started"})
            self.cancel_recovery()

    async def _run_resync(self) -> None:
        try:
            await self._resync()
        except Exception as e:
            logger.error(f"Active preset resync failed: {e}", exc_info=True)

    def _track(self, action: ScheduledAction) -> ScheduledAction:
        self._background.add(action.task)
        action.task.add_done_callback(self._background.discard)
        return action

    def _schedule_recovery(self) -> None:
        self.cancel_recovery()
        self._recovery = self._track(
            ScheduledAction("recovery check", self.config.recovery_delay, self._recover).schedule()
        )

    def _schedule_watchdog(self) -> None:
        self.cancel_watchdog()
        self._watchdog = self._track(
            ScheduledAction(
                "watchdog restart", self.config.watchdog_delay, self._watchdog_restart
            ).schedule()
        )

    def cancel_recovery(self) -> None:
        if self._recovery is not None:
            if self._recovery.pending:
                logger.info("Cancelling pending recovery check")
            self._recovery.cancel()
            self._recovery = None

    def cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            if self._watchdog.pending:
                logger.info("Cancelling pending watchdog restart")
            self._watchdog.cancel()
            self._watchdog = None

    async def _watchdog_restart(self) -> None:
        status = await self.probe.probe()
        if status != ProcessStatus.OFFLINE:
            logger.info(f"Watchdog: daemon came back by itself ({status.value})")
            return

        logger.warning("Watchdog: daemon still offline, restarting", extra={"event": "watchdog_restart"})
        result = await self.supervisor.start()
        if self.metrics:
            self.metrics.record_watchdog_restart()
        if result.success:
            logger.info("Watchdog: daemon restarted")
        else:
            logger.error(f"Watchdog: restart failed: {result.error}")

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Status poll failed: {e}", exc_info=True)
            await asyncio.sleep(self.config.status_poll_interval)

    def start(self) -> None:
        """Start the polling loop."""
        if self.is_polling:
            return
        self._first_poll = True
        self._loop_task = asyncio.create_task(self._poll_loop())
        logger.info(f"Status watchdog started (interval: {self.config.status_poll_interval}s)")

    async def stop(self) -> None:
        """Stop the polling loop and cancel every pending timer."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None
        self.cancel_recovery()
        self.cancel_watchdog()
        logger.info("Status watchdog stopped")

    def get_status(self) -> Dict[str, Any]:
        return {
            "polling": self.is_polling,
            "status": self.previous_status.value if self.previous_status else None,
            "recovery_pending": self.recovery_pending,
            "watchdog_pending": self.watchdog_pending,
            "user_initiated_stop": self._user_initiated_stop,
        }
