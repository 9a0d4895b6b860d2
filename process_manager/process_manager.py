"""
Daemon process manager.

Starts, stops and restarts the streaming daemon. The daemon is not our
child in any useful sense (it may have been started by a service or by
the user), so presence is always decided by scanning the process table. A daemon
we spawned ourselves is reaped once it exits so it does not linger as a
zombie under the daemon's name.
"""

import asyncio
import logging
import os
import subprocess
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import psutil

from process_manager.config import SupervisorConfig
from process_manager.shutdown_hook import GracefulShutdownHook
from shared.errors import ProcessTimeout
from shared.results import OperationResult

logger = logging.getLogger(__name__)


class ProcessState(str, Enum):
    """Daemon lifecycle states as seen by the supervisor."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    RESTARTING = "restarting"
    FAILED = "failed"


class DaemonProcessManager:
    """
    Manages the daemon process lifecycle.

    Features:
    - At most one start/stop/restart in flight (asyncio lock)
    - Poll-until-state with a fixed deadline after every start and stop
    - Best-effort graceful shutdown hook while a session is in progress
    - Settle delay between stop and start on restart
    """

    def __init__(
        self,
        config: Optional[SupervisorConfig] = None,
        shutdown_hook: Optional[GracefulShutdownHook] = None,
    ):
        """
        Initialize process manager.

        Args:
            config: Supervisor configuration (creates default if not provided)
            shutdown_hook: Hook run before a forced stop (built from config if not provided)
        """
        if config is None:
            from process_manager.config import get_config

            config = get_config()

        self.config = config

        if shutdown_hook is None:
            shutdown_hook = GracefulShutdownHook(
                command=config.shutdown_hook_command,
                marker_path=config.marker_path,
                timeout=config.shutdown_hook_timeout,
                settle_delay=config.shutdown_hook_settle,
            )

        self.shutdown_hook = shutdown_hook

        self._lock = asyncio.Lock()
        self._state = ProcessState.STOPPED
        self._started_at: Optional[datetime] = None
        self._process: Optional[subprocess.Popen] = None
        self._last_error: Optional[str] = None
        self.restart_count = 0

        logger.info("Daemon Process Manager initialized")

    @property
    def state(self) -> ProcessState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _reap(self) -> None:
        """Collect the exit status of a daemon we spawned once it has died."""
        if self._process is not None and self._process.poll() is not None:
            logger.debug(f"Reaped daemon process {self._process.pid}")
            self._process = None

    def find_processes(self) -> List[psutil.Process]:
        """Running processes whose name matches the daemon's."""
        self._reap()
        target = self.config.process_name.lower()
        found = []
        for proc in psutil.process_iter(["name", "status"]):
            # info["name"] is None when access is denied
            name = proc.info.get("name") or ""
            if name.lower() != target:
                continue
            # Dead but not yet reaped by whoever started it
            if proc.info.get("status") == psutil.STATUS_ZOMBIE:
                continue
            found.append(proc)
        return found

    def is_running(self) -> bool:
        return bool(self.find_processes())

    async def _wait_for_state(self, running: bool) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.state_timeout

        while True:
            if self.is_running() == running:
                return True
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(self.config.poll_interval)

    async def _acquire(self) -> bool:
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.config.lock_wait_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("Timed out waiting for in-flight lifecycle operation")
            return False

    def _fail(self, error: Exception) -> OperationResult:
        self._state = ProcessState.FAILED
        self._last_error = str(error)
        logger.error(f"Daemon lifecycle operation failed: {error}")
        return OperationResult.failed(error)

    def _spawn(self) -> subprocess.Popen:
        binary = Path(self.config.binary_path)
        cmd = [str(binary)]
        if self.config.config_path:
            cmd.append(self.config.config_path)

        kwargs = {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
        }
        if binary.parent != Path("."):
            kwargs["cwd"] = str(binary.parent)

        # The daemon must outlive us
        if os.name == "nt":
            kwargs["creationflags"] = (
                subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
            )
        else:
            kwargs["start_new_session"] = True

        logger.debug(f"Command: {' '.join(cmd)}")
        return subprocess.Popen(cmd, **kwargs)

    def _kill_all(self) -> None:
        for proc in self.find_processes():
            try:
                logger.debug(f"Killing daemon process {proc.pid}")
                proc.kill()
            except psutil.NoSuchProcess:
                pass
            except psutil.AccessDenied as e:
                logger.error(f"Access denied killing daemon process {proc.pid}: {e}")

    async def _start_locked(self) -> OperationResult:
        if self.is_running():
            logger.info("Daemon already running")
            self._state = ProcessState.RUNNING
            return OperationResult.ok()

        self._state = ProcessState.STARTING
        logger.info(f"Starting daemon: {self.config.binary_path}")

        try:
            process = self._spawn()
        except OSError as e:
            return self._fail(e)
        self._process = process

        if not await self._wait_for_state(running=True):
            return self._fail(ProcessTimeout("running", self.config.state_timeout))

        self._state = ProcessState.RUNNING
        self._started_at = datetime.now()
        self._last_error = None
        logger.info(f"Daemon started (PID: {process.pid})", extra={"event": "daemon_started"})
        return OperationResult.ok()

    async def _stop_locked(self) -> OperationResult:
        if not self.is_running():
            logger.info("Daemon not running")
            self._state = ProcessState.STOPPED
            return OperationResult.ok()

        self._state = ProcessState.STOPPING
        logger.info("Stopping daemon")

        await self.shutdown_hook.run_if_needed()

        self._kill_all()

        if not await self._wait_for_state(running=False):
            return self._fail(ProcessTimeout("stopped", self.config.state_timeout))

        self._state = ProcessState.STOPPED
        self._started_at = None
        self._last_error = None
        logger.info("Daemon stopped", extra={"event": "daemon_stopped"})
        return OperationResult.ok()

    async def start(self) -> OperationResult:
        """
        Start the daemon unless it is already running.

        Returns:
            OperationResult; ProcessTimeout if it does not appear in time
        """
        if not await self._acquire():
            return OperationResult.failed(ProcessTimeout("idle", self.config.lock_wait_timeout))
        try:
            return await self._start_locked()
        finally:
            self._lock.release()

    async def stop(self) -> OperationResult:
        """
        Stop the daemon, running the shutdown hook first if a session is live.

        Returns:
            OperationResult; ProcessTimeout if it does not go away in time
        """
        if not await self._acquire():
            return OperationResult.failed(ProcessTimeout("idle", self.config.lock_wait_timeout))
        try:
            return await self._stop_locked()
        finally:
            self._lock.release()

    async def restart(self) -> OperationResult:
        """
        Stop (if running), wait for the settle delay, then start.

        If the start fails the caller decides whether to roll back config.
        """
        if not await self._acquire():
            return OperationResult.failed(ProcessTimeout("idle", self.config.lock_wait_timeout))
        try:
            logger.info("Restarting daemon")
            self._state = ProcessState.RESTARTING

            if self.is_running():
                result = await self._stop_locked()
                if not result.success:
                    return result

            await asyncio.sleep(self.config.settle_delay)

            result = await self._start_locked()
            if result.success:
                self.restart_count += 1
            return result
        finally:
            self._lock.release()

    def get_status(self) -> Dict:
        """
        Get current status of the daemon process.

        Returns:
            Dictionary with process status information
        """
        pids = [proc.pid for proc in self.find_processes()]
        uptime = 0.0
        if pids and self._started_at is not None:
            uptime = (datetime.now() - self._started_at).total_seconds()

        return {
            "state": self._state,
            "running": bool(pids),
            "pids": pids,
            "uptime_seconds": uptime,
            "restart_count": self.restart_count,
            "busy": self.busy,
            "last_error": self._last_error,
        }
