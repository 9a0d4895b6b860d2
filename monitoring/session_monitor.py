"""Session marker monitor.

The session-start hook creates the marker file and the session-end hook
removes it, so marker presence tracks whether a stream session is active.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

SessionCallback = Callable[[], Optional[Awaitable[Any]]]


class SessionMarkerMonitor:
    """Polls the marker and reports session start and end."""

    def __init__(
        self,
        marker_path: Union[str, Path],
        poll_interval: float = 4.0,
        on_stream_started: Optional[SessionCallback] = None,
        on_stream_ended: Optional[SessionCallback] = None,
    ):
        self.marker_path = Path(marker_path)
        self.poll_interval = poll_interval
        self.on_stream_started = on_stream_started
        self.on_stream_ended = on_stream_ended
        self.active: Optional[bool] = None
        self._task: Optional[asyncio.Task] = None

    async def _emit(self, callback: Optional[SessionCallback], name: str) -> None:
        if callback is None:
            return
        try:
            result = callback()
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"Session {name} callback failed: {e}", exc_info=True)

    async def check_once(self) -> bool:
        """Sample marker presence and emit a callback on change.

        The first sample only establishes the baseline.
        """
        present = self.marker_path.exists()
        previous = self.active
        self.active = present

        if previous is None or previous == present:
            return present

        if present:
            logger.info("Stream session started", extra={"event": "stream_started"})
            await self._emit(self.on_stream_started, "start")
        else:
            logger.info("Stream session ended", extra={"event": "stream_ended"})
            await self._emit(self.on_stream_ended, "end")
        return present

    async def _loop(self) -> None:
        while True:
            await self.check_once()
            await asyncio.sleep(self.poll_interval)

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Session monitor started on {self.marker_path}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Session monitor stopped")
