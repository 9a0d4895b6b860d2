"""
Graceful shutdown hook.

When a streaming session is in progress the session-start hook has
changed display state that its session-end counterpart would normally
restore. Before the daemon is killed we run that undo step ourselves.
"""

import asyncio
import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

logger = logging.getLogger(__name__)


def parse_command(command: str) -> List[str]:
    return shlex.split(command, posix=os.name != "nt")


class GracefulShutdownHook:
    """Best-effort undo command, only run while a session marker exists."""

    def __init__(
        self,
        command: Union[str, Sequence[str]],
        marker_path: Union[str, Path],
        timeout: float = 10.0,
        settle_delay: float = 0.5,
    ):
        self.command = parse_command(command) if isinstance(command, str) else list(command)
        self.marker_path = Path(marker_path)
        self.timeout = timeout
        self.settle_delay = settle_delay

    @property
    def needed(self) -> bool:
        return bool(self.command) and self.marker_path.exists()

    async def run_if_needed(self) -> bool:
        """
        Run the undo command if a session marker is present.

        Failures are logged and never raised; the caller proceeds with
        termination either way.

        Returns:
            True if the command ran and exited cleanly
        """
        if not self.needed:
            return False

        logger.info(f"Session in progress, running shutdown hook: {' '.join(self.command)}")
        returncode: Optional[int] = None

        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
            try:
                _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
                returncode = process.returncode
            except asyncio.TimeoutError:
                logger.warning(f"Shutdown hook timed out after {self.timeout:.1f}s, killing it")
                process.kill()
                await process.wait()
                stderr = b""

            if returncode:
                message = stderr.decode("utf-8", errors="replace").strip()
                logger.warning(f"Shutdown hook exited with {returncode}: {message[:500]}")
        except OSError as e:
            logger.warning(f"Shutdown hook failed to run: {e}")
            return False

        # Give the display stack a moment before the daemon goes away
        await asyncio.sleep(self.settle_delay)
        return returncode == 0
