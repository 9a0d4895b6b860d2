"""Daemon status probe over the local web API."""

import asyncio
import json
import logging
from enum import Enum
from typing import Callable, List, Optional, Tuple

import aiohttp

from monitoring.config import MonitoringConfig

logger = logging.getLogger(__name__)

Credentials = Optional[Tuple[str, str]]

STREAM_START_PATTERNS = (
    "start mode",
    "stream started",
    "streaming to",
    "client connected",
)

STREAM_STOP_PATTERNS = (
    "session ended",
    "stream stopped",
    "client disconnected",
    "stopping session",
    "application stopped",
)


class ProcessStatus(str, Enum):
    """Daemon status as seen through its web API."""

    OFFLINE = "OFFLINE"
    ONLINE = "ONLINE"
    STREAMING = "STREAMING"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    UNKNOWN = "UNKNOWN"


def detect_streaming(log_text: str, tail: int = 100) -> bool:
    """Return True when the most recent session event in the log tail is a start.

    Args:
        log_text: Raw log output from the daemon
        tail: Number of trailing lines to inspect

    Returns:
        True if a stream start appears after the last stream stop
    """
    lines: List[str] = log_text.split("\n")[-tail:]
    last_start = -1
    last_stop = -1

    for index, line in enumerate(lines):
        lowered = line.lower()
        if any(pattern in lowered for pattern in STREAM_START_PATTERNS):
            last_start = index
        if any(pattern in lowered for pattern in STREAM_STOP_PATTERNS):
            last_stop = index

    return last_start > last_stop


def _extract_log_text(body: str) -> str:
    """Logs are served either as plain text or as a JSON object wrapping it."""
    stripped = body.lstrip()
    if not stripped.startswith("{"):
        return body
    try:
        payload = json.loads(stripped)
    except ValueError:
        return body
    if isinstance(payload, dict):
        return str(payload.get("log") or payload.get("logs") or body)
    return body


class StatusProbe:
    """Classifies the daemon as offline, online, streaming or auth-gated.

    The daemon serves a self-signed certificate on localhost, so TLS
    verification is disabled for these requests.
    """

    def __init__(
        self,
        config: Optional[MonitoringConfig] = None,
        credentials: Optional[Callable[[], Credentials]] = None,
    ):
        """Initialize status probe.

        Args:
            config: Monitoring configuration
            credentials: Callable returning (username, password) or None
        """
        if config is None:
            from monitoring.config import get_config
            config = get_config()

        self.config = config
        self._credentials = credentials or (lambda: None)
        self.base_url = config.api_url.rstrip("/")

    def _auth(self) -> Optional[aiohttp.BasicAuth]:
        creds = self._credentials()
        if not creds:
            return None
        username, password = creds
        return aiohttp.BasicAuth(username, password)

    async def _is_streaming(self, session: aiohttp.ClientSession, auth) -> bool:
        try:
            async with session.get(
                f"{self.base_url}/api/logs",
                auth=auth,
                ssl=False,
                timeout=aiohttp.ClientTimeout(total=self.config.logs_timeout),
            ) as response:
                if response.status != 200:
                    return False
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Log fetch failed: {e}")
            return False

        return detect_streaming(_extract_log_text(body), self.config.log_tail_lines)

    async def probe(self) -> ProcessStatus:
        """Sample the daemon status.

        Returns:
            Current ProcessStatus
        """
        auth = self._auth()

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    f"{self.base_url}/api/config",
                    auth=auth,
                    ssl=False,
                    timeout=aiohttp.ClientTimeout(total=self.config.api_timeout),
                ) as response:
                    status_code = response.status

                if status_code in (401, 403):
                    return ProcessStatus.AUTH_REQUIRED
                if status_code != 200:
                    logger.warning(f"Daemon API returned status {status_code}")
                    return ProcessStatus.UNKNOWN

                if await self._is_streaming(session, auth):
                    return ProcessStatus.STREAMING
                return ProcessStatus.ONLINE

        except asyncio.TimeoutError:
            logger.debug("Daemon API timeout")
            return ProcessStatus.OFFLINE
        except aiohttp.ClientError as e:
            logger.debug(f"Daemon API unreachable: {e}")
            return ProcessStatus.OFFLINE
