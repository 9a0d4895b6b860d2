"""Monitoring & Recovery module.

Provides the daemon status probe, the status watchdog, orphaned-session
recovery, the session marker monitor, and Prometheus metrics.
"""

from .metrics import ControlMetrics
from .recovery import OrphanMarker, OrphanRecovery, RecoveryReport
from .session_monitor import SessionMarkerMonitor
from .status_probe import ProcessStatus, StatusProbe
from .watchdog import StatusWatchdog

__all__ = [
    "ControlMetrics",
    "OrphanMarker",
    "OrphanRecovery",
    "RecoveryReport",
    "ProcessStatus",
    "SessionMarkerMonitor",
    "StatusProbe",
    "StatusWatchdog",
]

__version__ = "1.0.0"
