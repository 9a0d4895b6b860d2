"""Prometheus metrics for the control panel."""

import logging
from typing import Dict, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, generate_latest

from monitoring.status_probe import ProcessStatus

logger = logging.getLogger(__name__)


class ControlMetrics:
    """Counters and gauges describing daemon supervision.

    Metrics:
    - daemon restarts performed by the supervisor
    - watchdog-initiated restarts
    - preset applies by outcome
    - recovery runs by outcome
    - current daemon status (one gauge label per status)
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics.

        Args:
            registry: Registry to register into (defaults to the global one)
        """
        self.registry = registry if registry is not None else REGISTRY

        self.daemon_restarts_total = Counter(
            "stream_host_daemon_restarts_total",
            "Total daemon restarts requested",
            ["reason"],
            registry=self.registry,
        )

        self.watchdog_restarts_total = Counter(
            "stream_host_watchdog_restarts_total",
            "Total restarts triggered by the watchdog",
            registry=self.registry,
        )

        self.preset_applies_total = Counter(
            "stream_host_preset_applies_total",
            "Total preset applications by outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.recovery_runs_total = Counter(
            "stream_host_recovery_runs_total",
            "Total orphaned-session recoveries by outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.daemon_status = Gauge(
            "stream_host_daemon_status",
            "Current daemon status (1 for the active status)",
            ["status"],
            registry=self.registry,
        )

        self._current_status: Optional[ProcessStatus] = None
        logger.info("Control metrics initialized")

    def record_restart(self, reason: str = "user") -> None:
        self.daemon_restarts_total.labels(reason=reason).inc()

    def record_watchdog_restart(self) -> None:
        self.watchdog_restarts_total.inc()
        self.record_restart(reason="watchdog")

    def record_apply(self, success: bool, phase: Optional[str] = None) -> None:
        outcome = "success" if success else f"failed_{phase or 'unknown'}"
        self.preset_applies_total.labels(outcome=outcome).inc()

    def record_recovery(self, outcome: str) -> None:
        self.recovery_runs_total.labels(outcome=outcome).inc()

    def set_status(self, status: ProcessStatus) -> None:
        """Set the status gauge so exactly one label reads 1."""
        for candidate in ProcessStatus:
            self.daemon_status.labels(status=candidate.value).set(
                1 if candidate == status else 0
            )
        self._current_status = status

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus text format."""
        return generate_latest(self.registry)

    def get_metrics_summary(self) -> Dict:
        """Get a summary of current metrics.

        Returns:
            Dictionary with metric summaries
        """
        return {
            "daemon_status": self._current_status.value if self._current_status else None,
            "watchdog_restarts": self.watchdog_restarts_total._value.get(),
        }
