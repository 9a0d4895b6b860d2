"""
Active-preset reconciliation.

Which preset is "active" is inferred from the daemon's live config rather
than stored authoritatively: when the config changes behind our back the
active id follows it.
"""

import logging
from typing import Callable, Iterable, List, Optional

from daemon_config.store import ConfigStore
from preset_engine.exporter import SnapshotExporter
from preset_engine.matcher import find_all_matching
from preset_engine.models import Preset
from preset_engine.repository import PresetRepository

logger = logging.getLogger(__name__)


class ActivePresetReconciler:
    """Re-derives the active preset from the live daemon config."""

    def __init__(
        self,
        store: ConfigStore,
        repository: PresetRepository,
        exporter: SnapshotExporter,
        device_id_provider: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.store = store
        self.repository = repository
        self.exporter = exporter
        self.device_id_provider = device_id_provider

    def _device_id(self) -> Optional[str]:
        if self.device_id_provider is None:
            return None
        try:
            return self.device_id_provider()
        except Exception as e:
            logger.warning(f"Device id lookup failed: {e}")
            return None

    @staticmethod
    def choose(matches: List[str], previous: Optional[str]) -> Optional[str]:
        """Pick the active id among matches, preferring the previous one."""
        if not matches:
            return None
        if previous in matches:
            return previous
        return matches[0]

    def resync(self, presets: Optional[Iterable[Preset]] = None) -> Optional[str]:
        """
        Match the live config against presets and adopt the result.

        Args:
            presets: Candidates (defaults to every stored preset)

        Returns:
            The resolved active preset id, or None
        """
        live = self.store.read()
        device_id = self._device_id()
        candidates = [
            preset.with_device_id(device_id)
            for preset in (presets if presets is not None else self.repository.list())
        ]

        matches = find_all_matching(live, candidates)
        previous = self.repository.active_id
        active = self.choose(matches, previous)

        if active != previous:
            logger.info(
                f"Active preset changed: {previous} -> {active} ({len(matches)} matching)",
                extra={"event": "active_preset_changed"},
            )
        self.repository.set_active(active)

        self.exporter.export_config(live)
        self.exporter.export_active_preset(active)
        return active
