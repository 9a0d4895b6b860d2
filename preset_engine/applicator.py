"""
Preset apply pipeline.

Moves the daemon's config from whatever it currently holds to a preset's
target state:

1. Backup   - best-effort copy of the live file
2. Detect   - read the current config (needed to resolve KEEP)
3. Flush    - delete every expert key
4. Apply    - compile the preset over the neutral baseline
5. Write    - persist every resulting key, one at a time

Restarting the daemon afterwards is the caller's decision.
"""

import logging
from typing import Dict, Mapping, Optional

from daemon_config.keys import NEUTRAL_CONFIG, is_flushable
from daemon_config.store import ConfigStore
from preset_engine.compiler import compile_preset, generate_neutral_config
from preset_engine.models import ConfigValue, Delete, Preset, Value
from shared.errors import ConfigNotFound, PanelError
from shared.results import ApplyResult

logger = logging.getLogger(__name__)


class PresetApplicator:
    """Applies presets to the daemon config through a ConfigStore."""

    def __init__(self, store: ConfigStore):
        self.store = store

    def _backup(self) -> None:
        try:
            self.store.backup()
        except (PanelError, OSError) as e:
            logger.warning(f"Config backup failed, continuing: {e}")

    def build_target(
        self,
        preset: Preset,
        observed: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, ConfigValue]:
        """Neutral baseline overlaid with the compiled preset."""
        target: Dict[str, ConfigValue] = {
            key: Value(value) for key, value in generate_neutral_config().items()
        }
        target.update(compile_preset(preset, observed))
        return target

    def apply(
        self,
        preset: Preset,
        observed: Optional[Mapping[str, str]] = None,
    ) -> ApplyResult:
        """
        Apply a preset to the daemon config.

        Args:
            preset: Preset to apply
            observed: Config to resolve KEEP values from; the detected
                config is used when not given

        Returns:
            ApplyResult tagged with the failing phase on error
        """
        logger.info(f"Applying preset: {preset.name} ({preset.id})")

        self._backup()

        if not self.store.exists:
            error = ConfigNotFound(str(self.store.path))
            logger.error(f"Cannot apply preset: {error}")
            return ApplyResult.failed("detect", error)

        try:
            current = self.store.read()
        except PanelError as e:
            logger.error(f"Cannot apply preset: {e}")
            return ApplyResult.failed("detect", e)

        for key in current:
            if not is_flushable(key):
                continue
            try:
                self.store.delete(key)
            except PanelError as e:
                logger.error(f"Flush failed on {key}: {e}")
                return ApplyResult.failed("flush", e, key=key)

        target = self.build_target(preset, observed if observed is not None else current)

        for key, value in target.items():
            try:
                if isinstance(value, Delete):
                    self.store.delete(key)
                elif isinstance(value, Value):
                    if value.text == "" and key not in NEUTRAL_CONFIG:
                        continue
                    self.store.write(key, value.text)
                else:
                    raise TypeError(f"Unresolved config value for {key}: {value!r}")
            except PanelError as e:
                logger.error(f"Write failed on {key}: {e}")
                return ApplyResult.failed("write", e, key=key)

        logger.info(
            f"Preset applied: {preset.name}",
            extra={"event": "preset_applied", "preset_id": preset.id},
        )
        return ApplyResult.ok()

    def write_full_config(self, values: Mapping[str, str]) -> ApplyResult:
        """
        Import a raw config map verbatim, after a backup.

        Used for expert imports where the user supplies the whole config.
        """
        self._backup()

        if not self.store.exists:
            return ApplyResult.failed("detect", ConfigNotFound(str(self.store.path)))

        for key, value in values.items():
            try:
                self.store.write(key, value)
            except PanelError as e:
                logger.error(f"Config import failed on {key}: {e}")
                return ApplyResult.failed("write", e, key=key)

        logger.info(f"Imported {len(values)} config keys")
        return ApplyResult.ok()
