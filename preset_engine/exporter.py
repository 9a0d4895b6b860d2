"""
Snapshot exporter.

The session hooks run outside this process and read their view of the
world from small JSON files. Every relevant state change rewrites them.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from preset_engine.models import Preset

logger = logging.getLogger(__name__)

ACTIVE_PRESET_FILE = "active-preset.json"
PRESETS_FILE = "presets.json"
ACTIVE_CONFIG_FILE = "sunshine-active-config.json"


class SnapshotExporter:
    """Writes hook-facing snapshot files; failures are logged, not raised."""

    def __init__(self, export_dir: Union[str, Path]):
        self.export_dir = Path(export_dir)

    def _write_json(self, filename: str, payload: Any) -> bool:
        target = self.export_dir / filename
        try:
            self.export_dir.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            logger.debug(f"Exported snapshot: {target}")
            return True
        except (OSError, TypeError) as e:
            logger.error(f"Failed to export {filename}: {e}")
            return False

    def export_active_preset(self, preset_id: Optional[str]) -> bool:
        return self._write_json(ACTIVE_PRESET_FILE, {"activePresetId": preset_id})

    def export_presets(self, presets: Iterable[Preset]) -> bool:
        return self._write_json(PRESETS_FILE, [preset.to_export() for preset in presets])

    def export_config(self, config: Mapping[str, str]) -> bool:
        return self._write_json(ACTIVE_CONFIG_FILE, dict(config))

    def read_active_preset(self) -> Optional[str]:
        """Active preset id as last exported, or None."""
        target = self.export_dir / ACTIVE_PRESET_FILE
        try:
            return json.loads(target.read_text(encoding="utf-8")).get("activePresetId")
        except FileNotFoundError:
            return None
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Unreadable active preset snapshot: {e}")
            return None
