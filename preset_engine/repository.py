"""
Preset repository.

Keeps the user's presets and the active preset id in a JSON file. A
built-in read-only default preset is always present and is never written
to disk.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from preset_engine.exporter import SnapshotExporter
from preset_engine.models import (
    AssuranceMode,
    AudioConfig,
    AudioMode,
    DisplayConfig,
    InputsConfig,
    NetworkConfig,
    Preset,
    ResolutionStrategy,
)
from shared.errors import PresetNotFound, PresetReadOnly, WriteFailure

logger = logging.getLogger(__name__)

DEFAULT_PRESET_ID = "default"

_SECTIONS = ("display", "audio", "network", "inputs")
_IMMUTABLE_FIELDS = ("id", "is_read_only", "created_at")


def build_default_preset() -> Preset:
    """The built-in preset: follow the client, audio on the client only."""
    return Preset(
        id=DEFAULT_PRESET_ID,
        name="Default",
        is_read_only=True,
        display=DisplayConfig(
            mode=AssuranceMode.ENABLE,
            resolution_strategy=ResolutionStrategy.FOLLOW_CLIENT,
            fps=60,
            bitrate=35,
        ),
        audio=AudioConfig(mode=AudioMode.CLIENT_ONLY),
        network=NetworkConfig(upnp=False),
        inputs=InputsConfig(keyboard=True, mouse=True, gamepad=True),
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Snake-case top-level and section keys; expert keys are left raw."""
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        name = to_snake(key)
        if name in _SECTIONS and isinstance(value, Mapping):
            value = {to_snake(k): v for k, v in value.items()}
        normalized[name] = value
    return normalized


class PresetRepository:
    """CRUD over presets with read-only protection and active tracking."""

    def __init__(
        self,
        path: Union[str, Path],
        exporter: Optional[SnapshotExporter] = None,
    ):
        """
        Initialize repository and load stored presets.

        Args:
            path: JSON store file
            exporter: Snapshot exporter refreshed after every change
        """
        self.path = Path(path)
        self.exporter = exporter
        self._presets: Dict[str, Preset] = {}
        self._active_id: Optional[str] = None
        self._load()

    def _load(self) -> None:
        default = build_default_preset()
        self._presets = {default.id: default}

        if not self.path.exists():
            logger.info(f"No preset store at {self.path}, starting with defaults")
            return

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read preset store {self.path}: {e}")
            return

        for raw in data.get("presets", []):
            try:
                preset = Preset.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored preset: {e}")
                continue
            if preset.id == DEFAULT_PRESET_ID:
                continue
            self._presets[preset.id] = preset

        active_id = data.get("activePresetId")
        self._active_id = active_id if active_id in self._presets else None
        logger.info(f"Loaded {len(self._presets)} presets, active: {self._active_id}")

    def _save(self) -> None:
        stored = [p.to_export() for p in self._presets.values() if p.id != DEFAULT_PRESET_ID]
        payload = {"presets": stored, "activePresetId": self._active_id}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            raise WriteFailure(f"Failed to save preset store {self.path}: {e}") from e

        if self.exporter is not None:
            self.exporter.export_presets(self._presets.values())

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    def set_active(self, preset_id: Optional[str]) -> None:
        """
        Record which preset is active; None clears it.

        Raises:
            PresetNotFound: If the id is unknown
        """
        if preset_id is not None and preset_id not in self._presets:
            raise PresetNotFound(preset_id)
        if preset_id == self._active_id:
            return
        self._active_id = preset_id
        self._save()
        logger.info(f"Active preset: {preset_id}")

    def list(self) -> List[Preset]:
        return list(self._presets.values())

    def find(self, preset_id: str) -> Optional[Preset]:
        return self._presets.get(preset_id)

    def get(self, preset_id: str) -> Preset:
        preset = self._presets.get(preset_id)
        if preset is None:
            raise PresetNotFound(preset_id)
        return preset

    def create(self, data: Mapping[str, Any]) -> Preset:
        """
        Create a preset from user data.

        Raises:
            pydantic.ValidationError: If the data is not a valid preset
        """
        fields = _normalize(data)
        for name in _IMMUTABLE_FIELDS:
            fields.pop(name, None)

        timestamp = _now()
        preset = Preset.model_validate(
            {
                **fields,
                "id": str(uuid.uuid4()),
                "is_read_only": False,
                "created_at": timestamp,
                "updated_at": timestamp,
            }
        )
        self._presets[preset.id] = preset
        self._save()
        logger.info(f"Preset created: {preset.name} ({preset.id})")
        return preset

    def update(self, preset_id: str, changes: Mapping[str, Any]) -> Preset:
        """
        Update a preset; section dicts are merged one level deep.

        Raises:
            PresetNotFound: If the id is unknown
            PresetReadOnly: If the preset is read-only
            pydantic.ValidationError: If the result is not a valid preset
        """
        existing = self.get(preset_id)
        if existing.is_read_only:
            raise PresetReadOnly(preset_id)

        merged = existing.model_dump()
        for name, value in _normalize(changes).items():
            if name in _IMMUTABLE_FIELDS:
                continue
            if name in _SECTIONS and isinstance(value, Mapping):
                merged[name] = {**merged[name], **value}
            else:
                merged[name] = value
        merged["updated_at"] = _now()

        preset = Preset.model_validate(merged)
        self._presets[preset_id] = preset
        self._save()
        logger.info(f"Preset updated: {preset.name} ({preset_id})")
        return preset

    def delete(self, preset_id: str) -> None:
        """
        Delete a preset, clearing the active id if it pointed here.

        Raises:
            PresetNotFound: If the id is unknown
            PresetReadOnly: If the preset is read-only
        """
        preset = self.get(preset_id)
        if preset.is_read_only:
            raise PresetReadOnly(preset_id)

        del self._presets[preset_id]
        if self._active_id == preset_id:
            self._active_id = None
            if self.exporter is not None:
                self.exporter.export_active_preset(None)
        self._save()
        logger.info(f"Preset deleted: {preset.name} ({preset_id})")
