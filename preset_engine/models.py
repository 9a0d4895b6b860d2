"""
Preset data model.

Presets are declarative targets for the daemon's configuration. They are
stored and exported as camelCase JSON for the external session hooks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from daemon_config.keys import DEFAULT_BITRATE, DEFAULT_FPS
from preset_engine.profiles import EncoderProfile

MIN_FPS, MAX_FPS = 10, 120
MIN_BITRATE, MAX_BITRATE = 5, 120

# Expert map value meaning "keep what the daemon has"
KEEP_MARKER = "__KEEP__"


@dataclass(frozen=True)
class Value:
    """A literal config value."""

    text: str


@dataclass(frozen=True)
class Delete:
    """The key must be absent from the config."""


@dataclass(frozen=True)
class Keep:
    """Preserve whatever the daemon currently has for the key."""


DELETE = Delete()
KEEP = Keep()

ConfigValue = Union[Value, Delete, Keep]


class AssuranceMode(str, Enum):
    """How aggressively the daemon asserts the target display."""

    STANDARD = "standard"
    CHECK = "check"
    ENABLE = "enable"
    ENABLE_PRIMARY = "enable-primary"
    FOCUS = "focus"


class ResolutionStrategy(str, Enum):
    """Where the stream resolution and refresh rate come from."""

    FOLLOW_CLIENT = "moonlight"
    FOLLOW_PRESET = "preset"
    MANUAL = "manual"


class AudioMode(str, Enum):
    """Where audio plays during a session."""

    CLIENT_ONLY = "moonlight"
    HOST_ONLY = "pc"
    BOTH = "both"


class PresetType(str, Enum):
    SIMPLE = "simple"
    EXPERT = "expert"


class PresetModel(BaseModel):
    """Base for preset models: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Resolution(PresetModel):
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class DisplayConfig(PresetModel):
    """Display, rate and encoder settings."""

    mode: AssuranceMode = AssuranceMode.ENABLE
    device_id: Optional[str] = None
    resolution_strategy: ResolutionStrategy = ResolutionStrategy.FOLLOW_CLIENT
    resolution: Optional[Resolution] = None
    refresh_rate: Optional[int] = Field(default=None, gt=0)
    fps: int = Field(default=DEFAULT_FPS, ge=MIN_FPS, le=MAX_FPS)
    bitrate: int = Field(
        default=DEFAULT_BITRATE,
        description="Maximum bitrate in Mbps",
        ge=MIN_BITRATE,
        le=MAX_BITRATE,
    )
    encoder_profile: Optional[EncoderProfile] = None


class AudioConfig(PresetModel):
    mode: AudioMode = AudioMode.CLIENT_ONLY
    device_id: Optional[str] = None


class NetworkConfig(PresetModel):
    upnp: bool = False


class InputsConfig(PresetModel):
    keyboard: bool = True
    mouse: bool = True
    gamepad: bool = True


class Preset(PresetModel):
    """A named, declarative target configuration for the daemon."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: PresetType = PresetType.SIMPLE
    is_read_only: bool = False
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    audio: AudioConfig = Field(default_factory=AudioConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    inputs: InputsConfig = Field(default_factory=InputsConfig)
    expert: Optional[Dict[str, Union[str, int, float]]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def expert_overrides(self) -> Dict[str, ConfigValue]:
        """Expert map as typed config values."""
        overrides: Dict[str, ConfigValue] = {}
        for key, raw in (self.expert or {}).items():
            if raw == KEEP_MARKER:
                overrides[key] = KEEP
            else:
                overrides[key] = Value(str(raw))
        return overrides

    @property
    def uses_keep(self) -> bool:
        return any(raw == KEEP_MARKER for raw in (self.expert or {}).values())

    def with_device_id(self, device_id: Optional[str]) -> "Preset":
        """Copy of this preset targeting ``device_id`` if it names no display."""
        if not device_id or self.display.device_id:
            return self
        display = self.display.model_copy(update={"device_id": device_id})
        return self.model_copy(update={"display": display})

    def to_export(self) -> Dict:
        return self.model_dump(mode="json", by_alias=True)
