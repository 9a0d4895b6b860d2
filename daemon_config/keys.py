"""
Daemon config key vocabulary.

Every key in the daemon's config file falls into exactly one class:
protected keys are never touched by preset application, simple keys are
owned by the preset model and reset on every flush, and everything else is
an expert key that gets deleted on flush.
"""

from enum import Enum
from typing import Dict, FrozenSet, Mapping

DEFAULT_FPS = 60
DEFAULT_BITRATE = 35

ENABLED = "enabled"
DISABLED = "disabled"
MOONLIGHT_REQUEST = "moonlight_request"
MANUAL = "manual"

# Audio sink value meaning "no sink"
SINK_DISABLED = "0"


class KeyClass(str, Enum):
    """Config key classes."""

    PROTECTED = "protected"
    SIMPLE = "simple"
    EXPERT = "expert"


PROTECTED_KEYS: FrozenSet[str] = frozenset(
    {
        "sunshine_name",
        "credentials_file",
        "file_state",
        "key_dir",
        "cert",
        "pkey",
        "port",
        "https_port",
        "log_path",
        "min_log_level",
        "system_tray",
    }
)

# Encoder values here are the balanced profile
NEUTRAL_CONFIG: Dict[str, str] = {
    "output_name": "",
    "dd_configuration_option": DISABLED,
    "dd_resolution_option": MOONLIGHT_REQUEST,
    "dd_refresh_rate_option": MOONLIGHT_REQUEST,
    "dd_hdr_option": DISABLED,
    "fps": str(DEFAULT_FPS),
    "minimum_fps_target": "0",
    "max_bitrate": str(DEFAULT_BITRATE),
    "nvenc_preset": "3",
    "nvenc_twopass": "quarter_res",
    "nvenc_spatial_aq": ENABLED,
    "nvenc_vbv_increase": "0",
    "qsv_preset": "medium",
    "qsv_coder": "auto",
    "amd_usage": "lowlatency_high_quality",
    "amd_rc": "vbr_latency",
    "amd_quality": "balanced",
    "amd_preanalysis": DISABLED,
    "amd_vbaq": ENABLED,
    "sw_preset": "fast",
    "sw_tune": "zerolatency",
    "audio_sink": "",
    "virtual_sink": "",
    "upnp": ENABLED,
    "key_rightalt_to_key_win": DISABLED,
    "keyboard": ENABLED,
    "mouse": ENABLED,
    "gamepad": ENABLED,
}

MANUAL_RESOLUTION_KEY = "dd_manual_resolution"
MANUAL_REFRESH_RATE_KEY = "dd_manual_refresh_rate"

SIMPLE_KEYS: FrozenSet[str] = frozenset(NEUTRAL_CONFIG) | {
    MANUAL_RESOLUTION_KEY,
    MANUAL_REFRESH_RATE_KEY,
}

# Keys the daemon treats as interchangeable when one of them is absent
FPS_ALIASES: Dict[str, str] = {
    "fps": "minimum_fps_target",
    "minimum_fps_target": "fps",
}


def classify_key(key: str) -> KeyClass:
    """Return the class a config key belongs to."""
    if key in PROTECTED_KEYS:
        return KeyClass.PROTECTED
    if key in SIMPLE_KEYS:
        return KeyClass.SIMPLE
    return KeyClass.EXPERT


def is_flushable(key: str) -> bool:
    """Whether a key is removed by a flush."""
    return classify_key(key) == KeyClass.EXPERT


def daemon_default(observed: Mapping[str, str], key: str) -> str:
    """
    Resolve the value the daemon uses for a key.

    A non-empty observed value wins. Absent fps keys fall back to their
    alias and then to the default fps; anything else falls back to the
    neutral table.
    """
    value = observed.get(key)
    if value:
        return value

    alias = FPS_ALIASES.get(key)
    if alias is not None:
        return observed.get(alias) or str(DEFAULT_FPS)

    return NEUTRAL_CONFIG.get(key, "")
