"""
Preset compiler.

Turns a preset into the concrete key/value overlay the daemon understands.
Compilation is pure: the same preset and observed config always yield the
same overlay.
"""

import logging
from typing import Dict, Mapping, Optional

from daemon_config.keys import (
    DISABLED,
    ENABLED,
    MANUAL,
    MANUAL_REFRESH_RATE_KEY,
    MANUAL_RESOLUTION_KEY,
    MOONLIGHT_REQUEST,
    NEUTRAL_CONFIG,
    PROTECTED_KEYS,
    SINK_DISABLED,
)
from preset_engine.models import (
    DELETE,
    AssuranceMode,
    AudioMode,
    ConfigValue,
    Delete,
    Keep,
    Preset,
    ResolutionStrategy,
    Value,
)
from preset_engine.profiles import get_profile_config

logger = logging.getLogger(__name__)

DISPLAY_MODE_OPTIONS: Dict[AssuranceMode, str] = {
    AssuranceMode.STANDARD: "disabled",
    AssuranceMode.CHECK: "verify_only",
    AssuranceMode.ENABLE: "ensure_active",
    AssuranceMode.ENABLE_PRIMARY: "ensure_primary",
    AssuranceMode.FOCUS: "ensure_only",
}


def _toggle(flag: bool) -> Value:
    return Value(ENABLED if flag else DISABLED)


def _uses_preset_values(strategy: ResolutionStrategy) -> bool:
    return strategy in (ResolutionStrategy.MANUAL, ResolutionStrategy.FOLLOW_PRESET)


def generate_neutral_config() -> Dict[str, str]:
    """Return the flush baseline for every simple key."""
    return dict(NEUTRAL_CONFIG)


def compile_preset(
    preset: Preset,
    observed: Optional[Mapping[str, str]] = None,
) -> Dict[str, ConfigValue]:
    """
    Compile a preset into a daemon config overlay.

    Args:
        preset: Preset to compile
        observed: Current daemon config, used to resolve KEEP expert values

    Returns:
        Overlay of Value or DELETE entries; KEEP never appears in the result
    """
    display = preset.display
    overlay: Dict[str, ConfigValue] = {}

    if display.device_id:
        overlay["output_name"] = Value(display.device_id)

    overlay["dd_configuration_option"] = Value(DISPLAY_MODE_OPTIONS[display.mode])

    # Resolution and refresh rate are resolved independently
    use_preset = _uses_preset_values(display.resolution_strategy)
    if use_preset and display.resolution is not None:
        overlay["dd_resolution_option"] = Value(MANUAL)
        overlay[MANUAL_RESOLUTION_KEY] = Value(str(display.resolution))
    else:
        overlay["dd_resolution_option"] = Value(MOONLIGHT_REQUEST)
        overlay[MANUAL_RESOLUTION_KEY] = DELETE

    if use_preset and display.refresh_rate is not None:
        overlay["dd_refresh_rate_option"] = Value(MANUAL)
        overlay[MANUAL_REFRESH_RATE_KEY] = Value(str(display.refresh_rate))
    else:
        overlay["dd_refresh_rate_option"] = Value(MOONLIGHT_REQUEST)
        overlay[MANUAL_REFRESH_RATE_KEY] = DELETE

    overlay["dd_hdr_option"] = Value(DISABLED)

    fps = str(display.fps)
    overlay["fps"] = Value(fps)
    overlay["minimum_fps_target"] = Value(fps)
    overlay["max_bitrate"] = Value(str(display.bitrate))

    for key, value in get_profile_config(display.encoder_profile).items():
        overlay[key] = Value(value)

    audio = preset.audio
    if audio.mode == AudioMode.CLIENT_ONLY:
        overlay["audio_sink"] = DELETE
        overlay["virtual_sink"] = DELETE
    elif audio.mode == AudioMode.HOST_ONLY:
        overlay["audio_sink"] = Value(SINK_DISABLED)
        overlay["virtual_sink"] = Value(SINK_DISABLED)
    else:
        overlay["audio_sink"] = Value(audio.device_id or "")
        overlay["virtual_sink"] = Value(SINK_DISABLED)

    overlay["upnp"] = _toggle(preset.network.upnp)
    overlay["keyboard"] = _toggle(preset.inputs.keyboard)
    overlay["mouse"] = _toggle(preset.inputs.mouse)
    overlay["gamepad"] = _toggle(preset.inputs.gamepad)

    for key, value in preset.expert_overrides().items():
        if key in PROTECTED_KEYS:
            logger.warning(f"Ignoring expert override for protected key: {key}")
            continue

        if isinstance(value, Keep):
            current = (observed or {}).get(key)
            if current:
                overlay[key] = Value(current)
        elif isinstance(value, (Value, Delete)):
            overlay[key] = value
        else:
            raise TypeError(f"Unsupported config value for {key}: {value!r}")

    return overlay


def render(overlay: Mapping[str, ConfigValue]) -> Dict[str, str]:
    """
    Materialize an overlay the way the daemon would store it.

    DELETE entries are dropped since the key is simply absent.
    """
    rendered: Dict[str, str] = {}
    for key, value in overlay.items():
        if isinstance(value, Value):
            rendered[key] = value.text
        elif isinstance(value, Delete):
            continue
        else:
            raise TypeError(f"Unresolved config value for {key}: {value!r}")
    return rendered
