"""
Config matcher.

Decides whether the daemon's observed config is exactly what a preset
would produce. Matching is strict: one differing field disqualifies.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping

from daemon_config.keys import (
    MANUAL,
    MANUAL_REFRESH_RATE_KEY,
    MANUAL_RESOLUTION_KEY,
    NEUTRAL_CONFIG,
    daemon_default,
)
from preset_engine.compiler import compile_preset
from preset_engine.models import ConfigValue, Delete, Preset, Value

logger = logging.getLogger(__name__)

# Manual value keys only matter when their option selects manual
_MANUAL_GATES = {
    MANUAL_RESOLUTION_KEY: "dd_resolution_option",
    MANUAL_REFRESH_RATE_KEY: "dd_refresh_rate_option",
}


@dataclass
class FieldMismatch:
    """A single field that differs from what the preset expects."""

    key: str
    expected: str
    observed: str


@dataclass
class MatchResult:
    """Result of matching one preset against the observed config."""

    preset_id: str
    preset_name: str
    matches: bool
    mismatches: List[FieldMismatch] = field(default_factory=list)

    def summary(self) -> str:
        if self.matches:
            return f"{self.preset_name} matches"
        fields = ", ".join(m.key for m in self.mismatches)
        return f"{self.preset_name} differs in: {fields}"


def _expected_text(value: ConfigValue) -> str:
    if isinstance(value, Value):
        return value.text
    if isinstance(value, Delete):
        return ""
    raise TypeError(f"Unresolved config value: {value!r}")


def expected_config(
    preset: Preset,
    observed: Mapping[str, str],
) -> Dict[str, str]:
    """Values the daemon should hold if ``preset`` were active."""
    target: Dict[str, ConfigValue] = {key: Value(value) for key, value in NEUTRAL_CONFIG.items()}
    target.update(compile_preset(preset, observed))

    expected: Dict[str, str] = {}
    for key, value in target.items():
        gate = _MANUAL_GATES.get(key)
        if gate is not None and _expected_text(target[gate]) != MANUAL:
            continue
        expected[key] = _expected_text(value)
    return expected


def match_preset(observed: Mapping[str, str], preset: Preset) -> MatchResult:
    """
    Compare the observed config against a preset.

    Absent keys resolve the way the daemon resolves them (see
    ``daemon_default``) before comparison.
    """
    mismatches = []
    for key, expected in expected_config(preset, observed).items():
        actual = daemon_default(observed, key)
        if actual != expected:
            mismatches.append(FieldMismatch(key=key, expected=expected, observed=actual))

    result = MatchResult(
        preset_id=preset.id,
        preset_name=preset.name,
        matches=not mismatches,
        mismatches=mismatches,
    )
    logger.debug(result.summary())
    return result


def find_all_matching(observed: Mapping[str, str], presets: Iterable[Preset]) -> List[str]:
    """Ids of every preset matching the observed config, in input order."""
    return [preset.id for preset in presets if match_preset(observed, preset).matches]
