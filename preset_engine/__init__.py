"""
Preset Engine

Declarative presets for the streaming daemon: compile a preset to daemon
keys, match the live config back to presets, apply presets through the
config store, and keep the active preset and hook snapshots in sync.
"""

__version__ = "1.0.0"

from preset_engine.applicator import PresetApplicator
from preset_engine.compiler import compile_preset, generate_neutral_config, render
from preset_engine.exporter import SnapshotExporter
from preset_engine.matcher import MatchResult, find_all_matching, match_preset
from preset_engine.models import DELETE, KEEP, Delete, Keep, Preset, Value
from preset_engine.reconciler import ActivePresetReconciler
from preset_engine.repository import DEFAULT_PRESET_ID, PresetRepository

__all__ = [
    "Preset",
    "Value",
    "Delete",
    "Keep",
    "DELETE",
    "KEEP",
    "compile_preset",
    "generate_neutral_config",
    "render",
    "match_preset",
    "find_all_matching",
    "MatchResult",
    "PresetApplicator",
    "PresetRepository",
    "DEFAULT_PRESET_ID",
    "SnapshotExporter",
    "ActivePresetReconciler",
]
