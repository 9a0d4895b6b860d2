"""Shared error taxonomy and result records."""

from shared.errors import (
    ConfigNotFound,
    ConfigUnreadable,
    NoBackupFound,
    PanelError,
    PartialApply,
    PermissionDenied,
    PresetNotFound,
    PresetReadOnly,
    ProcessTimeout,
    RecoveryIncomplete,
    WriteFailure,
)
from shared.results import ApplyResult, OperationResult

__all__ = [
    "PanelError",
    "ConfigNotFound",
    "ConfigUnreadable",
    "WriteFailure",
    "PermissionDenied",
    "NoBackupFound",
    "ProcessTimeout",
    "PartialApply",
    "RecoveryIncomplete",
    "PresetNotFound",
    "PresetReadOnly",
    "OperationResult",
    "ApplyResult",
]
