"""
Error taxonomy for the control panel.

Component-level operations raise these; orchestrators catch them and
report a tagged result instead of letting them escape.
"""

from typing import Optional


class PanelError(Exception):
    """Base class for all control panel errors."""

    code = "PanelError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigNotFound(PanelError):
    """The daemon configuration file could not be located."""

    code = "ConfigNotFound"

    def __init__(self, path: Optional[str] = None):
        message = "Daemon config file not found"
        if path:
            message = f"{message}: {path}"
        super().__init__(message)
        self.path = path


class ConfigUnreadable(PanelError):
    """The daemon configuration file exists but could not be read or decoded."""

    code = "ConfigUnreadable"

    def __init__(self, path: str, reason: Exception):
        super().__init__(f"Cannot read daemon config {path}: {reason}")
        self.path = path


class WriteFailure(PanelError):
    """A config mutation failed."""

    code = "WriteFailure"

    def __init__(self, message: str, key: Optional[str] = None, phase: Optional[str] = None):
        super().__init__(message)
        self.key = key
        self.phase = phase


class PermissionDenied(WriteFailure):
    """The config file is not writable by this process."""

    code = "PermissionDenied"


class NoBackupFound(PanelError):
    """No backup exists to restore from."""

    code = "NoBackupFound"

    def __init__(self, path: str):
        super().__init__(f"No backup found for {path}")
        self.path = path


class ProcessTimeout(PanelError):
    """The daemon did not reach the expected state before the deadline."""

    code = "ProcessTimeout"

    def __init__(self, expected: str, timeout: float):
        super().__init__(f"Daemon did not become {expected} within {timeout:.1f}s")
        self.expected = expected
        self.timeout = timeout


class PartialApply(PanelError):
    """Config was written but the following restart failed."""

    code = "PartialApply"


class RecoveryIncomplete(PanelError):
    """Orphan marker found but the companion hook config is missing."""

    code = "RecoveryIncomplete"


class PresetNotFound(PanelError):
    """No preset with the requested id."""

    code = "PresetNotFound"

    def __init__(self, preset_id: str):
        super().__init__(f"Preset not found: {preset_id}")
        self.preset_id = preset_id


class PresetReadOnly(PanelError):
    """Attempted to mutate or delete a read-only preset."""

    code = "PresetReadOnly"

    def __init__(self, preset_id: str):
        super().__init__(f"Preset is read-only: {preset_id}")
        self.preset_id = preset_id
