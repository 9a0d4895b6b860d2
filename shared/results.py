"""Result records returned by orchestrating operations."""

from dataclasses import dataclass
from typing import Dict, Optional

from shared.errors import PanelError


@dataclass
class OperationResult:
    """Outcome of a lifecycle operation."""

    success: bool
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def ok(cls) -> "OperationResult":
        return cls(success=True)

    @classmethod
    def failed(cls, exc: Exception) -> "OperationResult":
        code = exc.code if isinstance(exc, PanelError) else type(exc).__name__
        return cls(success=False, error=str(exc), code=code)

    def to_dict(self) -> Dict:
        return {"success": self.success, "error": self.error, "code": self.code}


@dataclass
class ApplyResult:
    """Outcome of a config apply, tagged with the phase that failed."""

    success: bool
    phase: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
    key: Optional[str] = None

    @classmethod
    def ok(cls) -> "ApplyResult":
        return cls(success=True)

    @classmethod
    def failed(cls, phase: str, exc: Exception, key: Optional[str] = None) -> "ApplyResult":
        code = exc.code if isinstance(exc, PanelError) else type(exc).__name__
        if key is None:
            key = getattr(exc, "key", None)
        return cls(success=False, phase=phase, error=str(exc), code=code, key=key)

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "phase": self.phase,
            "error": self.error,
            "code": self.code,
            "key": self.key,
        }
