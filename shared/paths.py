"""Well-known file locations shared with the external session hooks."""

import tempfile
from pathlib import Path

MARKER_FILENAME = "stream-session-state.json"


def default_marker_path() -> str:
    """Where the session-start hook records pre-session display state."""
    return str(Path(tempfile.gettempdir()) / MARKER_FILENAME)
