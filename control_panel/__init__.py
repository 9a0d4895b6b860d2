"""Control panel for a self-hosted game-streaming daemon.

Wires the config store, preset engine, process supervisor and monitoring
into one explicit context.

Version: 1.0.0
"""

from control_panel.config import PanelConfig
from control_panel.panel import ControlPanel

__all__ = ["ControlPanel", "PanelConfig"]

__version__ = "1.0.0"
