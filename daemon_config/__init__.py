"""
Daemon Config Store

Line-preserving editing, backup and restore of the streaming daemon's
``key = value`` configuration file, plus the key vocabulary that decides
which keys presets own.
"""

__version__ = "1.0.0"

from daemon_config.config import StoreConfig
from daemon_config.keys import NEUTRAL_CONFIG, PROTECTED_KEYS, SIMPLE_KEYS, KeyClass, classify_key
from daemon_config.store import ConfigStore

__all__ = [
    "ConfigStore",
    "StoreConfig",
    "KeyClass",
    "classify_key",
    "NEUTRAL_CONFIG",
    "PROTECTED_KEYS",
    "SIMPLE_KEYS",
]
