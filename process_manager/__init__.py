"""
Daemon Process Manager

Start/stop/restart of the streaming daemon with mutual exclusion,
poll-until-state deadlines and a graceful shutdown hook.

Version: 1.0.0
"""

__version__ = "1.0.0"

from process_manager.config import SupervisorConfig
from process_manager.process_manager import DaemonProcessManager, ProcessState
from process_manager.shutdown_hook import GracefulShutdownHook

__all__ = [
    "SupervisorConfig",
    "DaemonProcessManager",
    "ProcessState",
    "GracefulShutdownHook",
]
