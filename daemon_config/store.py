"""
Daemon config store.

Reads and edits the daemon's line-oriented ``key = value`` file in place.
Only lines naming a key are ever rewritten; comments, blank lines and
ordering survive every edit. Backups are timestamped siblings of the live
file, pruned to the newest few.
"""

import logging
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Union

from daemon_config.config import StoreConfig
from shared.errors import (
    ConfigNotFound,
    ConfigUnreadable,
    NoBackupFound,
    PermissionDenied,
    WriteFailure,
)

logger = logging.getLogger(__name__)

BACKUP_MARKER = ".backup."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _backup_suffix(moment: datetime) -> str:
    return moment.isoformat(timespec="microseconds").replace(":", "-").replace(".", "-")


def _line_targets(line: str, key: str) -> bool:
    stripped = line.strip()
    return stripped == key or stripped.startswith(f"{key} ") or stripped.startswith(f"{key}=")


class ConfigStore:
    """
    Line-preserving access to the daemon config file.

    There is no locking: a concurrent external writer can race with any
    operation here, and the last writer wins.
    """

    def __init__(
        self,
        path: Union[str, Path, None] = None,
        max_backups: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
        config: Optional[StoreConfig] = None,
    ):
        """
        Initialize config store.

        Args:
            path: Daemon config file (defaults to the configured path)
            max_backups: Backups retained after each backup() call
            clock: Time source for backup names
            config: Store settings (creates default if not provided)
        """
        if path is None or max_backups is None:
            if config is None:
                from daemon_config.config import get_config

                config = get_config()
            if path is None:
                path = config.path
            if max_backups is None:
                max_backups = config.max_backups

        self.path = Path(path)
        self.max_backups = max_backups
        self._clock = clock

    @property
    def exists(self) -> bool:
        return self.path.is_file()

    def _require(self) -> None:
        if not self.exists:
            raise ConfigNotFound(str(self.path))

    def _load_lines(self) -> List[str]:
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                return f.read().split("\n")
        except FileNotFoundError as e:
            raise ConfigNotFound(str(self.path)) from e
        except (UnicodeDecodeError, OSError) as e:
            raise ConfigUnreadable(str(self.path), e) from e

    def _write_text(self, content: str) -> None:
        with open(self.path, "w", encoding="utf-8", newline="") as f:
            f.write(content)

    def _save_lines(self, lines: List[str], key: str, phase: str) -> None:
        try:
            self._write_text("\n".join(lines))
        except PermissionError as e:
            raise PermissionDenied(
                f"Permission denied writing {self.path}", key=key, phase=phase
            ) from e
        except OSError as e:
            raise WriteFailure(f"Failed to write {self.path}: {e}", key=key, phase=phase) from e

    def read(self) -> Dict[str, str]:
        """
        Parse every addressable line into a map.

        Returns:
            Key/value map; empty if the file does not exist

        Raises:
            ConfigUnreadable: If the file cannot be read or is not valid UTF-8
        """
        if not self.exists:
            logger.debug(f"Config file not found, returning empty config: {self.path}")
            return {}

        config: Dict[str, str] = {}
        for line in self._load_lines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            key, sep, value = stripped.partition("=")
            key = key.strip()
            if not sep or not key:
                continue
            config[key] = value.strip()

        return config

    def write(self, key: str, value: str) -> None:
        """
        Set a key, updating its line in place or appending a new one.

        Raises:
            ConfigNotFound: If the config file does not exist
            PermissionDenied: If the file is not writable
            WriteFailure: On any other I/O error
        """
        self._require()
        lines = self._load_lines()
        new_line = f"{key} = {value}"
        found = False

        for index, line in enumerate(lines):
            if _line_targets(line, key):
                lines[index] = new_line + ("\r" if line.endswith("\r") else "")
                found = True

        if not found:
            # Keep the file's trailing newline after the appended line
            if lines and lines[-1] == "":
                lines.insert(len(lines) - 1, new_line)
            else:
                lines.append(new_line)

        self._save_lines(lines, key, "write")
        logger.debug(f"Config write: {key} = {value}")

    def delete(self, key: str) -> None:
        """
        Remove every line that sets ``key``; a missing key is not an error.

        Raises:
            ConfigNotFound: If the config file does not exist
            PermissionDenied: If the file is not writable
            WriteFailure: On any other I/O error
        """
        self._require()
        lines = self._load_lines()
        kept = [line for line in lines if not _line_targets(line, key)]

        if len(kept) == len(lines):
            return

        self._save_lines(kept, key, "delete")
        logger.debug(f"Config delete: {key}")

    def write_all(self, values: Mapping[str, str]) -> None:
        """Write several keys, one at a time, stopping at the first failure."""
        for key, value in values.items():
            self.write(key, value)

    def list_backups(self) -> List[Path]:
        """Return existing backups, newest first."""
        pattern = f"{self.path.name}{BACKUP_MARKER}*"
        return sorted(self.path.parent.glob(pattern), key=lambda p: p.name, reverse=True)

    def backup(self) -> Path:
        """
        Copy the live file to a timestamped backup and prune old backups.

        Returns:
            Path of the new backup

        Raises:
            ConfigNotFound: If the config file does not exist
            WriteFailure: If the copy fails
        """
        self._require()

        moment = self._clock()
        target = self.path.with_name(f"{self.path.name}{BACKUP_MARKER}{_backup_suffix(moment)}")
        while target.exists():
            moment += timedelta(microseconds=1)
            target = self.path.with_name(
                f"{self.path.name}{BACKUP_MARKER}{_backup_suffix(moment)}"
            )

        try:
            shutil.copy2(self.path, target)
        except PermissionError as e:
            raise PermissionDenied(f"Permission denied creating backup {target}", phase="backup") from e
        except OSError as e:
            raise WriteFailure(f"Failed to create backup {target}: {e}", phase="backup") from e

        logger.info(f"Config backup created: {target.name}")
        self._prune_backups()
        return target

    def _prune_backups(self) -> None:
        for stale in self.list_backups()[self.max_backups:]:
            try:
                stale.unlink()
                logger.debug(f"Pruned old backup: {stale.name}")
            except OSError as e:
                logger.warning(f"Failed to prune backup {stale.name}: {e}")

    def restore_latest(self) -> Path:
        """
        Copy the newest backup over the live file.

        Returns:
            Path of the backup that was restored

        Raises:
            NoBackupFound: If there are no backups
            WriteFailure: If the copy fails
        """
        backups = self.list_backups()
        if not backups:
            raise NoBackupFound(str(self.path))

        latest = backups[0]
        try:
            shutil.copy2(latest, self.path)
        except PermissionError as e:
            raise PermissionDenied(f"Permission denied restoring {self.path}", phase="restore") from e
        except OSError as e:
            raise WriteFailure(f"Failed to restore {latest.name}: {e}", phase="restore") from e

        logger.info(f"Config restored from backup: {latest.name}")
        return latest

    def ensure_tray_disabled(self) -> None:
        """Hide the daemon's own tray icon; the panel provides one."""
        if self.read().get("system_tray") != "disabled":
            self.write("system_tray", "disabled")
            logger.info("Daemon tray icon disabled")

    def restore_tray(self) -> None:
        self.delete("system_tray")
        logger.info("Daemon tray icon setting restored")

    def ensure_server_name(self, default_name: str) -> bool:
        """
        Give the daemon a server name if it has none.

        Returns:
            True if a name was written
        """
        if self.read().get("sunshine_name"):
            return False
        self.write("sunshine_name", default_name)
        logger.info(f"Daemon server name initialized: {default_name}")
        return True

    def update_output_name(self, device_id: str) -> None:
        self.write("output_name", device_id)
        logger.info(f"Daemon output display set: {device_id}")
