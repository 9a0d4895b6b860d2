"""Companion configuration written by the installer for the session hooks."""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class HookConfig(BaseModel):
    """Paths and device identifiers used by the display hooks."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    devcon_path: str = ""
    multi_monitor_tool_path: str = ""
    vdd_instance_id: Optional[str] = None
    vdd_device_id: Optional[str] = None


def read_json_text(path: Union[str, Path]) -> str:
    """Read a JSON file written by PowerShell, which may prefix a UTF-8 BOM."""
    return Path(path).read_text(encoding="utf-8-sig")


def load_hook_config(path: Union[str, Path]) -> Optional[HookConfig]:
    """Load the companion config.

    Returns:
        HookConfig, or None if the file does not exist

    Raises:
        ValueError: If the file exists but is not a valid config
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        return HookConfig.model_validate_json(read_json_text(path))
    except ValidationError as e:
        raise ValueError(f"Invalid hook config {path}: {e}") from e


def device_id_provider(path: Union[str, Path]) -> Callable[[], Optional[str]]:
    """Build a callable returning the virtual display's device id.

    The file is re-read on every call so installer updates are picked up
    without restarting.
    """

    def _provide() -> Optional[str]:
        try:
            config = load_hook_config(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read hook config: {e}")
            return None
        return config.vdd_device_id if config else None

    return _provide
