"""Persisted installer settings."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from constants import DEFAULT_MOUNT_POINT, INTERNAL_SUBNET
from errors import ConfigurationError
from model import FilesystemMode, NetworkMode

log = logging.getLogger(__name__)

ISOLATE_CONFIG_DIR = Path.home() / ".config" / "isolate"
SETTINGS_PATH = ISOLATE_CONFIG_DIR / "settings.json"


@dataclass
class IsolationSettings:
    """Defaults for the CLI and TUI, overridable by command-line flags."""

    distro: str = "Ubuntu"
    username: str | None = None
    host_path: str | None = None
    mount_point: str = DEFAULT_MOUNT_POINT
    internal_subnet: str = INTERNAL_SUBNET
    filesystem_mode: FilesystemMode = FilesystemMode.FULL
    network_mode: NetworkMode = NetworkMode.FULL

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["filesystem_mode"] = self.filesystem_mode.value
        data["network_mode"] = self.network_mode.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IsolationSettings:
        """Build settings from a dict, ignoring unknown keys.

        Raises:
            ConfigurationError: If a mode value is not recognised
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            log.warning("Ignoring unknown settings: %s", ", ".join(sorted(unknown)))
        values = {k: v for k, v in data.items() if k in known}

        try:
            if "filesystem_mode" in values:
                values["filesystem_mode"] = FilesystemMode(values["filesystem_mode"])
            if "network_mode" in values:
                values["network_mode"] = NetworkMode(values["network_mode"])
        except ValueError as e:
            raise ConfigurationError(f"Invalid settings: {e}")
        return cls(**values)


def load_settings(path: Path = SETTINGS_PATH) -> IsolationSettings:
    """Load settings, returning defaults if the file doesn't exist."""
    if not path.exists():
        return IsolationSettings()
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read settings {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a JSON object")
    return IsolationSettings.from_dict(data)


def save_settings(settings: IsolationSettings, path: Path = SETTINGS_PATH) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.to_dict(), indent=2))
    log.info("Saved settings to %s", path)
