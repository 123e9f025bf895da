"""Filesystem exposure policy.

Maps a FilesystemMode onto wsl.conf flags and /etc/fstab entries. Applying
only updates declared configuration; mounts change after the environment
restarts and mount_all() runs.
"""

from __future__ import annotations

import dataclasses
import logging
import shlex
import warnings
from typing import TYPE_CHECKING

from constants import DEFAULT_MOUNT_POINT, FSTAB_PATH
from environment.wsl_conf import WslConf
from errors import ConfigurationError, ExecutionError, LookupWarning
from model import DEFAULT_IDENTITY, FilesystemMode, Identity, MountEntry, is_host_mount_line

if TYPE_CHECKING:
    from environment import SandboxEnvironment

log = logging.getLogger(__name__)

# wsl.conf flags per mode
CONF_FLAGS: dict[FilesystemMode, dict[str, bool]] = {
    FilesystemMode.FULL: {
        "automount_enabled": True,
        "mount_fstab": False,
        "interop_enabled": True,
        "append_windows_path": True,
    },
    FilesystemMode.LIMITED: {
        "automount_enabled": False,
        "mount_fstab": True,
        "interop_enabled": False,
        "append_windows_path": False,
    },
    FilesystemMode.ISOLATED: {
        "automount_enabled": False,
        "mount_fstab": False,
        "interop_enabled": False,
        "append_windows_path": False,
    },
}


def normalize_host_path(path: str) -> str:
    """Normalize a Windows host path for drvfs (C:\\Data -> C:/Data)."""
    return path.strip().replace("\\", "/")


class FilesystemPolicy:
    """Applies a FilesystemMode to an environment."""

    def __init__(self, env: SandboxEnvironment) -> None:
        self.env = env

    def apply(
        self,
        mode: FilesystemMode,
        host_path: str | None = None,
        mount_point: str = DEFAULT_MOUNT_POINT,
        username: str | None = None,
        default_identity: Identity = DEFAULT_IDENTITY,
    ) -> MountEntry | None:
        """Apply a filesystem mode.

        Args:
            mode: Target filesystem mode
            host_path: Host directory to share (required for LIMITED)
            mount_point: Where the host directory appears in the environment
            username: Environment user that should own the mount
            default_identity: Ownership used when username can't be resolved

        Returns:
            The static mount entry written, or None for FULL/ISOLATED.

        Raises:
            ConfigurationError: LIMITED without host_path, or a bad mount point.
                Raised before the environment is touched.
            ConfigurationError: If the existing wsl.conf can't be parsed. Nothing
                is written in that case.
            ExecutionError: If a command inside the environment fails
        """
        entry = None
        if mode == FilesystemMode.LIMITED:
            if not host_path or not host_path.strip():
                raise ConfigurationError("Limited filesystem mode: required path missing (host_path)")
            if not mount_point.startswith("/"):
                raise ConfigurationError(f"Mount point must be an absolute path: {mount_point!r}")
            owner = self.resolve_identity(username, default_identity)
            entry = MountEntry(
                host_path=normalize_host_path(host_path),
                mount_point=mount_point.rstrip("/") or "/",
                owner=owner,
            )

        log.info("Applying filesystem mode: %s", mode.value)
        self._write_config(mode)
        self._write_fstab(entry)
        if entry is not None:
            quoted = shlex.quote(entry.mount_point)
            self.env.run(
                f"mkdir -p {quoted} && chown {entry.owner.uid}:{entry.owner.gid} {quoted}",
                as_root=True,
            )
            log.info("Declared host mount %s", entry)
        return entry

    def resolve_identity(self, username: str | None, default: Identity = DEFAULT_IDENTITY) -> Identity:
        """Look up a user's UID/GID, falling back to default on any failure."""
        if not username:
            return default
        try:
            return self.env.lookup_user(username)
        except ExecutionError as e:
            msg = f"Could not resolve user {username!r} ({e}), using {default}"
            log.warning(msg)
            warnings.warn(msg, LookupWarning, stacklevel=3)
            return default

    def mount_all(self) -> None:
        """Mount every entry declared in /etc/fstab (run after a restart)."""
        log.info("Mounting configured filesystems")
        self.env.run("mount -a", as_root=True)

    def _write_config(self, mode: FilesystemMode) -> None:
        current = WslConf.parse(self.env.read_config(), lenient=False)
        self.env.write_config(dataclasses.replace(current, **CONF_FLAGS[mode]))

    def _write_fstab(self, entry: MountEntry | None) -> None:
        """Drop every host mount line, then add entry if given."""
        existing = self.env.read_file(FSTAB_PATH)
        lines = [line for line in existing.splitlines() if not is_host_mount_line(line)]
        removed = len(existing.splitlines()) - len(lines)
        if removed:
            log.debug("Removed %d host mount entries from fstab", removed)
        if entry is not None:
            lines.append(entry.to_fstab_line())
        content = "\n".join(lines) + "\n" if lines else ""
        self.env.write_file(FSTAB_PATH, content)
