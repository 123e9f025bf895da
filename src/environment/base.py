"""Base class for the sandboxed environment the engine controls."""

from __future__ import annotations

import base64
import shlex
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from errors import ExecutionError

if TYPE_CHECKING:
    from environment.wsl_conf import WslConf
    from model import Identity


class SandboxEnvironment(ABC):
    """Abstract base class for a sandboxed environment.

    The isolation engine never touches the environment's filesystem or
    network stack from the host. Everything goes through run(), plus the
    config and user lookup helpers built on top of it.
    """

    name: str

    @abstractmethod
    def run(self, command: str, as_root: bool = False, silent: bool = False) -> str:
        """Run a shell command inside the environment and wait for it.

        Args:
            command: Shell command string (run with sh -c)
            as_root: Run as the root user
            silent: Don't log the command output

        Returns:
            Captured stdout

        Raises:
            ExecutionError: If the command could not be run or exited non-zero
        """
        ...

    @abstractmethod
    def read_config(self) -> str:
        """Read the environment's configuration file (wsl.conf) as text."""
        ...

    @abstractmethod
    def write_config(self, config: WslConf) -> None:
        """Write the environment's configuration file."""
        ...

    @abstractmethod
    def lookup_user(self, username: str) -> Identity:
        """Resolve a user name to its UID/GID.

        Raises:
            ExecutionError: If the user does not exist
        """
        ...

    @abstractmethod
    def restart(self) -> None:
        """Restart the environment so configuration changes take effect."""
        ...

    def write_file(self, path: str, content: str, mode: int = 0o644) -> None:
        """Write a file inside the environment as root, replacing it.

        Content travels base64-encoded so it never needs shell quoting.
        """
        encoded = base64.b64encode(content.encode()).decode()
        quoted = shlex.quote(path)
        self.run(
            f"printf '%s' {encoded} | base64 -d > {quoted} && chmod {mode:o} {quoted}",
            as_root=True,
            silent=True,
        )

    def read_file(self, path: str) -> str:
        """Read a file inside the environment, returning '' if it is missing."""
        quoted = shlex.quote(path)
        return self.run(f"cat {quoted} 2>/dev/null || true", as_root=True, silent=True)

    def remove_files(self, *paths: str) -> None:
        """Remove files inside the environment, ignoring missing ones."""
        if not paths:
            return
        self.run("rm -f " + " ".join(shlex.quote(p) for p in paths), as_root=True)

    def has_command(self, name: str) -> bool:
        """Check if a command is available inside the environment."""
        try:
            return bool(self.run(f"command -v {shlex.quote(name)}", as_root=True, silent=True).strip())
        except ExecutionError:
            return False
