"""WSL distribution driven through wsl.exe."""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess

from constants import WSL_CONF_PATH
from environment.base import SandboxEnvironment
from environment.wsl_conf import WslConf
from errors import ExecutionError
from model import Identity

log = logging.getLogger(__name__)


def find_wsl_exe() -> str | None:
    """Find wsl.exe on PATH (native Windows or from inside another WSL distro)."""
    return shutil.which("wsl.exe") or shutil.which("wsl")


class WslEnvironment(SandboxEnvironment):
    """A named WSL distribution.

    Each call is a separate synchronous wsl.exe invocation. There is no
    timeout: a hung command blocks the caller.
    """

    def __init__(self, distro: str, wsl_exe: str | None = None) -> None:
        self.name = distro
        self._wsl_exe = wsl_exe

    @property
    def wsl_exe(self) -> str:
        if self._wsl_exe is None:
            found = find_wsl_exe()
            if found is None:
                raise ExecutionError("wsl.exe not found on PATH")
            self._wsl_exe = found
        return self._wsl_exe

    def build_command(self, command: str, as_root: bool = False) -> list[str]:
        """Build the wsl.exe argv for a shell command."""
        argv = [self.wsl_exe, "-d", self.name]
        if as_root:
            argv.extend(["-u", "root"])
        argv.extend(["--", "sh", "-c", command])
        return argv

    def run(self, command: str, as_root: bool = False, silent: bool = False) -> str:
        argv = self.build_command(command, as_root)
        log.debug("[%s]%s %s", self.name, " (root)" if as_root else "", command)
        try:
            result = subprocess.run(argv, capture_output=True, text=True)
        except OSError as e:
            raise ExecutionError(f"Failed to run wsl.exe: {e}", command=command) from e

        if result.returncode != 0:
            raise ExecutionError(
                f"Command failed with exit code {result.returncode}",
                command=command,
                returncode=result.returncode,
                stderr=result.stderr,
            )
        if not silent and result.stdout:
            log.debug("output: %s", result.stdout.rstrip())
        return result.stdout

    def read_config(self) -> str:
        return self.read_file(WSL_CONF_PATH)

    def write_config(self, config: WslConf) -> None:
        self.write_file(WSL_CONF_PATH, config.render())

    def lookup_user(self, username: str) -> Identity:
        quoted = shlex.quote(username)
        uid = self.run(f"id -u {quoted}", silent=True).strip()
        gid = self.run(f"id -g {quoted}", silent=True).strip()
        try:
            return Identity(uid=int(uid), gid=int(gid))
        except ValueError as e:
            raise ExecutionError(f"Unexpected id output for {username!r}: {uid!r}/{gid!r}") from e

    def restart(self) -> None:
        """Terminate the distribution; the next wsl.exe call boots it again."""
        log.info("Restarting WSL distribution %s", self.name)
        try:
            result = subprocess.run(
                [self.wsl_exe, "--terminate", self.name], capture_output=True, text=True
            )
        except OSError as e:
            raise ExecutionError(f"Failed to run wsl.exe: {e}") from e
        if result.returncode != 0:
            raise ExecutionError(
                f"Failed to terminate {self.name}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        # Boot it again so mounts can be materialized
        self.run("true")
