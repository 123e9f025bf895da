"""Shared fixtures for isolation engine tests."""

import ipaddress
import re
import shlex

import pytest

from constants import STARTUP_HOOK_PATH, SUDOERS_PATH, WSL_CONF_PATH
from environment.base import SandboxEnvironment
from environment.wsl_conf import WslConf
from errors import ExecutionError
from model import Identity

_IF_RE = re.compile(r"^(if|elif) \[ (.+) \]; then$")
_REDIRECT_RE = re.compile(r"\s+(\d?>&\d|\d?>\S+)")


class FakeEnvironment(SandboxEnvironment):
    """In-memory environment.

    Keeps files, the OUTPUT chain and the mount table in memory, and
    interprets the small subset of sh that the generated scripts use.
    """

    def __init__(self, name: str = "TestDistro") -> None:
        self.name = name
        self.files: dict[str, str] = {}
        self.modes: dict[str, int] = {}
        self.rules: list[str] = []
        self.policy = "ACCEPT"
        self.mount_output = ""
        self.users: dict[str, Identity] = {}
        self.iptables_installed = True
        self.fail_on: str | None = None
        self.calls: list[tuple] = []
        self.directories: list[str] = []
        self.mount_all_count = 0
        self.restarts = 0
        self.login_user: str | None = None

    # SandboxEnvironment

    def run(self, command: str, as_root: bool = False, silent: bool = False) -> str:
        self.calls.append(("run", command, as_root))
        return self._dispatch(command)

    def read_config(self) -> str:
        self.calls.append(("read_config",))
        return self.files.get(WSL_CONF_PATH, "")

    def write_config(self, config: WslConf) -> None:
        self.calls.append(("write_config",))
        self.files[WSL_CONF_PATH] = config.render()

    def lookup_user(self, username: str) -> Identity:
        self.calls.append(("lookup_user", username))
        if username not in self.users:
            raise ExecutionError(f"id: '{username}': no such user", returncode=1)
        return self.users[username]

    def restart(self) -> None:
        self.calls.append(("restart",))
        self.restarts += 1

    def write_file(self, path: str, content: str, mode: int = 0o644) -> None:
        self.calls.append(("write_file", path))
        self._check_failure(path)
        self.files[path] = content
        self.modes[path] = mode

    def read_file(self, path: str) -> str:
        self.calls.append(("read_file", path))
        return self.files.get(path, "")

    # Helpers for tests

    @property
    def mutations(self) -> list[tuple]:
        """Calls that change environment state."""
        return [c for c in self.calls if c[0] in ("write_file", "write_config", "run", "restart")]

    def login(self, user: str = "root") -> None:
        """Simulate user logging in, which runs the profile.d hook."""
        self.login_user = user
        try:
            if STARTUP_HOOK_PATH in self.files:
                self._execute_script(self.files[STARTUP_HOOK_PATH])
        finally:
            self.login_user = None

    def iptables_save(self) -> str:
        return "\n".join([f"-P OUTPUT {self.policy}", *self.rules]) + "\n"

    # Interpretation

    def _check_failure(self, text: str) -> None:
        if self.fail_on is not None and self.fail_on in text:
            raise ExecutionError(f"simulated failure: {text}", command=text, returncode=1)

    def _dispatch(self, command: str) -> str:
        self._check_failure(command)
        command = command.strip()

        ignore_errors = command.endswith("|| true")
        if ignore_errors:
            command = command[: -len("|| true")].strip()
        command = _REDIRECT_RE.sub("", command)
        try:
            return self._dispatch_one(command)
        except ExecutionError:
            if ignore_errors:
                return ""
            raise

    def _dispatch_one(self, command: str) -> str:
        tokens = shlex.split(command)
        if tokens[:2] == ["sudo", "-n"]:
            tokens = tokens[2:]
            if self.login_user not in (None, "root") and not self._sudo_allowed(tokens[0]):
                raise ExecutionError("sudo: a password is required", returncode=1)
        if tokens and tokens[0] == "sh" and len(tokens) == 2:
            tokens = tokens[1:]

        if not tokens:
            return ""
        if len(tokens) == 1 and tokens[0] in self.files:
            return self._execute_script(self.files[tokens[0]])
        if tokens[:2] == ["command", "-v"]:
            if tokens[2] == "iptables" and self.iptables_installed:
                return "/usr/sbin/iptables\n"
            raise ExecutionError(f"{tokens[2]} not found", returncode=1)
        if tokens[0] == "iptables":
            return self._iptables(tokens[1:])
        if tokens == ["mount"]:
            return self.mount_output
        if tokens == ["mount", "-a"]:
            self.mount_all_count += 1
            return ""
        if tokens[:2] == ["rm", "-f"]:
            for path in tokens[2:]:
                self.files.pop(path, None)
                self.modes.pop(path, None)
            return ""
        if tokens[:2] == ["mkdir", "-p"]:
            self.directories.append(tokens[2])
            return ""
        if tokens[:2] == ["id", "-nu"]:
            for name, identity in self.users.items():
                if str(identity.uid) == tokens[2]:
                    return name + "\n"
            raise ExecutionError(f"id: '{tokens[2]}': no such user", returncode=1)
        if tokens[0] == "echo":
            return " ".join(tokens[1:]) + "\n"
        raise ExecutionError(f"unsupported command: {command}", command=command, returncode=127)

    def _iptables(self, args: list[str]) -> str:
        if not self.iptables_installed:
            raise ExecutionError("iptables: not found", returncode=127)
        if args == ["-S", "OUTPUT"]:
            return self.iptables_save()
        if args == ["-F", "OUTPUT"]:
            self.rules = []
            return ""
        if args[:2] == ["-P", "OUTPUT"]:
            self.policy = args[2]
            return ""
        if args[:2] == ["-A", "OUTPUT"]:
            if "-d" in args:
                # iptables stores destinations as networks
                i = args.index("-d") + 1
                args = [*args[:i], str(ipaddress.ip_network(args[i], strict=False)), *args[i + 1 :]]
            self.rules.append(" ".join(args))
            return ""
        raise ExecutionError(f"unsupported iptables call: {args}", returncode=2)

    def _test(self, condition: str) -> bool:
        """Evaluate the `[ ... ]` conditions the generated scripts use."""
        if condition.startswith("-f "):
            return condition[3:] in self.files
        if condition == '"$(id -u)" -eq 0':
            return self.login_user in (None, "root")
        raise ExecutionError(f"unsupported test: {condition}", returncode=2)

    def _sudo_allowed(self, command: str) -> bool:
        """Check the sudoers rule grants login_user NOPASSWD on command."""
        for line in self.files.get(SUDOERS_PATH, "").splitlines():
            if line.startswith("#") or "NOPASSWD:" not in line:
                continue
            spec, allowed = line.split("NOPASSWD:", 1)
            if spec.split()[0] == self.login_user and command in [c.strip() for c in allowed.split(",")]:
                return True
        return False

    def _execute_script(self, content: str) -> str:
        output = []
        stack: list[tuple[bool, bool]] = []
        active = True
        for raw in content.splitlines():
            line = raw.strip()
            if not line or line.startswith("#") or line == "set -e":
                continue
            match = _IF_RE.match(line)
            if match and match.group(1) == "if":
                cond = self._test(match.group(2))
                stack.append((active, cond))
                active = active and cond
            elif match:
                parent, taken = stack[-1]
                cond = not taken and self._test(match.group(2))
                stack[-1] = (parent, taken or cond)
                active = parent and cond
            elif line == "else":
                parent, taken = stack[-1]
                active = parent and not taken
                stack[-1] = (parent, True)
            elif line == "fi":
                active, _ = stack.pop()
            elif not active:
                continue
            elif line.startswith("exit "):
                code = int(line.split()[1])
                if code != 0:
                    raise ExecutionError("script exited", returncode=code, stderr="".join(output))
                break
            else:
                output.append(self._dispatch(line))
        return "".join(output)


@pytest.fixture
def fake_env():
    """Empty fake environment with iptables installed."""
    return FakeEnvironment()


@pytest.fixture
def fake_env_with_user(fake_env):
    """Fake environment with a regular user 'dev' (1001:1002)."""
    fake_env.users["dev"] = Identity(uid=1001, gid=1002)
    return fake_env


@pytest.fixture
def wsl_conf_with_boot(fake_env):
    """Fake environment whose wsl.conf has an unrelated [boot] section."""
    fake_env.files[WSL_CONF_PATH] = "[boot]\nsystemd = true\n"
    return fake_env


WSL_MOUNT_OUTPUT = r"""none on /mnt/wsl type tmpfs (rw,relatime)
rootfs on / type ext4 (rw,relatime)
C:\ on /mnt/c type 9p (rw,noatime,dirsync,aname=drvfs;path=C:\;uid=1000;gid=1000)
C:/Users/dev/shared on /mnt/host type drvfs (rw,noatime,uid=1000,gid=1000,metadata)
proc on /proc type proc (rw,nosuid,nodev,noexec,noatime)
"""


@pytest.fixture
def mount_output():
    return WSL_MOUNT_OUTPUT
