"""Network exposure policy.

Every apply passes through the cleared state (chain flushed, policy
ACCEPT) before entering the target mode, so re-applying a mode is
idempotent and switching modes never leaves old rules behind. There is no
rollback: a failed apply is fixed by applying again.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from constants import DEFAULT_UID, LOCAL_SCRIPT_PATH, OFFLINE_SCRIPT_PATH, STARTUP_HOOK_PATH, SUDOERS_PATH
from environment.wsl_conf import WslConf
from errors import ConfigurationError, ExecutionError
from model import NetworkMode
from policy.management import ManagementScripts
from policy.templates import (
    STARTUP_HOOK,
    SUDOERS_RULE,
    HookParams,
    ManagementParams,
    RuleParams,
    SudoersParams,
    render,
    render_clear_commands,
    render_rules,
)

if TYPE_CHECKING:
    from environment import SandboxEnvironment

log = logging.getLogger(__name__)

SCRIPT_PATHS: dict[NetworkMode, str] = {
    NetworkMode.LOCAL: LOCAL_SCRIPT_PATH,
    NetworkMode.OFFLINE: OFFLINE_SCRIPT_PATH,
}

# POSIX user name, safe to place in a sudoers file
_USERNAME_RE = re.compile(r"^[a-z_][a-z0-9_-]*\$?$")


def get_install_instructions() -> str:
    """Return the command that installs iptables inside the environment."""
    return "sudo apt install iptables"


class Unrestricted:
    """FULL: nothing beyond the cleared chain; all artifacts removed."""

    mode = NetworkMode.FULL

    def check(self, policy: NetworkPolicy) -> None:
        """FULL has no prerequisites; iptables may even be absent."""

    def enter(self, policy: NetworkPolicy, username: str | None) -> None:
        policy.env.remove_files(STARTUP_HOOK_PATH, SUDOERS_PATH, *SCRIPT_PATHS.values())


class Restricted:
    """LOCAL / OFFLINE: install, run and persist the mode's rule script."""

    def __init__(self, mode: NetworkMode) -> None:
        self.mode = mode
        self.script_path = SCRIPT_PATHS[mode]

    def check(self, policy: NetworkPolicy) -> None:
        policy.require_iptables()

    def enter(self, policy: NetworkPolicy, username: str | None) -> None:
        env = policy.env
        others = [path for mode, path in SCRIPT_PATHS.items() if mode != self.mode]
        env.remove_files(*others)

        env.write_file(self.script_path, render_rules(self.mode, policy.params), 0o755)
        env.run(self.script_path, as_root=True)

        env.write_file(STARTUP_HOOK_PATH, render(STARTUP_HOOK, HookParams(self.script_path)), 0o644)
        username = username or policy.resolve_login_user()
        if username:
            env.write_file(SUDOERS_PATH, render(SUDOERS_RULE, SudoersParams(username)), 0o440)
        else:
            env.remove_files(SUDOERS_PATH)

        policy.management.materialize(self.mode)


TRANSITIONS: dict[NetworkMode, Unrestricted | Restricted] = {
    NetworkMode.FULL: Unrestricted(),
    NetworkMode.LOCAL: Restricted(NetworkMode.LOCAL),
    NetworkMode.OFFLINE: Restricted(NetworkMode.OFFLINE),
}


class NetworkPolicy:
    """Applies a NetworkMode to an environment's outbound filter chain."""

    def __init__(self, env: SandboxEnvironment, params: RuleParams | None = None) -> None:
        self.env = env
        self.params = params or RuleParams()
        self.management = ManagementScripts(
            env, ManagementParams(iptables=self.params.iptables, chain=self.params.chain)
        )

    def apply(self, mode: NetworkMode, username: str | None = None) -> None:
        """Apply a network mode.

        Args:
            mode: Target network mode
            username: Login user allowed to re-apply the rules at login

        Raises:
            ConfigurationError: If username is not a valid user name
            ExecutionError: If iptables is missing or a command fails
        """
        if username and not _USERNAME_RE.match(username):
            raise ConfigurationError(f"Invalid user name: {username!r}")

        transition = TRANSITIONS[mode]
        transition.check(self)
        log.info("Applying network mode: %s", mode.value)
        self.clear()
        transition.enter(self, username)

    def resolve_login_user(self) -> str | None:
        """Find the user the login hook will run as.

        Uses the [user] default from wsl.conf, then the owner of the first
        regular UID (WSL creates it as the default user). Returns None if
        neither resolves; the hook then only re-applies for root logins.
        """
        try:
            conf = WslConf.parse(self.env.read_config())
        except ExecutionError as e:
            log.debug("Could not read environment config: %s", e)
            conf = WslConf()
        candidate = conf.extra.get("user", {}).get("default", "").strip().strip('"')
        if not candidate:
            try:
                candidate = self.env.run(f"id -nu {DEFAULT_UID}", silent=True).strip()
            except ExecutionError:
                candidate = ""

        if candidate and _USERNAME_RE.match(candidate):
            log.info("Login hook will run as %s", candidate)
            return candidate
        log.warning("No default user found, network policy is only re-applied at root logins")
        return None

    def remove_restrictions(self) -> None:
        """Lift all network restrictions permanently."""
        self.apply(NetworkMode.FULL)

    def clear(self) -> None:
        """Flush the chain and reset its policy to ACCEPT."""
        if not self.env.has_command(self.params.iptables):
            log.debug("%s not installed, nothing to clear", self.params.iptables)
            return
        for command in render_clear_commands(self.params):
            self.env.run(command, as_root=True)

    def require_iptables(self) -> None:
        if not self.env.has_command(self.params.iptables):
            raise ExecutionError(
                f"{self.params.iptables} not found in {self.env.name}. "
                f"Install with: {get_install_instructions()}"
            )
