"""Entry point used by the installer to apply and inspect isolation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from constants import DEFAULT_MOUNT_POINT
from errors import ConfigurationError, ExecutionError
from model import DEFAULT_IDENTITY, FilesystemMode, Identity, IsolationStatus, NetworkMode, PolicyAxis
from policy.filesystem import FilesystemPolicy
from policy.inspector import PolicyInspector
from policy.network import NetworkPolicy
from policy.templates import RuleParams

if TYPE_CHECKING:
    from environment import SandboxEnvironment

log = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Outcome of applying one policy axis."""

    axis: PolicyAxis
    mode: FilesystemMode | NetworkMode
    ok: bool
    message: str = ""

    def __str__(self) -> str:
        status = "ok" if self.ok else "failed"
        text = f"{self.axis.value} -> {self.mode.value}: {status}"
        return f"{text} ({self.message})" if self.message else text


class IsolationEngine:
    """Applies filesystem and network policies to one environment."""

    def __init__(self, env: SandboxEnvironment, rule_params: RuleParams | None = None) -> None:
        self.env = env
        self.rule_params = rule_params or RuleParams()
        self.filesystem = FilesystemPolicy(env)
        self.network = NetworkPolicy(env, self.rule_params)
        self.inspector = PolicyInspector(
            env,
            internal_subnet=self.rule_params.internal_subnet,
            iptables=self.rule_params.iptables,
            chain=self.rule_params.chain,
        )

    def apply(
        self,
        axis: PolicyAxis,
        mode: FilesystemMode | NetworkMode,
        host_path: str | None = None,
        mount_point: str = DEFAULT_MOUNT_POINT,
        username: str | None = None,
        default_identity: Identity = DEFAULT_IDENTITY,
    ) -> ApplyResult:
        """Apply one axis, turning engine errors into a failed ApplyResult."""
        try:
            if axis == PolicyAxis.FILESYSTEM:
                if not isinstance(mode, FilesystemMode):
                    raise ConfigurationError(f"Not a filesystem mode: {mode!r}")
                entry = self.filesystem.apply(mode, host_path, mount_point, username, default_identity)
                message = f"mount {entry}" if entry else ""
            else:
                if not isinstance(mode, NetworkMode):
                    raise ConfigurationError(f"Not a network mode: {mode!r}")
                self.network.apply(mode, username)
                message = ""
        except ConfigurationError as e:
            log.error("Invalid %s configuration: %s", axis.value, e)
            return ApplyResult(axis, mode, ok=False, message=f"Configuration error: {e}")
        except ExecutionError as e:
            log.error("Applying %s mode %s failed: %s", axis.value, mode.value, e)
            return ApplyResult(axis, mode, ok=False, message=f"Execution error: {e}")
        return ApplyResult(axis, mode, ok=True, message=message)

    def apply_all(
        self,
        filesystem_mode: FilesystemMode,
        network_mode: NetworkMode,
        host_path: str | None = None,
        mount_point: str = DEFAULT_MOUNT_POINT,
        username: str | None = None,
        restart: bool = True,
    ) -> list[ApplyResult]:
        """Apply both axes, then restart the environment and mount.

        Stops after the first failed axis. The restart and mount only run
        when both axes applied; if either fails, a failed filesystem result
        is appended after the two axis results.
        """
        results = [
            self.apply(PolicyAxis.FILESYSTEM, filesystem_mode, host_path, mount_point, username)
        ]
        if not results[-1].ok:
            return results
        results.append(self.apply(PolicyAxis.NETWORK, network_mode, username=username))
        if not results[-1].ok or not restart:
            return results

        try:
            self.env.restart()
        except ExecutionError as e:
            log.error("Restarting %s failed: %s", self.env.name, e)
            results.append(
                ApplyResult(PolicyAxis.FILESYSTEM, filesystem_mode, ok=False, message=f"Restart failed: {e}")
            )
            return results
        if filesystem_mode == FilesystemMode.LIMITED:
            try:
                self.filesystem.mount_all()
            except ExecutionError as e:
                log.error("Mounting host folders failed: %s", e)
                results.append(
                    ApplyResult(PolicyAxis.FILESYSTEM, filesystem_mode, ok=False, message=f"Mount failed: {e}")
                )
        return results

    def remove_restrictions(self) -> ApplyResult:
        """Lift network restrictions and remove the login hook."""
        return self.apply(PolicyAxis.NETWORK, NetworkMode.FULL)

    def inspect(self) -> IsolationStatus:
        return self.inspector.inspect()
