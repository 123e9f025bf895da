"""Reverse classification of live environment state into policy modes.

The network classification is a text heuristic over the rules the engine
itself generates. A hand-edited chain can be misclassified; the precedence
below is kept as is rather than trying to parse rule semantics.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from constants import HOST_FS_TYPES, INTERNAL_SUBNET, OUTPUT_CHAIN
from environment.wsl_conf import WslConf
from errors import ExecutionError
from model import FilesystemMode, IsolationStatus, NetworkMode

if TYPE_CHECKING:
    from environment import SandboxEnvironment

log = logging.getLogger(__name__)

_MOUNT_TYPE_RE = re.compile(r"\stype\s+(\S+)")


def classify_filesystem(conf: WslConf) -> FilesystemMode:
    """Classify wsl.conf flags. Automount wins over the fstab flag."""
    if conf.automount_enabled:
        return FilesystemMode.FULL
    elif conf.mount_fstab:
        return FilesystemMode.LIMITED
    else:
        return FilesystemMode.ISOLATED


def classify_network(rules: str, internal_subnet: str = INTERNAL_SUBNET) -> NetworkMode:
    """Classify `iptables -S` output for the outbound chain."""
    lines = rules.splitlines()
    drop_rules = [line for line in lines if "-j DROP" in line]
    if not drop_rules:
        return NetworkMode.FULL
    if any(internal_subnet in line for line in lines):
        return NetworkMode.LOCAL
    return NetworkMode.OFFLINE


def filter_host_mounts(mount_output: str) -> list[str]:
    """Select the lines of `mount` output that are host volumes."""
    result = []
    for line in mount_output.splitlines():
        match = _MOUNT_TYPE_RE.search(line)
        if match and match.group(1) in HOST_FS_TYPES:
            result.append(line)
    return result


class PolicyInspector:
    """Read-only view of an environment's isolation state."""

    def __init__(
        self,
        env: SandboxEnvironment,
        internal_subnet: str = INTERNAL_SUBNET,
        iptables: str = "iptables",
        chain: str = OUTPUT_CHAIN,
    ) -> None:
        self.env = env
        self.internal_subnet = internal_subnet
        self.iptables = iptables
        self.chain = chain

    def inspect(self) -> IsolationStatus:
        """Classify both axes and collect active host mounts."""
        return IsolationStatus(
            filesystem=self.inspect_filesystem(),
            network=self.inspect_network(),
            mounts=tuple(self.list_host_mounts()),
        )

    def inspect_filesystem(self) -> FilesystemMode:
        try:
            text = self.env.read_config()
        except ExecutionError as e:
            log.warning("Could not read environment config: %s", e)
            text = ""
        return classify_filesystem(WslConf.parse(text))

    def inspect_network(self) -> NetworkMode:
        return classify_network(self._query(f"{self.iptables} -S {self.chain}"), self.internal_subnet)

    def list_host_mounts(self) -> list[str]:
        return filter_host_mounts(self._query("mount"))

    def _query(self, command: str) -> str:
        """Run a read-only command; failures count as empty output."""
        try:
            return self.env.run(command, as_root=True, silent=True)
        except ExecutionError as e:
            log.warning("Status query failed (%s): %s", command, e)
            return ""
