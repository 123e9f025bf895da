"""Operator scripts for suspending and restoring the network policy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from constants import DISABLE_SCRIPT_PATH, ENABLE_SCRIPT_PATH
from policy.templates import DISABLE_SCRIPT, ENABLE_SCRIPT, ManagementParams, render

if TYPE_CHECKING:
    from environment import SandboxEnvironment
    from model import NetworkMode

log = logging.getLogger(__name__)


class ManagementScripts:
    """Writes the network-enable / network-disable pair into the environment.

    network-disable only flushes the chain; the login hook stays, so the
    restriction comes back at next login. network-enable re-runs whichever
    apply-script is installed rather than re-deriving the policy.
    """

    def __init__(self, env: SandboxEnvironment, params: ManagementParams | None = None) -> None:
        self.env = env
        self.params = params or ManagementParams()

    def render_enable(self) -> str:
        return render(ENABLE_SCRIPT, self.params)

    def render_disable(self) -> str:
        return render(DISABLE_SCRIPT, self.params)

    def materialize(self, current_mode: NetworkMode) -> None:
        """Write both scripts, overwriting any previous copies."""
        self.env.write_file(ENABLE_SCRIPT_PATH, self.render_enable(), 0o755)
        self.env.write_file(DISABLE_SCRIPT_PATH, self.render_disable(), 0o755)
        log.info(
            "Installed %s and %s (active policy: %s)",
            ENABLE_SCRIPT_PATH,
            DISABLE_SCRIPT_PATH,
            current_mode.value,
        )
