"""Policy axes and the modes available on each."""

from enum import Enum


class PolicyAxis(Enum):
    """Independent isolation axes."""

    FILESYSTEM = "filesystem"
    NETWORK = "network"


class FilesystemMode(Enum):
    """How much of the host filesystem is reachable from the environment."""

    FULL = "full"  # All host volumes auto-mounted
    LIMITED = "limited"  # One host directory bound at a fixed mount point
    ISOLATED = "isolated"  # No host filesystem

    @property
    def description(self) -> str:
        return {
            FilesystemMode.FULL: "All host drives mounted",
            FilesystemMode.LIMITED: "Only one shared host directory",
            FilesystemMode.ISOLATED: "No access to host files",
        }[self]


class NetworkMode(Enum):
    """Which outbound traffic the environment may send."""

    FULL = "full"  # No filtering
    LOCAL = "local"  # Loopback, internal subnet and link-local only
    OFFLINE = "offline"  # Loopback only

    @property
    def description(self) -> str:
        return {
            NetworkMode.FULL: "Unrestricted network access",
            NetworkMode.LOCAL: "Local network only, no internet",
            NetworkMode.OFFLINE: "No network access",
        }[self]

    @property
    def is_restrictive(self) -> bool:
        """Returns True if this mode installs packet filter rules."""
        return self is not NetworkMode.FULL
