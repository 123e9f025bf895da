"""Inspector result model."""

from dataclasses import dataclass, field

from model.policy_modes import FilesystemMode, NetworkMode


@dataclass(frozen=True)
class IsolationStatus:
    """Snapshot of the environment's isolation, classified per axis.

    Recomputed on every query and never persisted.
    """

    filesystem: FilesystemMode
    network: NetworkMode
    mounts: tuple[str, ...] = field(default_factory=tuple)

    def get_summary(self) -> list[str]:
        """Get human-readable summary lines."""
        lines = [
            f"Filesystem: {self.filesystem.value} ({self.filesystem.description})",
            f"Network: {self.network.value} ({self.network.description})",
        ]
        if self.mounts:
            lines.append("Active host mounts:")
            lines.extend(f"  {m}" for m in self.mounts)
        else:
            lines.append("Active host mounts: none")
        return lines
