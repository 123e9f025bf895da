"""Static mount table entry model."""

from dataclasses import dataclass

from model.identity import Identity

# Read-write with Linux metadata preserved on the host volume
MOUNT_OPTIONS = ("rw", "noatime", "metadata")
MOUNT_FSTYPE = "drvfs"


def escape_fstab_field(value: str) -> str:
    """Escape whitespace in an fstab field (spaces become \\040)."""
    return value.replace(" ", "\\040").replace("\t", "\\011")


def unescape_fstab_field(value: str) -> str:
    """Reverse escape_fstab_field."""
    return value.replace("\\040", " ").replace("\\011", "\t")


@dataclass
class MountEntry:
    """A host directory bound into the environment through /etc/fstab."""

    host_path: str
    mount_point: str
    owner: Identity
    options: tuple[str, ...] = MOUNT_OPTIONS

    def __str__(self) -> str:
        return f"{self.host_path} -> {self.mount_point} ({self.owner})"

    @property
    def option_string(self) -> str:
        """Mount options including ownership."""
        return ",".join([*self.options, f"uid={self.owner.uid}", f"gid={self.owner.gid}"])

    def to_fstab_line(self) -> str:
        """Render as a single /etc/fstab line."""
        return (
            f"{escape_fstab_field(self.host_path)} {escape_fstab_field(self.mount_point)} "
            f"{MOUNT_FSTYPE} {self.option_string} 0 0"
        )

    @classmethod
    def from_fstab_line(cls, line: str) -> "MountEntry | None":
        """Parse an fstab line written by to_fstab_line.

        Returns None for comments, blank lines and non-drvfs entries.
        """
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return None
        parts = stripped.split()
        if len(parts) < 4 or parts[2] != MOUNT_FSTYPE:
            return None

        uid = gid = None
        options = []
        for opt in parts[3].split(","):
            if opt.startswith("uid="):
                uid = int(opt[4:])
            elif opt.startswith("gid="):
                gid = int(opt[4:])
            else:
                options.append(opt)

        owner = Identity()
        if uid is not None and gid is not None:
            owner = Identity(uid=uid, gid=gid)
        return cls(
            host_path=unescape_fstab_field(parts[0]),
            mount_point=unescape_fstab_field(parts[1]),
            owner=owner,
            options=tuple(options),
        )


def is_host_mount_line(line: str) -> bool:
    """Check if an fstab line declares a host volume mount."""
    return MountEntry.from_fstab_line(line) is not None
