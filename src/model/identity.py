"""Owner identity model."""

from dataclasses import dataclass

from constants import DEFAULT_GID, DEFAULT_UID


@dataclass(frozen=True)
class Identity:
    """A UID/GID pair inside the environment."""

    uid: int = DEFAULT_UID
    gid: int = DEFAULT_GID

    def __str__(self) -> str:
        return f"{self.uid}:{self.gid}"


DEFAULT_IDENTITY = Identity()
