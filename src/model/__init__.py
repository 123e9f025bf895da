"""Model classes for the isolation engine."""

from model.identity import DEFAULT_IDENTITY, Identity
from model.isolation_status import IsolationStatus
from model.mount_entry import MountEntry, is_host_mount_line
from model.policy_modes import FilesystemMode, NetworkMode, PolicyAxis

__all__ = [
    "DEFAULT_IDENTITY",
    "Identity",
    "IsolationStatus",
    "MountEntry",
    "is_host_mount_line",
    "FilesystemMode",
    "NetworkMode",
    "PolicyAxis",
]
