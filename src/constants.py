"""Fixed paths and defaults shared across the isolation engine.

Artifact paths are referenced by absolute path from the startup hook and the
management scripts, so they must stay stable between releases.
"""

# Identity used when the environment user cannot be resolved
DEFAULT_UID = 1000
DEFAULT_GID = 1000

# Environment configuration
WSL_CONF_PATH = "/etc/wsl.conf"
FSTAB_PATH = "/etc/fstab"
DEFAULT_MOUNT_POINT = "/mnt/host"

# Network enforcement artifacts
LOCAL_SCRIPT_PATH = "/usr/local/bin/network-local.sh"
OFFLINE_SCRIPT_PATH = "/usr/local/bin/network-offline.sh"
ENABLE_SCRIPT_PATH = "/usr/local/bin/network-enable"
DISABLE_SCRIPT_PATH = "/usr/local/bin/network-disable"
STARTUP_HOOK_PATH = "/etc/profile.d/network-policy.sh"
SUDOERS_PATH = "/etc/sudoers.d/network-policy"

# Address ranges used by the generated rules
LOOPBACK_CIDR = "127.0.0.0/8"
INTERNAL_SUBNET = "172.16.0.0/12"  # WSL NAT network
LINK_LOCAL_CIDR = "169.254.0.0/16"

OUTPUT_CHAIN = "OUTPUT"

# Filesystem types that indicate a host (Windows) volume
HOST_FS_TYPES = ("drvfs", "9p")
