"""Isolation policy engine.

Turns a filesystem mode and a network mode into enforced environment state,
and classifies live state back into those modes:
- FilesystemPolicy: wsl.conf flags and /etc/fstab host mounts
- NetworkPolicy: iptables OUTPUT rules, login hook, management scripts
- PolicyInspector: best-effort reverse classification
"""

from policy.engine import ApplyResult, IsolationEngine
from policy.filesystem import FilesystemPolicy, normalize_host_path
from policy.inspector import (
    PolicyInspector,
    classify_filesystem,
    classify_network,
    filter_host_mounts,
)
from policy.management import ManagementScripts
from policy.network import NetworkPolicy
from policy.templates import RuleParams, render_rules

__all__ = [
    "ApplyResult",
    "IsolationEngine",
    "FilesystemPolicy",
    "normalize_host_path",
    "PolicyInspector",
    "classify_filesystem",
    "classify_network",
    "filter_host_mounts",
    "ManagementScripts",
    "NetworkPolicy",
    "RuleParams",
    "render_rules",
]
