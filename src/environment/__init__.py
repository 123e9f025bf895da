"""Sandboxed environment collaborators.

The isolation engine talks to the environment only through
SandboxEnvironment. WslEnvironment drives a WSL distribution via wsl.exe.
"""

from environment.base import SandboxEnvironment
from environment.wsl import WslEnvironment, find_wsl_exe
from environment.wsl_conf import WslConf

__all__ = [
    "SandboxEnvironment",
    "WslConf",
    "WslEnvironment",
    "find_wsl_exe",
]
