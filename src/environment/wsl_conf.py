"""wsl.conf parsing and rendering.

Only the keys the isolation engine manages are modelled explicitly; any
other section or key in the file is carried through unchanged.
"""

from __future__ import annotations

import configparser
import io
from dataclasses import dataclass, field

from constants import WSL_CONF_PATH
from errors import ConfigurationError

AUTOMOUNT = "automount"
INTEROP = "interop"

# WSL treats missing keys as enabled
_DEFAULTS = {
    (AUTOMOUNT, "enabled"): True,
    (AUTOMOUNT, "mountFsTab"): True,
    (INTEROP, "enabled"): True,
    (INTEROP, "appendWindowsPath"): True,
}

_TRUE_VALUES = {"true", "1", "yes", "on"}


def _new_parser() -> configparser.ConfigParser:
    # Non-strict: repeated sections and keys merge, later values winning
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str  # wsl.conf keys are camelCase
    return parser


@dataclass
class WslConf:
    """Structured view of /etc/wsl.conf."""

    automount_enabled: bool = True
    mount_fstab: bool = True
    interop_enabled: bool = True
    append_windows_path: bool = True
    extra: dict[str, dict[str, str]] = field(default_factory=dict)

    @classmethod
    def parse(cls, text: str, lenient: bool = True) -> WslConf:
        """Parse wsl.conf text.

        Unparseable content yields WSL defaults, or raises
        ConfigurationError when lenient is False. Callers that write the
        result back must not be lenient, or unmanaged sections are lost.
        """
        parser = _new_parser()
        try:
            parser.read_string(text)
        except configparser.Error as e:
            if not lenient:
                raise ConfigurationError(f"Cannot parse {WSL_CONF_PATH}: {e}") from e
            return cls()

        def flag(section: str, key: str) -> bool:
            # Keys are case-insensitive in WSL
            if parser.has_section(section):
                for name, value in parser.items(section):
                    if name.lower() == key.lower():
                        return value.strip().strip('"').lower() in _TRUE_VALUES
            return _DEFAULTS[(section, key)]

        managed = {(s, k.lower()) for s, k in _DEFAULTS}
        extra: dict[str, dict[str, str]] = {}
        for section in parser.sections():
            for name, value in parser.items(section):
                if (section, name.lower()) not in managed:
                    extra.setdefault(section, {})[name] = value

        return cls(
            automount_enabled=flag(AUTOMOUNT, "enabled"),
            mount_fstab=flag(AUTOMOUNT, "mountFsTab"),
            interop_enabled=flag(INTEROP, "enabled"),
            append_windows_path=flag(INTEROP, "appendWindowsPath"),
            extra=extra,
        )

    def render(self) -> str:
        """Render to wsl.conf text."""
        parser = _new_parser()
        for section, values in self.extra.items():
            parser[section] = dict(values)

        def put(section: str, key: str, value: bool) -> None:
            if not parser.has_section(section):
                parser.add_section(section)
            parser.set(section, key, "true" if value else "false")

        put(AUTOMOUNT, "enabled", self.automount_enabled)
        put(AUTOMOUNT, "mountFsTab", self.mount_fstab)
        put(INTEROP, "enabled", self.interop_enabled)
        put(INTEROP, "appendWindowsPath", self.append_windows_path)

        buf = io.StringIO()
        parser.write(buf)
        return buf.getvalue()
