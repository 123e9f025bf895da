"""Script templates for network enforcement artifacts.

Templates are plain string.Template text. Every placeholder is filled from
an explicit parameter dataclass, so a missing value fails at render time
instead of producing a half-filled script.
"""

from __future__ import annotations

import ipaddress
from dataclasses import asdict, dataclass
from string import Template

from constants import (
    INTERNAL_SUBNET,
    LINK_LOCAL_CIDR,
    LOCAL_SCRIPT_PATH,
    LOOPBACK_CIDR,
    OFFLINE_SCRIPT_PATH,
    OUTPUT_CHAIN,
)
from errors import ConfigurationError
from model import NetworkMode


@dataclass(frozen=True)
class RuleParams:
    """Values substituted into the rule scripts."""

    iptables: str = "iptables"
    chain: str = OUTPUT_CHAIN
    loopback: str = LOOPBACK_CIDR
    internal_subnet: str = INTERNAL_SUBNET
    link_local: str = LINK_LOCAL_CIDR

    def __post_init__(self) -> None:
        # Stored in the form `iptables -S` prints, host bits cleared
        for name in ("loopback", "internal_subnet", "link_local"):
            value = getattr(self, name)
            try:
                network = ipaddress.ip_network(value, strict=False)
            except ValueError:
                raise ConfigurationError(f"Invalid CIDR for {name}: {value!r}")
            object.__setattr__(self, name, str(network))


@dataclass(frozen=True)
class HookParams:
    """Values substituted into the login hook."""

    script_path: str


@dataclass(frozen=True)
class SudoersParams:
    """Values substituted into the sudoers rule."""

    username: str
    local_script: str = LOCAL_SCRIPT_PATH
    offline_script: str = OFFLINE_SCRIPT_PATH


@dataclass(frozen=True)
class ManagementParams:
    """Values substituted into the enable/disable scripts."""

    local_script: str = LOCAL_SCRIPT_PATH
    offline_script: str = OFFLINE_SCRIPT_PATH
    iptables: str = "iptables"
    chain: str = OUTPUT_CHAIN


CLEAR_CHAIN = Template("""\
$iptables -F $chain
$iptables -P $chain ACCEPT""")

LOCAL_RULES = Template("""\
#!/bin/sh
# Network policy: local network only
set -e
$iptables -F $chain
$iptables -P $chain ACCEPT
$iptables -A $chain -o lo -j ACCEPT
$iptables -A $chain -m conntrack --ctstate ESTABLISHED,RELATED -j ACCEPT
$iptables -A $chain -d $internal_subnet -j ACCEPT
$iptables -A $chain -d $link_local -j ACCEPT
$iptables -A $chain -d $loopback -j ACCEPT
$iptables -A $chain -j DROP
""")

OFFLINE_RULES = Template("""\
#!/bin/sh
# Network policy: offline
set -e
$iptables -F $chain
$iptables -P $chain ACCEPT
$iptables -A $chain -o lo -j ACCEPT
$iptables -A $chain -d $loopback -j ACCEPT
$iptables -A $chain -j DROP
""")

STARTUP_HOOK = Template("""\
#!/bin/sh
# Re-apply network restrictions at login
if [ -f $script_path ]; then
    if [ "$$(id -u)" -eq 0 ]; then
        $script_path >/dev/null 2>&1 || true
    else
        sudo -n $script_path >/dev/null 2>&1 || true
    fi
fi
""")

SUDOERS_RULE = Template("""\
# Allow re-applying network restrictions without a password
$username ALL=(root) NOPASSWD: $local_script, $offline_script
""")

ENABLE_SCRIPT = Template("""\
#!/bin/sh
# Re-enable whichever network restriction is installed
if [ -f $local_script ]; then
    sh $local_script
elif [ -f $offline_script ]; then
    sh $offline_script
else
    echo "No network restriction script found"
    exit 1
fi
echo "Network restrictions enabled"
""")

DISABLE_SCRIPT = Template("""\
#!/bin/sh
# Temporarily lift network restrictions (they return at next login)
$iptables -F $chain
$iptables -P $chain ACCEPT
echo "Network restrictions disabled until next login"
""")

_RULE_TEMPLATES = {
    NetworkMode.LOCAL: LOCAL_RULES,
    NetworkMode.OFFLINE: OFFLINE_RULES,
}


def render(template: Template, params: object) -> str:
    """Fill a template from a parameter dataclass."""
    return template.substitute(asdict(params))


def render_rules(mode: NetworkMode, params: RuleParams) -> str:
    """Render the apply-script for a restrictive network mode.

    Raises:
        ValueError: If mode has no rule script (NetworkMode.FULL)
    """
    template = _RULE_TEMPLATES.get(mode)
    if template is None:
        raise ValueError(f"No rule script for network mode {mode.value!r}")
    return render(template, params)


def render_clear_commands(params: RuleParams) -> list[str]:
    """Commands that flush the chain and reset its policy to ACCEPT."""
    return render(CLEAR_CHAIN, params).splitlines()
