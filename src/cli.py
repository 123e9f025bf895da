"""Command-line interface for isolate."""

import argparse
import logging
import os
import sys
from pathlib import Path

from environment import WslEnvironment
from errors import ConfigurationError, ExecutionError
from model import FilesystemMode, NetworkMode, PolicyAxis
from policy import ApplyResult, IsolationEngine, RuleParams
from settings import IsolationSettings, load_settings, save_settings

ISOLATE_VERSION = "0.3.0"

log = logging.getLogger(__name__)


def print_error_box(title: str, *lines: str) -> None:
    """Print a formatted error box to stderr.

    Args:
        title: The error title (will be prefixed with "Error: ")
        *lines: Additional lines to print in the box
    """
    print("=" * 60, file=sys.stderr)
    print(f"Error: {title}", file=sys.stderr)
    print("", file=sys.stderr)
    for line in lines:
        print(line, file=sys.stderr)
    print("=" * 60, file=sys.stderr)


def _get_log_path() -> Path:
    """Get the log file path using XDG Base Directory spec."""
    xdg_state = os.environ.get("XDG_STATE_HOME", str(Path.home() / ".local" / "state"))
    log_dir = Path(xdg_state) / "isolate"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / "isolate.log"


def setup_logging(verbose: bool = False) -> None:
    """Log to the state directory; --verbose also logs to stderr."""
    logging.basicConfig(
        filename=str(_get_log_path()),
        level=logging.DEBUG,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    if verbose:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logging.getLogger().addHandler(handler)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="isolate",
        description="Apply and inspect filesystem/network isolation of a WSL environment.",
    )
    parser.add_argument("--version", action="version", version=f"isolate {ISOLATE_VERSION}")
    parser.add_argument("--distro", metavar="NAME", help="WSL distribution (default from settings)")
    parser.add_argument("--settings", metavar="PATH", type=Path, help="Settings file to use")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log to stderr")

    sub = parser.add_subparsers(dest="action", required=True)

    apply = sub.add_parser("apply", help="Apply isolation modes")
    apply.add_argument(
        "--filesystem", choices=[m.value for m in FilesystemMode], help="Filesystem mode"
    )
    apply.add_argument("--network", choices=[m.value for m in NetworkMode], help="Network mode")
    apply.add_argument("--host-path", metavar="PATH", help="Host folder shared in limited mode")
    apply.add_argument("--mount-point", metavar="PATH", help="Mount point for the shared folder")
    apply.add_argument("--user", metavar="NAME", help="Environment user owning the mount")
    apply.add_argument("--no-restart", action="store_true", help="Don't restart the environment")
    apply.add_argument("--save", action="store_true", help="Remember these choices")

    sub.add_parser("status", help="Show current isolation")
    sub.add_parser("remove-restrictions", help="Lift network restrictions")
    sub.add_parser("tui", help="Pick modes interactively")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return create_parser().parse_args(argv)


def merge_settings(args: argparse.Namespace, settings: IsolationSettings) -> IsolationSettings:
    """Overlay command-line flags on stored settings."""
    if args.distro:
        settings.distro = args.distro
    if getattr(args, "filesystem", None):
        settings.filesystem_mode = FilesystemMode(args.filesystem)
    if getattr(args, "network", None):
        settings.network_mode = NetworkMode(args.network)
    if getattr(args, "host_path", None):
        settings.host_path = args.host_path
    if getattr(args, "mount_point", None):
        settings.mount_point = args.mount_point
    if getattr(args, "user", None):
        settings.username = args.user
    return settings


def build_engine(settings: IsolationSettings) -> IsolationEngine:
    env = WslEnvironment(settings.distro)
    return IsolationEngine(env, RuleParams(internal_subnet=settings.internal_subnet))


def report(results: list[ApplyResult]) -> int:
    """Print apply results; returns the process exit code."""
    failed = [r for r in results if not r.ok]
    for result in results:
        if result.ok:
            print(str(result))
    if failed:
        print_error_box("Isolation not applied", *(str(r) for r in failed))
        return 1
    return 0


def cmd_apply(args: argparse.Namespace, engine: IsolationEngine, settings: IsolationSettings) -> int:
    # A single axis flag applies just that axis
    if args.filesystem and not args.network:
        results = [
            engine.apply(
                PolicyAxis.FILESYSTEM,
                settings.filesystem_mode,
                settings.host_path,
                settings.mount_point,
                settings.username,
            )
        ]
        if results[0].ok and not args.no_restart:
            engine.env.restart()
            if settings.filesystem_mode == FilesystemMode.LIMITED:
                engine.filesystem.mount_all()
    elif args.network and not args.filesystem:
        results = [engine.apply(PolicyAxis.NETWORK, settings.network_mode, username=settings.username)]
    else:
        results = engine.apply_all(
            settings.filesystem_mode,
            settings.network_mode,
            settings.host_path,
            settings.mount_point,
            settings.username,
            restart=not args.no_restart,
        )
    return report(results)


def cmd_status(engine: IsolationEngine) -> int:
    status = engine.inspect()
    print(f"Environment: {engine.env.name}")
    for line in status.get_summary():
        print(line)
    return 0


def cmd_tui(engine: IsolationEngine, settings: IsolationSettings) -> int:
    from app import IsolationTUI

    selection = IsolationTUI(settings, engine).run()
    if selection is None:
        print("Cancelled.")
        return 0
    settings.filesystem_mode = selection.filesystem_mode
    settings.network_mode = selection.network_mode
    settings.host_path = selection.host_path
    return report(
        engine.apply_all(
            settings.filesystem_mode,
            settings.network_mode,
            settings.host_path,
            settings.mount_point,
            settings.username,
        )
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.settings) if args.settings else load_settings()
        settings = merge_settings(args, settings)
        engine = build_engine(settings)
    except ConfigurationError as e:
        print_error_box("Invalid settings", str(e))
        return 1
    log.debug("isolate %s: %s on %s", ISOLATE_VERSION, args.action, settings.distro)

    try:
        if args.action == "apply":
            code = cmd_apply(args, engine, settings)
            if code == 0 and args.save:
                if args.settings:
                    save_settings(settings, args.settings)
                else:
                    save_settings(settings)
            return code
        elif args.action == "status":
            return cmd_status(engine)
        elif args.action == "remove-restrictions":
            return report([engine.remove_restrictions()])
        elif args.action == "tui":
            return cmd_tui(engine, settings)
    except ExecutionError as e:
        print_error_box("Command failed in environment", str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
