"""Command-line entry point for the stream host control panel."""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from control_panel.config import PanelConfig, get_config
from control_panel.panel import ControlPanel
from logging_module.logger import setup_logging
from shared.errors import PanelError
from shared.results import ApplyResult, OperationResult

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stream-host-control",
        description="Manage the streaming daemon's config, presets and process",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show daemon and panel status
  stream-host-control status

  # Activate a preset and roll back if the daemon fails to restart
  stream-host-control apply <preset-id> --rollback

  # Run the panel in the foreground (watchdog, session monitor)
  stream-host-control run
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show daemon status, process state and active preset")
    sub.add_parser("presets", help="List presets")

    apply = sub.add_parser("apply", help="Activate a preset")
    apply.add_argument("preset_id", help="Preset id")
    apply.add_argument("--no-restart", action="store_true", help="Write config without restarting")
    apply.add_argument("--rollback", action="store_true", help="Restore backup if the restart fails")

    sub.add_parser("match", help="Compare the live config against every preset")
    sub.add_parser("start", help="Start the daemon")
    sub.add_parser("stop", help="Stop the daemon (no watchdog restart)")
    sub.add_parser("restart", help="Restart the daemon")
    sub.add_parser("recover", help="Undo an orphaned session's display changes")
    sub.add_parser("backup", help="Back up the daemon config")
    sub.add_parser("restore", help="Restore the newest config backup")
    sub.add_parser("run", help="Run the panel until interrupted")

    return parser


def build_panel(config: PanelConfig) -> ControlPanel:
    return ControlPanel(config)


def _report(result, label: str) -> int:
    if result.success:
        print(f"✓ {label}")
        return 0
    detail = f" [{result.phase}]" if isinstance(result, ApplyResult) and result.phase else ""
    print(f"✗ {label} failed{detail}: {result.error} ({result.code})", file=sys.stderr)
    return 1


def _print_presets(panel: ControlPanel) -> int:
    active = panel.repository.active_id
    for preset in panel.list_presets():
        marker = "*" if preset.id == active else " "
        flags = " (read-only)" if preset.is_read_only else ""
        print(f"{marker} {preset.id}  {preset.name}{flags}")
    return 0


def _print_matches(panel: ControlPanel) -> int:
    for result in panel.match():
        print(result.summary())
        for mismatch in result.mismatches:
            print(f"    {mismatch.key}: expected {mismatch.expected!r}, found {mismatch.observed!r}")
    return 0


async def _run_forever(panel: ControlPanel) -> int:
    await panel.startup()
    try:
        await asyncio.Event().wait()
    finally:
        await panel.shutdown()
    return 0


async def dispatch(panel: ControlPanel, args: argparse.Namespace) -> int:
    """Execute one parsed command against a panel."""
    command = args.command

    if command == "status":
        print(json.dumps(await panel.status(), indent=2, default=str))
        return 0
    if command == "presets":
        return _print_presets(panel)
    if command == "match":
        return _print_matches(panel)
    if command == "apply":
        result = await panel.activate_preset(
            args.preset_id,
            restart=not args.no_restart,
            rollback_on_failure=args.rollback,
        )
        return _report(result, f"Preset {args.preset_id} activated")
    if command == "start":
        return _report(await panel.start_daemon(), "Daemon started")
    if command == "stop":
        return _report(await panel.stop_daemon(), "Daemon stopped")
    if command == "restart":
        return _report(await panel.restart_daemon(), "Daemon restarted")
    if command == "recover":
        report = await panel.run_recovery()
        print(report.details())
        return 0 if report.success else 1
    if command == "backup":
        return _report(panel.backup(), "Config backed up")
    if command == "restore":
        return _report(panel.rollback(), "Config restored")
    if command == "run":
        return await _run_forever(panel)

    raise ValueError(f"Unknown command: {command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = get_config()
    except ValueError as e:
        print(f"✗ Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(config.logging)
    panel = build_panel(config)

    try:
        return asyncio.run(dispatch(panel, args))
    except PanelError as e:
        print(f"✗ {e.code}: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
