"""Command-line entry point.

Usage:
    uv run sysindex                      # interactive dashboard
    uv run sysindex tui --interval 5
    uv run sysindex network
    uv run sysindex all --json
    uv run sysindex --dump-config > ~/.config/sysindex/config.toml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from sysindex.config import configure_logging, dump_default_config, load_config
from sysindex.dashboard import run_dashboard
from sysindex.report import REPORTS, format_json
from sysindex.snapshot import collect_snapshot
from sysindex.terminal import DashboardError

logger = logging.getLogger(__name__)

# Reports that show probe results; the others skip the network round trips.
_NETWORK_REPORTS = {"overview", "network", "all"}

_REPORT_HELP = {
    "overview": "Display system overview",
    "cpu": "Display CPU information",
    "memory": "Display memory information",
    "disks": "Display disk information",
    "network": "Display network information",
    "all": "Display all system information",
}


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sysindex",
        description="Display comprehensive system information.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to TOML config file",
    )
    parser.add_argument(
        "--no-network",
        action="store_true",
        help="Skip the local IP, public IP and bandwidth probes",
    )
    parser.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the default configuration as TOML and exit",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    tui = sub.add_parser("tui", help="Start the interactive dashboard (default)")
    tui.add_argument(
        "--interval",
        type=_positive_float,
        default=None,
        help="Seconds between refreshes (default: 2)",
    )
    for name, text in _REPORT_HELP.items():
        report = sub.add_parser(name, help=text)
        if name == "all":
            report.add_argument("--json", action="store_true", help="Emit JSON")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.dump_config:
        print(dump_default_config(), end="")
        return 0

    config = load_config(args.config)
    if args.no_network:
        config = {**config, "network_probes": False}

    command = args.command or "tui"
    try:
        configure_logging(config["log_file"], config["log_level"], interactive=command == "tui")
    except OSError as e:
        print(f"sysindex: cannot open log file: {e}", file=sys.stderr)
        return 1

    if command == "tui":
        try:
            run_dashboard(config, getattr(args, "interval", None))
        except DashboardError as e:
            logger.error("dashboard aborted: %s", e)
            print(f"sysindex: {e}", file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            pass
        return 0

    if command not in _NETWORK_REPORTS:
        config = {**config, "network_probes": False}

    snapshot = collect_snapshot(config)
    if getattr(args, "json", False):
        print(format_json(snapshot))
    else:
        print(REPORTS[command](snapshot))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
