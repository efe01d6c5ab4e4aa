"""Command-line interface for the SUI lending hub."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from .config import load_config
from .logging_setup import configure_logging
from .registry import parse_protocol
from .services import ALL, LendingHub


def _claim_target(value: str):
    if value.lower() == ALL:
        return ALL
    protocol = parse_protocol(value)
    if protocol is None:
        raise argparse.ArgumentTypeError(f"unknown protocol '{value}'")
    return protocol


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="lending-hub",
        description="SUI lending markets, positions and reward claims",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("markets", help="Print the market table")

    positions_parser = sub.add_parser("positions", help="Print positions and rewards")
    positions_parser.add_argument(
        "address", nargs="?", default=None, help="Wallet address (overrides config)"
    )

    claim_parser = sub.add_parser("claim", help="Claim rewards")
    claim_parser.add_argument(
        "target", type=_claim_target, help="Protocol name or 'all'"
    )
    claim_parser.add_argument(
        "--no-swap", action="store_true", help="Transfer reward tokens as they are"
    )
    claim_parser.add_argument(
        "--target", dest="swap_target", default=None, help="Swap target symbol"
    )

    preview_parser = sub.add_parser("preview", help="Estimate swapping rewards")
    preview_parser.add_argument(
        "target", type=_claim_target, help="Protocol name or 'all'"
    )

    watch_parser = sub.add_parser("watch", help="Poll continuously and print summaries")
    watch_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=60,
        help="Summary interval in seconds (default: 60)",
    )

    return parser


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command. Returns the process exit code."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    hub = LendingHub(config, address=getattr(args, "address", None))

    if args.command == "markets":
        print(await hub.show_markets())
    elif args.command == "positions":
        print(await hub.show_positions())
    elif args.command == "claim":
        if args.no_swap:
            hub.claims.set_swap_enabled(False)
        if args.swap_target:
            hub.claims.set_swap_target(args.swap_target)
        receipt = await hub.claim(args.target)
        if receipt is None:
            print(f"Claim failed: {hub.claims.last_error or 'nothing was submitted'}")
            return 1
        print(json.dumps(receipt, indent=2, default=str))
    elif args.command == "preview":
        preview = await hub.preview(args.target)
        if preview is None:
            print("Preview unavailable.")
            return 1
        print(hub.format_preview(preview))
    elif args.command == "watch":
        await hub.watch(args.interval)
    else:
        build_parser().print_help()
        return 1
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        code = asyncio.run(_run(args))
    except KeyboardInterrupt:
        code = 130
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 2
    sys.exit(code)
