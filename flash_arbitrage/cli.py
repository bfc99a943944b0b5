"""
Flash arbitrage command line interface.

Usage:
    flash-arb paper --config configs/paper.yaml
    flash-arb paper --config configs/paper.yaml --json
    flash-arb scan --config configs/mainnet.yaml --rpc-url https://...
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv
from tabulate import tabulate
from web3 import Web3

from . import logging_config
from .chain import ChainVenueReader
from .exceptions import ConfigurationError, ExecutionAborted, FlashArbitrageError, NoProfitableTrade
from .metrics import ArbitrageMetrics
from .settings import BotSettings, build_paper_bot, load_settings
from .solver import OptimalSizeSolver
from .types import ArbitrageResult, SwapDirection
from .utils import format_signed_units, format_units, safe_json_dump
from .venues import PaperFlashLender
from .version import __version__

logger = logging.getLogger(__name__)


def _non_negative_int(value: str) -> int:
    parsed = int(value)
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative: {value}")
    return parsed


def _max_input(settings: BotSettings, args: argparse.Namespace) -> Optional[int]:
    """--max-input wins over the settings file, including an explicit 0."""
    if args.max_input is not None:
        return args.max_input
    return settings.max_input


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="flash-arb",
        description="Two-venue flash-loan arbitrage bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Size and execute against the paper venues in a settings file
  flash-arb paper --config configs/paper.yaml

  # Read both venues from chain and print the recommended trade
  flash-arb scan --config configs/mainnet.yaml
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    paper = subparsers.add_parser("paper", help="Solve and execute against in-memory venues")
    scan = subparsers.add_parser("scan", help="Solve against on-chain venue state (no execution)")

    for sub in (paper, scan):
        sub.add_argument("--config", required=True, help="Path to settings YAML file")
        sub.add_argument("--max-input", type=_non_negative_int, default=None, help="Cap on the borrowed amount (atomic units)")
        sub.add_argument("--decimals", type=int, default=18, help="Decimals used to display amounts (default: 18)")
        sub.add_argument("--json", action="store_true", help="Print the result as JSON")

    scan.add_argument("--rpc-url", default=None, help="RPC endpoint (default: from settings rpc_url_env)")

    return parser.parse_args(argv)


def _print_result(result: ArbitrageResult, assets, decimals: int, as_json: bool, title: str) -> None:
    if as_json:
        print(safe_json_dump({"status": title, **result.to_dict()}))
        return

    asset_in = assets[result.direction.token_in]
    asset_out = assets[result.direction.token_out]
    rows = [
        ["Direction", f"{asset_in} -> {asset_out} ({result.direction.value})"],
        ["Borrowed", f"{format_units(result.swap_amount, decimals)} {asset_in}"],
        ["Leg 1 out", f"{format_units(result.leg1_amount_out, decimals)} {asset_out}"],
        ["Leg 2 out", f"{format_units(result.leg2_amount_out, decimals)} {asset_in}"],
        ["Loan premium", f"{format_units(result.loan_premium, decimals)} {asset_in}"],
        [f"Change {assets[0]}", format_signed_units(result.balance_change0, decimals)],
        [f"Change {assets[1]}", format_signed_units(result.balance_change1, decimals)],
    ]
    print(f"📊 {title}")
    print(tabulate(rows, headers=["Field", "Value"], tablefmt="grid"))


def _start_metrics(settings: BotSettings) -> Optional[ArbitrageMetrics]:
    if settings.metrics_port is None:
        return None
    metrics = ArbitrageMetrics()
    metrics.start_server(settings.metrics_port)
    return metrics


def run_paper(settings: BotSettings, args: argparse.Namespace) -> int:
    bot = build_paper_bot(settings, metrics=_start_metrics(settings))
    max_input = _max_input(settings, args)
    assets = bot.configuration.assets

    try:
        result = bot.solve_and_execute(max_input)
    except NoProfitableTrade:
        print("❌ No profitable arbitrage between the configured venues")
        return 0
    except ExecutionAborted as e:
        print(f"❌ Execution aborted ({type(e).__name__}): {e}", file=sys.stderr)
        return 1

    _print_result(result, assets, args.decimals, args.json, "Settled")
    return 0


def run_scan(settings: BotSettings, args: argparse.Namespace) -> int:
    load_dotenv()
    rpc_url = args.rpc_url or os.getenv(settings.rpc_url_env)
    if not rpc_url:
        print(f"❌ No RPC URL: pass --rpc-url or set {settings.rpc_url_env}", file=sys.stderr)
        return 1

    source_settings = settings.venues[settings.source_venue]
    destination_settings = settings.venues[settings.destination_venue]
    for name, venue in ((settings.source_venue, source_settings), (settings.destination_venue, destination_settings)):
        if venue.address is None:
            print(f"❌ Venue {name} has no address to read from", file=sys.stderr)
            return 1

    web3 = Web3(Web3.HTTPProvider(rpc_url))
    readers = [
        ChainVenueReader(
            web3,
            venue.address,
            venue.kind,
            venue.asset0,
            venue.asset1,
            fee_bps=venue.fee_bps,
            words_each_side=venue.words_each_side,
        )
        for venue in (source_settings, destination_settings)
    ]
    source, destination = (reader.get_state() for reader in readers)

    lender_settings = settings.lenders[settings.flash_venue]
    lender = PaperFlashLender(
        settings.flash_venue, balances=lender_settings.balances, fee_bps=lender_settings.fee_bps
    )
    assets = (destination_settings.asset0, destination_settings.asset1)
    max_input = _max_input(settings, args)
    limits = {}
    for direction in SwapDirection:
        available = lender.available(assets[direction.token_in])
        limits[direction] = available if max_input is None else min(max_input, available)

    result = OptimalSizeSolver().solve(
        source,
        destination,
        limits,
        reverse_source=settings.reverse_source_tokens,
        loan_premium=lender.premium_for,
    )
    if result is None:
        print("❌ No profitable arbitrage between the configured venues")
        return 0

    _print_result(result, assets, args.decimals, args.json, "Recommended trade")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        print(f"❌ Config error: {e}", file=sys.stderr)
        return 1

    logging_config.setup(settings.log_level)

    try:
        if args.command == "paper":
            return run_paper(settings, args)
        return run_scan(settings, args)
    except FlashArbitrageError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"❌ {type(e).__name__}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
