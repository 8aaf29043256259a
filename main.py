#!/usr/bin/env python3
"""minvar: minimum-variance crypto portfolios.

Usage:
    python main.py optimize BTC ETH SOL                  # 30-day window
    python main.py optimize bitcoin ethereum --days 90
    python main.py optimize BTC ETH --json               # machine-readable
    python main.py resolve BTC xbt solana                # show asset ids
    python main.py bot                                   # run Telegram bot
"""

import argparse
import json
import sys

from minvar.bot.messages import format_error, format_result
from minvar.config import MAX_WINDOW_DAYS, MIN_WINDOW_DAYS
from minvar.errors import MinVarError
from minvar.pipeline import MinVariancePipeline
from minvar.utils.logger import setup_logger

logger = setup_logger("main")


def _window(value: str) -> int:
    days = int(value)
    if not MIN_WINDOW_DAYS <= days <= MAX_WINDOW_DAYS:
        raise argparse.ArgumentTypeError(
            f"must be between {MIN_WINDOW_DAYS} and {MAX_WINDOW_DAYS}"
        )
    return days


# ============================================================
# COMMANDS
# ============================================================

def cmd_optimize(args):
    """Compute the minimum-variance weights for the given tickers."""
    pipeline = MinVariancePipeline.from_settings()
    result = pipeline.run(args.tickers, args.days)
    if args.json:
        print(json.dumps(result.as_dict(), indent=2))
    else:
        print(format_result(result))


def cmd_resolve(args):
    """Show which asset id each ticker maps to."""
    pipeline = MinVariancePipeline.from_settings()
    for ticker in args.tickers:
        asset_id = pipeline.resolver.resolve_one(ticker)
        print(f"  {ticker:15s} -> {asset_id or '(unknown)'}")


def cmd_bot(args):
    """Run the Telegram long-polling bot."""
    from minvar.bot.telegram import TelegramBot

    bot = TelegramBot(MinVariancePipeline.from_settings())
    bot.run_forever()


def main():
    parser = argparse.ArgumentParser(
        description="minvar: minimum-variance crypto portfolios",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", help="Commands")

    # optimize
    p = sub.add_parser("optimize", help="Minimum-variance weights")
    p.add_argument("tickers", nargs="+", help="Symbols or CoinGecko ids")
    p.add_argument("--days", type=_window, default=None,
                   help=f"Lookback window in days ({MIN_WINDOW_DAYS}-{MAX_WINDOW_DAYS})")
    p.add_argument("--json", action="store_true", help="Print JSON instead of text")
    p.set_defaults(func=cmd_optimize)

    # resolve
    p = sub.add_parser("resolve", help="Resolve tickers to asset ids")
    p.add_argument("tickers", nargs="+")
    p.set_defaults(func=cmd_resolve)

    # bot
    p = sub.add_parser("bot", help="Run the Telegram bot")
    p.set_defaults(func=cmd_bot)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)
    try:
        args.func(args)
    except MinVarError as e:
        logger.error("%s failed: %s", args.command, e)
        print(format_error(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
