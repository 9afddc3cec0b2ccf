#!/usr/bin/env python3
"""ETF Tracker: personal ETF portfolio analytics.

Usage:
    python main.py portfolios                              # list portfolios
    python main.py portfolios --create "Long term"         # new portfolio
    python main.py add 1 VWCE 10 105.32 2024-06-01         # record a buy
    python main.py history 1 --days 90                     # value curve
    python main.py metrics 1                               # valuation snapshot
    python main.py volatility 1                            # volatility analysis
    python main.py risk 1 --risk-free-rate 0.03            # Sharpe / Sortino / Calmar
    python main.py correlation 1 --days 180                # pairwise correlation
    python main.py rebalance 1 --target VWCE=70 --target AGGH=30
    python main.py purchases 1 VWCE                        # buys of one ETF
    python main.py serve --port 8000                       # HTTP API
"""

import argparse
import json
import sys

from etf_tracker.analysis.engine import PortfolioAnalyticsEngine
from etf_tracker.data_sources.price_source import PriceSourceClient
from etf_tracker.errors import InvalidInputError, parse_portfolio_id
from etf_tracker.store.transactions import TransactionStore
from etf_tracker.utils.cache import DataCache
from etf_tracker.utils.logger import setup_logger

logger = setup_logger("main")


def _print(data):
    print(json.dumps(data, indent=2, default=str))


def _engine(args) -> PortfolioAnalyticsEngine:
    # Histories persist on disk between CLI runs; quotes stay in memory
    client = PriceSourceClient(history_cache=DataCache("price_history"))
    store = TransactionStore(args.db) if args.db else TransactionStore()
    return PortfolioAnalyticsEngine(store=store, client=client)


def _parse_targets(pairs: list[str]) -> dict:
    targets = {}
    for pair in pairs or []:
        ticker, sep, pct = pair.partition("=")
        if not sep:
            raise InvalidInputError(f"Target must look like TICKER=PERCENT, got {pair!r}")
        targets[ticker] = pct
    return targets


def cmd_portfolios(args):
    """List portfolios, optionally creating one first."""
    store = TransactionStore(args.db) if args.db else TransactionStore()
    if args.create:
        store.create_portfolio(args.create, args.description)
    _print(store.list_portfolios())


def cmd_add(args):
    """Record a buy transaction."""
    store = TransactionStore(args.db) if args.db else TransactionStore()
    pid = parse_portfolio_id(args.portfolio_id)
    tx_id = store.add_transaction(pid, args.ticker, args.shares, args.price, args.date)
    _print({"id": tx_id, "portfolioId": pid, "ticker": args.ticker.upper()})


def cmd_history(args):
    _print(_engine(args).historical(args.portfolio_id, args.days))


def cmd_metrics(args):
    _print(_engine(args).valuation(args.portfolio_id))


def cmd_volatility(args):
    _print(_engine(args).volatility(args.portfolio_id, args.days))


def cmd_risk(args):
    _print(_engine(args).risk_metrics(args.portfolio_id, args.days, args.risk_free_rate))


def cmd_correlation(args):
    _print(_engine(args).correlation(args.portfolio_id, args.days))


def cmd_rebalance(args):
    _print(_engine(args).rebalance(args.portfolio_id, _parse_targets(args.target)))


def cmd_purchases(args):
    _print(_engine(args).purchase_history(args.portfolio_id, args.ticker))


def cmd_serve(args):
    """Run the HTTP API."""
    import uvicorn
    uvicorn.run("etf_tracker.api.server:app", host=args.host, port=args.port, reload=False)


def main():
    parser = argparse.ArgumentParser(
        description="ETF Tracker: personal ETF portfolio analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--db", default="", help="SQLite database path (default: from settings)")
    sub = parser.add_subparsers(dest="command", help="Commands")

    # portfolios
    p = sub.add_parser("portfolios", help="List portfolios")
    p.add_argument("--create", default="", help="Create a portfolio with this name first")
    p.add_argument("--description", default="", help="Description for --create")
    p.set_defaults(func=cmd_portfolios)

    # add
    p = sub.add_parser("add", help="Record a buy transaction")
    p.add_argument("portfolio_id")
    p.add_argument("ticker")
    p.add_argument("shares")
    p.add_argument("price")
    p.add_argument("date", help="yyyy-mm-dd or dd/mm/yyyy")
    p.set_defaults(func=cmd_add)

    # history
    p = sub.add_parser("history", help="Historical portfolio value vs invested capital")
    p.add_argument("portfolio_id")
    p.add_argument("--days", default=None, help="Window in days (>365 means MAX)")
    p.set_defaults(func=cmd_history)

    # metrics
    p = sub.add_parser("metrics", help="Current valuation and allocation")
    p.add_argument("portfolio_id")
    p.set_defaults(func=cmd_metrics)

    # volatility
    p = sub.add_parser("volatility", help="Volatility analysis")
    p.add_argument("portfolio_id")
    p.add_argument("--days", default=None)
    p.set_defaults(func=cmd_volatility)

    # risk
    p = sub.add_parser("risk", help="Risk-adjusted return metrics")
    p.add_argument("portfolio_id")
    p.add_argument("--days", default=None)
    p.add_argument("--risk-free-rate", default=None, help="Annual rate as a decimal (default 0.02)")
    p.set_defaults(func=cmd_risk)

    # correlation
    p = sub.add_parser("correlation", help="Correlation between held ETFs")
    p.add_argument("portfolio_id")
    p.add_argument("--days", default=None)
    p.set_defaults(func=cmd_correlation)

    # rebalance
    p = sub.add_parser("rebalance", help="Rebalancing recommendations")
    p.add_argument("portfolio_id")
    p.add_argument("--target", action="append", default=[],
                   help="TICKER=PERCENT, repeatable (default: equal weight)")
    p.set_defaults(func=cmd_rebalance)

    # purchases
    p = sub.add_parser("purchases", help="Purchase history of one ETF")
    p.add_argument("portfolio_id")
    p.add_argument("ticker")
    p.set_defaults(func=cmd_purchases)

    # serve
    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)
    try:
        args.func(args)
    except InvalidInputError as e:
        logger.error("%s", e)
        sys.exit(2)


if __name__ == "__main__":
    main()
