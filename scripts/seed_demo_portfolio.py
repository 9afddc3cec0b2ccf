"""
Seed the database with a demo ETF portfolio.

Creates one portfolio and records a handful of buys, including repeat
purchases of the same ETF, so every analytics view has something to show.

Usage:
    python scripts/seed_demo_portfolio.py
    python scripts/seed_demo_portfolio.py --db /tmp/demo.db
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from etf_tracker.store.transactions import TransactionStore  # noqa: E402

PORTFOLIO_NAME = "Demo ETF"

# Ticker, Shares, Buy price (EUR), Buy date
PURCHASES = [
    ("VWCE", 20, 98.40, "2023-03-15"),
    ("VWCE", 10, 105.32, "2024-06-03"),
    ("SWDA", 15, 82.10, "2023-05-10"),
    ("EIMI", 40, 28.75, "2023-09-01"),
    ("AGGH", 30, 4.92, "2024-01-15"),
    ("SGLD", 5, 170.20, "2024-02-20"),
    ("EIMI", 25, 31.40, "2025-01-10"),
]


def seed(db_path: str | None = None) -> int:
    store = TransactionStore(db_path) if db_path else TransactionStore()
    pid = store.create_portfolio(PORTFOLIO_NAME, "Sample accumulation portfolio")
    for ticker, shares, price, buy_date in PURCHASES:
        store.add_transaction(pid, ticker, shares, price, buy_date)
        print(f"  {ticker:6s} {shares:>4} @ {price:>8.2f}  {buy_date}")
    print(f"\nSeeded portfolio '{PORTFOLIO_NAME}' (id {pid}) with {len(PURCHASES)} purchases")
    return pid


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a demo ETF portfolio")
    parser.add_argument("--db", default="", help="SQLite database path (default: from settings)")
    args = parser.parse_args()
    seed(args.db or None)
