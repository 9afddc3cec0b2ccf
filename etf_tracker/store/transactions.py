"""SQLite transaction store - portfolios and their buy transactions.

Purchases are always inserted as new rows so the full purchase history is
kept; positions are aggregated on read and never written back.
"""

from __future__ import annotations

import math
import sqlite3
from datetime import date, datetime
from pathlib import Path

from etf_tracker.config import Paths
from etf_tracker.errors import InvalidInputError, parse_date
from etf_tracker.models import AggregatedPosition, Transaction
from etf_tracker.resolver import normalize_ticker
from etf_tracker.utils.logger import setup_logger

logger = setup_logger("store")

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS portfolios (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS investments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        portfolio_id INTEGER NOT NULL REFERENCES portfolios (id),
        ticker TEXT NOT NULL,
        shares REAL NOT NULL,
        buy_price REAL NOT NULL,
        buy_date TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_investments_portfolio_ticker ON investments (portfolio_id, ticker)",
)


def _positive(name: str, raw) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidInputError(f"{name} must be positive, got {value}")
    return value


def _row_to_transaction(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=row["id"],
        portfolio_id=row["portfolio_id"],
        ticker=row["ticker"],
        shares=float(row["shares"]),
        buy_price=float(row["buy_price"]),
        buy_date=date.fromisoformat(row["buy_date"]),
    )


class TransactionStore:
    """Relational store for portfolios and buy transactions."""

    def __init__(self, db_path: Path | str | None = None):
        self.db_path = Path(db_path) if db_path is not None else Paths.DB
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        conn = self._connect()
        try:
            for statement in _SCHEMA:
                conn.execute(statement)
            conn.commit()
        finally:
            conn.close()

    # ------------------------------------------------------------------
    #  Portfolios
    # ------------------------------------------------------------------
    def create_portfolio(self, name: str, description: str = "") -> int:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Portfolio name is required")
        conn = self._connect()
        try:
            cur = conn.execute(
                "INSERT INTO portfolios (name, description, created_at) VALUES (?, ?, ?)",
                (name, description, datetime.now().isoformat(timespec="seconds")),
            )
            conn.commit()
            logger.info("Created portfolio %d (%s)", cur.lastrowid, name)
            return cur.lastrowid
        finally:
            conn.close()

    def list_portfolios(self) -> list[dict]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT p.id, p.name, p.description, p.created_at, COUNT(i.id) AS transaction_count "
                "FROM portfolios p LEFT JOIN investments i ON i.portfolio_id = p.id "
                "GROUP BY p.id ORDER BY p.id"
            ).fetchall()
            return [dict(r) for r in rows]
        finally:
            conn.close()

    # ------------------------------------------------------------------
    #  Transactions (write side)
    # ------------------------------------------------------------------
    def add_transaction(self, portfolio_id: int, ticker: str, shares, buy_price, buy_date) -> int:
        """Insert a new buy; earlier buys of the same ticker are left untouched."""
        ticker = normalize_ticker(ticker)
        if not ticker:
            raise InvalidInputError("Ticker is required")
        shares = _positive("shares", shares)
        buy_price = _positive("buy_price", buy_price)
        day = parse_date(buy_date)

        conn = self._connect()
        try:
            cur = conn.execute(
                "INSERT INTO investments (portfolio_id, ticker, shares, buy_price, buy_date) "
                "VALUES (?, ?, ?, ?, ?)",
                (portfolio_id, ticker, shares, buy_price, day.isoformat()),
            )
            conn.commit()
            logger.info("Recorded buy: %s x%.4f @ %.4f on %s (portfolio %d)",
                        ticker, shares, buy_price, day, portfolio_id)
            return cur.lastrowid
        finally:
            conn.close()

    def update_transaction(self, transaction_id: int, ticker: str, shares, buy_price, buy_date) -> bool:
        ticker = normalize_ticker(ticker)
        if not ticker:
            raise InvalidInputError("Ticker is required")
        shares = _positive("shares", shares)
        buy_price = _positive("buy_price", buy_price)
        day = parse_date(buy_date)

        conn = self._connect()
        try:
            cur = conn.execute(
                "UPDATE investments SET ticker = ?, shares = ?, buy_price = ?, buy_date = ? WHERE id = ?",
                (ticker, shares, buy_price, day.isoformat(), transaction_id),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def delete_transaction(self, transaction_id: int) -> bool:
        conn = self._connect()
        try:
            cur = conn.execute("DELETE FROM investments WHERE id = ?", (transaction_id,))
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def move_transaction(self, transaction_id: int, target_portfolio_id: int) -> bool:
        conn = self._connect()
        try:
            cur = conn.execute(
                "UPDATE investments SET portfolio_id = ? WHERE id = ?",
                (target_portfolio_id, transaction_id),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    # ------------------------------------------------------------------
    #  Read contract used by the analytics engine
    # ------------------------------------------------------------------
    def get_aggregated_positions(self, portfolio_id: int) -> list[AggregatedPosition]:
        conn = self._connect()
        try:
            rows = conn.execute(
                """
                SELECT ticker,
                       SUM(shares) AS shares,
                       SUM(shares * buy_price) / SUM(shares) AS avg_buy_price,
                       MIN(buy_date) AS first_buy_date,
                       COUNT(*) AS purchase_count
                FROM investments
                WHERE portfolio_id = ?
                GROUP BY ticker
                ORDER BY ticker
                """,
                (portfolio_id,),
            ).fetchall()
        finally:
            conn.close()
        return [
            AggregatedPosition(
                ticker=r["ticker"],
                total_shares=float(r["shares"]),
                weighted_avg_buy_price=float(r["avg_buy_price"]),
                first_buy_date=date.fromisoformat(r["first_buy_date"]),
                purchase_count=int(r["purchase_count"]),
            )
            for r in rows
        ]

    def get_raw_transactions(self, portfolio_id: int) -> list[Transaction]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT id, portfolio_id, ticker, shares, buy_price, buy_date FROM investments "
                "WHERE portfolio_id = ? ORDER BY buy_date, id",
                (portfolio_id,),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_transaction(r) for r in rows]

    def get_distinct_tickers(self, portfolio_id: int) -> list[str]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT DISTINCT ticker FROM investments WHERE portfolio_id = ? ORDER BY ticker",
                (portfolio_id,),
            ).fetchall()
        finally:
            conn.close()
        return [r["ticker"] for r in rows]

    def get_first_buy_date(self, portfolio_id: int) -> date | None:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT MIN(buy_date) AS first_date FROM investments WHERE portfolio_id = ?",
                (portfolio_id,),
            ).fetchone()
        finally:
            conn.close()
        if row is None or row["first_date"] is None:
            return None
        return date.fromisoformat(row["first_date"])

    def get_ticker_transactions(self, portfolio_id: int, ticker: str) -> list[Transaction]:
        """Purchase history for one ticker, newest first."""
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT id, portfolio_id, ticker, shares, buy_price, buy_date FROM investments "
                "WHERE portfolio_id = ? AND ticker = ? ORDER BY buy_date DESC, id DESC",
                (portfolio_id, normalize_ticker(ticker)),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_transaction(r) for r in rows]
