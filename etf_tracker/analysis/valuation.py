"""Valuation & performance - current value, profit and allocation snapshot.

Positions without a current price are reported with ``None`` values and
left out of the portfolio value; their cost still counts as invested.
"""

from __future__ import annotations

from etf_tracker.config import Fetch
from etf_tracker.data_sources.batch import fetch_current_prices
from etf_tracker.models import AggregatedPosition, format_date
from etf_tracker.utils.logger import setup_logger

logger = setup_logger("valuation")


def diversification_index(allocations: list[float]) -> float:
    """Inverse Herfindahl index in percent: 0 for one holding, 100*(1-1/N) for N equal ones."""
    if not allocations:
        return 0.0
    hhi = sum((a / 100) ** 2 for a in allocations)
    return max(0.0, (1 - hhi) * 100)


def _pct(numerator: float, denominator: float) -> float | None:
    if not denominator:
        return None
    return numerator / denominator * 100


class ValuationCalculator:
    """Price a portfolio's aggregated positions at current market prices."""

    def __init__(self, store, client, timeout: float = Fetch.JOIN_TIMEOUT, max_workers: int = Fetch.MAX_WORKERS):
        self.store = store
        self.client = client
        self.timeout = timeout
        self.max_workers = max_workers

    def _current_prices(self, tickers: list[str]) -> dict[str, float | None]:
        return fetch_current_prices(self.client, tickers, timeout=self.timeout, max_workers=self.max_workers)

    # ------------------------------------------------------------------
    #  Per-position detail
    # ------------------------------------------------------------------
    @staticmethod
    def _position_row(pos: AggregatedPosition, price: float | None) -> dict:
        if price is None:
            current_value = profit_loss = percent_change = None
        else:
            current_value = pos.total_shares * price
            profit_loss = current_value - pos.cost
            percent_change = _pct(profit_loss, pos.cost)
        return {
            "ticker": pos.ticker,
            "shares": pos.total_shares,
            "buyPrice": pos.weighted_avg_buy_price,
            "firstBuyDate": format_date(pos.first_buy_date),
            "purchaseCount": pos.purchase_count,
            "cost": pos.cost,
            "currentPrice": price,
            "currentValue": current_value,
            "profitLoss": profit_loss,
            "percentChange": percent_change,
            "allocation": None,
        }

    def positions(self, portfolio_id: int) -> list[dict]:
        """Aggregated positions enriched with current price and P/L."""
        positions = self.store.get_aggregated_positions(portfolio_id)
        prices = self._current_prices([p.ticker for p in positions])
        return [self._position_row(p, prices.get(p.ticker)) for p in positions]

    # ------------------------------------------------------------------
    #  Portfolio snapshot
    # ------------------------------------------------------------------
    def valuation(self, portfolio_id: int) -> dict:
        rows = self.positions(portfolio_id)

        total_invested = sum(r["cost"] for r in rows)
        priced = [r for r in rows if r["currentValue"] is not None]
        total_value = sum(r["currentValue"] for r in priced)
        missing = [r["ticker"] for r in rows if r["currentValue"] is None]
        if missing:
            logger.warning("Portfolio %d: no current price for %s", portfolio_id, ", ".join(missing))

        allocations: list[dict] = []
        if total_value > 0:
            for r in rows:
                alloc = None if r["currentValue"] is None else r["currentValue"] / total_value * 100
                r["allocation"] = alloc
                allocations.append({"ticker": r["ticker"], "allocation": alloc})

        profit = total_value - total_invested
        return {
            "totalInvested": total_invested,
            "totalValue": total_value,
            "profit": profit,
            "profitPercent": profit / total_invested * 100 if total_invested > 0 else 0.0,
            "allocations": allocations,
            "metrics": {
                "diversification": diversification_index(
                    [a["allocation"] for a in allocations if a["allocation"] is not None]
                ),
            },
            "positions": rows,
            "numberOfInvestments": len(rows),
            "averageInvestment": total_invested / len(rows) if rows else 0.0,
            "missingPrices": missing,
        }

    # ------------------------------------------------------------------
    #  Purchase history for one ticker
    # ------------------------------------------------------------------
    def purchase_history(self, portfolio_id: int, ticker: str) -> list[dict]:
        """Every buy of *ticker*, newest first, measured against today's price."""
        lots = self.store.get_ticker_transactions(portfolio_id, ticker)
        if not lots:
            return []
        price = self._current_prices([lots[0].ticker]).get(lots[0].ticker)

        history = []
        for tx in lots:
            if price is None:
                current_value = profit_loss = percent_change = None
                deviation = deviation_pct = None
            else:
                current_value = tx.shares * price
                profit_loss = current_value - tx.cost
                percent_change = _pct(profit_loss, tx.cost)
                deviation = tx.buy_price - price
                deviation_pct = _pct(deviation, price)
            history.append({
                "id": tx.id,
                "ticker": tx.ticker,
                "shares": tx.shares,
                "buyPrice": tx.buy_price,
                "buyDate": format_date(tx.buy_date),
                "cost": tx.cost,
                "currentPrice": price,
                "currentValue": current_value,
                "profitLoss": profit_loss,
                "percentChange": percent_change,
                "priceDeviation": deviation,
                "priceDeviationPercent": deviation_pct,
            })
        return history
