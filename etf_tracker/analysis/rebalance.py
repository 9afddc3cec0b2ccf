"""Rebalancing recommendations - BUY/SELL moves toward target weights."""

from __future__ import annotations

from etf_tracker.config import Analytics

NO_INVESTMENTS = "No investments found in portfolio"


def equal_weight(tickers: list[str]) -> dict[str, float]:
    if not tickers:
        return {}
    weight = 100 / len(tickers)
    return {t: weight for t in tickers}


def recommend(
    current_allocations: dict[str, float],
    total_value: float,
    target_allocations: dict[str, float] | None = None,
    min_difference: float = Analytics.REBALANCE_MIN_DIFF,
    high_difference: float = Analytics.REBALANCE_HIGH_DIFF,
) -> dict:
    """Compare current vs target percentages for every currently held ticker.

    Drifts within ``min_difference`` points are ignored; past
    ``high_difference`` they are flagged HIGH priority.  Tickers present
    only in the targets are not recommended.
    """
    if not current_allocations:
        return {"message": NO_INVESTMENTS}

    tickers = list(current_allocations)
    targets = target_allocations or equal_weight(tickers)

    recommendations = []
    for ticker in tickers:
        current = current_allocations[ticker]
        target = targets.get(ticker, 0.0)
        difference = target - current
        if abs(difference) <= min_difference:
            continue
        current_value = current / 100 * total_value
        target_value = target / 100 * total_value
        value_change = target_value - current_value
        recommendations.append({
            "ticker": ticker,
            "currentAllocation": current,
            "targetAllocation": target,
            "difference": difference,
            "currentValue": current_value,
            "targetValue": target_value,
            "valueChange": value_change,
            "action": "BUY" if value_change > 0 else "SELL",
            "priority": "HIGH" if abs(difference) > high_difference else "MEDIUM",
        })

    recommendations.sort(key=lambda r: (r["priority"] != "HIGH", -abs(r["difference"])))

    high = sum(1 for r in recommendations if r["priority"] == "HIGH")
    return {
        "recommendations": recommendations,
        "totalPortfolioValue": total_value,
        "rebalanceNeeded": bool(recommendations),
        "summary": {
            "totalAdjustments": len(recommendations),
            "highPriority": high,
            "mediumPriority": len(recommendations) - high,
        },
    }
