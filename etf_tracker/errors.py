"""Exceptions and input validation for the analytics engine.

Only invalid input is raised.  Missing prices travel as ``None`` and
statistics that cannot be computed come back as ``{"message": ...}`` dicts.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any


class AnalyticsError(Exception):
    """Base class for engine errors."""


class InvalidInputError(AnalyticsError, ValueError):
    """Input rejected before any computation took place."""


def parse_portfolio_id(raw: Any) -> int:
    """Accept ints or numeric strings; reject everything else."""
    if isinstance(raw, bool):
        raise InvalidInputError("Invalid portfolio ID")
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidInputError("Invalid portfolio ID") from None
    if value <= 0:
        raise InvalidInputError("Invalid portfolio ID")
    return value


def parse_days(raw: Any, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid number of days: {raw!r}") from None
    if value <= 0:
        raise InvalidInputError(f"Number of days must be positive, got {value}")
    return value


def parse_risk_free_rate(raw: Any, default: float) -> float:
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid risk-free rate: {raw!r}") from None
    if not math.isfinite(value) or not -1.0 < value < 1.0:
        raise InvalidInputError(f"Risk-free rate must be a decimal fraction, got {value}")
    return value


def parse_date(raw: Any) -> date:
    """Parse ISO (yyyy-mm-dd) or dd/mm/yyyy dates."""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = str(raw or "").strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%d/%m/%Y").date()
    except ValueError:
        raise InvalidInputError(f"Invalid date: {raw!r}") from None


def parse_target_allocations(raw: Any) -> dict[str, float]:
    """Normalise a ``{ticker: percent}`` mapping; empty/None means equal weight."""
    if not raw:
        return {}
    if not isinstance(raw, dict):
        raise InvalidInputError("targetAllocations must be an object of ticker -> percent")
    targets: dict[str, float] = {}
    for ticker, pct in raw.items():
        try:
            value = float(pct)
        except (TypeError, ValueError):
            raise InvalidInputError(f"Invalid target allocation for {ticker}: {pct!r}") from None
        if not math.isfinite(value) or value < 0 or value > 100:
            raise InvalidInputError(f"Target allocation for {ticker} must be within 0-100")
        targets[str(ticker).strip().upper()] = value
    return targets
