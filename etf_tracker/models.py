"""Domain records shared by the store, the price sources and the analytics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal
from zoneinfo import ZoneInfo

from etf_tracker.config import DATE_FORMAT, TIMEZONE

SeriesSource = Literal["real", "simulated"]


def format_date(d: date) -> str:
    """Render a calendar date in the presentation format (dd/mm/yyyy)."""
    return d.strftime(DATE_FORMAT)


def local_today() -> date:
    """Current calendar date in the configured timezone."""
    return datetime.now(ZoneInfo(TIMEZONE)).date()


@dataclass(frozen=True)
class Transaction:
    """A single buy, as recorded in the transaction store."""

    ticker: str
    shares: float
    buy_price: float
    buy_date: date
    portfolio_id: int = 0
    id: int | None = None

    @property
    def cost(self) -> float:
        return self.shares * self.buy_price


@dataclass(frozen=True)
class AggregatedPosition:
    """All buys of one ticker in one portfolio, folded together on read."""

    ticker: str
    total_shares: float
    weighted_avg_buy_price: float
    first_buy_date: date
    purchase_count: int = 1

    @property
    def cost(self) -> float:
        return self.total_shares * self.weighted_avg_buy_price


@dataclass
class PriceSeries:
    """Ordered daily closes for one ticker."""

    ticker: str
    dates: list[date]
    values: list[float]
    source: SeriesSource = "real"

    def __post_init__(self):
        if len(self.dates) != len(self.values):
            raise ValueError(
                f"{self.ticker}: {len(self.dates)} dates but {len(self.values)} values"
            )

    def __len__(self) -> int:
        return len(self.dates)

    @property
    def empty(self) -> bool:
        return not self.dates

    def to_dict(self) -> dict:
        return {
            "ticker": self.ticker,
            "dates": [d.isoformat() for d in self.dates],
            "values": list(self.values),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PriceSeries:
        return cls(
            ticker=data["ticker"],
            dates=[date.fromisoformat(d) for d in data["dates"]],
            values=[float(v) for v in data["values"]],
            source=data.get("source", "real"),
        )


@dataclass
class AlignedSeries:
    """Portfolio value and invested capital on one common date axis."""

    dates: list[date] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    invested_values: list[float] = field(default_factory=list)
    sources: dict[str, SeriesSource] = field(default_factory=dict)
    anchor_appended: bool = False

    def __len__(self) -> int:
        return len(self.dates)

    @property
    def simulated_tickers(self) -> list[str]:
        return sorted(t for t, s in self.sources.items() if s == "simulated")

    def to_dict(self) -> dict:
        return {
            "dates": [format_date(d) for d in self.dates],
            "values": [round(float(v), 6) for v in self.values],
            "investedValues": [round(float(v), 6) for v in self.invested_values],
            "sources": dict(self.sources),
        }
