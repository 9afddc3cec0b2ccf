"""Pairwise Pearson correlation between the ETFs held in a portfolio."""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

from etf_tracker.models import PriceSeries


def pearson(x: list[float], y: list[float]) -> float:
    """Pearson coefficient; 0 for empty, mismatched or constant inputs."""
    if len(x) == 0 or len(x) != len(y):
        return 0.0
    xa = np.asarray(x, dtype=float)
    ya = np.asarray(y, dtype=float)
    dx = xa - xa.mean()
    dy = ya - ya.mean()
    denominator = math.sqrt(float((dx * dx).sum()) * float((dy * dy).sum()))
    if denominator == 0:
        return 0.0
    return max(-1.0, min(1.0, float((dx * dy).sum()) / denominator))


def correlation_level(correlation: float) -> str:
    abs_corr = abs(correlation)
    if abs_corr > 0.8:
        return "Very High"
    if abs_corr > 0.6:
        return "High"
    if abs_corr > 0.4:
        return "Moderate"
    if abs_corr > 0.2:
        return "Low"
    return "Very Low"


def correlation_matrix(series_by_ticker: dict[str, PriceSeries]) -> dict[str, dict[str, float]]:
    """Symmetric matrix over price levels paired on common calendar dates."""
    tickers = list(series_by_ticker)
    closes = {
        t: pd.Series(s.values, index=pd.Index(s.dates), dtype=float)
        for t, s in series_by_ticker.items()
    }
    matrix: dict[str, dict[str, float]] = {t: {} for t in tickers}
    for i, a in enumerate(tickers):
        matrix[a][a] = 1.0
        for b in tickers[i + 1:]:
            paired = pd.concat([closes[a], closes[b]], axis=1, join="inner").dropna()
            corr = pearson(paired.iloc[:, 0].tolist(), paired.iloc[:, 1].tolist())
            matrix[a][b] = corr
            matrix[b][a] = corr
    return matrix


def analyze_matrix(matrix: dict[str, dict[str, float]], tickers: list[str]) -> dict:
    """Rank every pair by absolute correlation."""
    pairs = []
    for i, a in enumerate(tickers):
        for b in tickers[i + 1:]:
            corr = matrix[a][b]
            pairs.append({"pair": f"{a}-{b}", "correlation": corr, "level": correlation_level(corr)})

    pairs.sort(key=lambda p: abs(p["correlation"]), reverse=True)
    if not pairs:
        return {"highestCorrelation": None, "lowestCorrelation": None,
                "averageCorrelation": 0.0, "correlationPairs": []}
    return {
        "highestCorrelation": pairs[0],
        "lowestCorrelation": pairs[-1],
        "averageCorrelation": sum(abs(p["correlation"]) for p in pairs) / len(pairs),
        "correlationPairs": pairs,
    }
