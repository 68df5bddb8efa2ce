"""Journal statistic formulas over realized P/L series (floats, numpy)."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def _array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def pct_of(count: int, total: int) -> float:
    """``count`` as a percentage of ``total``; 0 when there is nothing to count."""
    if total <= 0:
        return 0.0
    return count / total * 100


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(_array(values).mean())


def win_rate(pls: Sequence[float]) -> float:
    """Share of trades with positive P/L, 0-100. Flat trades count as non-wins."""
    arr = _array(pls)
    return pct_of(int((arr > 0).sum()), arr.size)


def profit_factor(pls: Sequence[float]) -> float:
    """Sum of gains over the absolute sum of losses; 0 with no losing trade."""
    arr = _array(pls)
    loss = -arr[arr < 0].sum()
    if loss <= 0:
        return 0.0
    return float(arr[arr > 0].sum() / loss)


def expectancy(pls: Sequence[float]) -> float:
    """Expected P/L per trade: wr * avg_gain - (1 - wr) * |avg_loss|."""
    arr = _array(pls)
    if arr.size == 0:
        return 0.0
    wr = win_rate(arr) / 100.0
    return wr * mean(arr[arr > 0]) - (1 - wr) * abs(mean(arr[arr < 0]))


def max_drawdown(capital: Sequence[float]) -> float:
    """Largest peak-to-trough fall of a capital series, 0-100."""
    arr = _array(capital)
    if arr.size < 2:
        return 0.0
    peaks = np.maximum.accumulate(arr)
    falls = np.divide(peaks - arr, peaks, out=np.zeros_like(arr), where=peaks > 0)
    return float(falls.max() * 100)
