# -*- coding: utf-8 -*-
"""Shared fixtures: random-walk OHLCV data and small bar series builders."""
from __future__ import annotations

from typing import Callable, List, Sequence

import numpy as np
import pandas as pd
import pytest

from pandas_ta_live import Bar, BarSeries

T0 = 1_700_000_000_000
STEP = 60_000


def make_ohlcv(rows: int, seed: int = 7) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    idx = pd.date_range("2025-01-01", periods=rows, freq="1min")
    base = 100 + rng.standard_normal(rows).cumsum()
    close = base + rng.normal(0, 0.2, rows)
    open_ = base + rng.normal(0, 0.2, rows)
    high = np.maximum(open_, close) + rng.random(rows) * 0.5
    low = np.minimum(open_, close) - rng.random(rows) * 0.5
    volume = rng.integers(100, 1000, rows)
    return pd.DataFrame(
        {"open": open_, "high": high, "low": low, "close": close, "volume": volume},
        index=idx,
    )


def bars_from_closes(closes: Sequence[float], start: int = T0, step: int = STEP) -> List[Bar]:
    return [
        Bar(timestamp=start + i * step, open=c, high=c, low=c, close=c, volume=1.0)
        for i, c in enumerate(closes)
    ]


@pytest.fixture
def ohlcv() -> pd.DataFrame:
    return make_ohlcv(150)


@pytest.fixture
def random_series(ohlcv: pd.DataFrame) -> BarSeries:
    return BarSeries.from_frame(ohlcv)


@pytest.fixture
def closes_series() -> Callable[[Sequence[float]], BarSeries]:
    def _build(closes: Sequence[float]) -> BarSeries:
        return BarSeries(bars_from_closes(closes))
    return _build


@pytest.fixture
def all_families() -> list:
    """One instance of every registered family, with short periods."""
    return [
        {"id": "sma", "type": "sma", "parameters": {"period": 5}},
        {"id": "ema", "type": "ema", "parameters": {"period": 8}},
        {"id": "rsi", "type": "rsi", "parameters": {"period": 6}},
        {"id": "macd", "type": "macd",
         "parameters": {"fastPeriod": 4, "slowPeriod": 9, "signalPeriod": 3}},
        {"id": "bb", "type": "bbands", "parameters": {"period": 10, "stdDev": 2.5}},
        {"id": "sma_hl2", "type": "sma", "parameters": {"period": 3, "source": "hl2"}},
    ]
