#!/usr/bin/env python3
"""Compare TA-Lib vectorized outputs vs pandas-ta-live batch outputs.

SMA, EMA and BBANDS should match TA-Lib to float precision.  RSI and MACD
seed differently in TA-Lib (unstable period / aligned EMA starts), so they
are compared over the last --tail rows only, after convergence.
"""
from __future__ import annotations

import argparse
import os
import sys
from typing import Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import numpy as np
import pandas as pd
import pandas_ta_live as ta

try:
    import talib
except ImportError:
    raise SystemExit("[X] TA-Lib not available. Install ta-lib to run this script.")


DEFAULT_SPECS = [
    {"id": "sma", "type": "sma", "parameters": {"period": 20}},
    {"id": "ema", "type": "ema", "parameters": {"period": 10}},
    {"id": "rsi", "type": "rsi", "parameters": {"period": 14}},
    {"id": "macd", "type": "macd", "parameters": {"fastPeriod": 12, "slowPeriod": 26, "signalPeriod": 9}},
    {"id": "bb", "type": "bbands", "parameters": {"period": 20, "stdDev": 2.0}},
]


def make_ohlcv(rows: int, seed: int) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    idx = pd.date_range("2025-01-01", periods=rows, freq="1min")
    base = 100 + rng.standard_normal(rows).cumsum()
    close = base + rng.normal(0, 0.2, rows)
    open_ = base + rng.normal(0, 0.2, rows)
    high = np.maximum(open_, close) + rng.random(rows) * 0.5
    low = np.minimum(open_, close) - rng.random(rows) * 0.5
    volume = rng.integers(100, 1000, rows)
    df = pd.DataFrame(
        {
            "open": open_,
            "high": high,
            "low": low,
            "close": close,
            "volume": volume,
        },
        index=idx,
    )
    return df


def talib_frame(close: np.ndarray, index: pd.Index) -> pd.DataFrame:
    macd, signal, hist = talib.MACD(close, fastperiod=12, slowperiod=26, signalperiod=9)
    upper, middle, lower = talib.BBANDS(close, timeperiod=20, nbdevup=2.0, nbdevdn=2.0, matype=0)
    cols: Dict[str, np.ndarray] = {
        "sma": talib.SMA(close, timeperiod=20),
        "ema": talib.EMA(close, timeperiod=10),
        "rsi": talib.RSI(close, timeperiod=14),
        "macd_macd": macd,
        "macd_signal": signal,
        "macd_histogram": hist,
        "bb_upper": upper,
        "bb_middle": middle,
        "bb_lower": lower,
    }
    return pd.DataFrame(cols, index=index)


def compare_frames(ref: pd.DataFrame, test: pd.DataFrame, eps: float) -> pd.DataFrame:
    diff = (test - ref).abs()
    rel = diff / (ref.abs() + eps)
    return pd.DataFrame(
        {
            "nan_ref": ref.isna().sum(),
            "nan_test": test.isna().sum(),
            "max_abs": diff.max(),
            "mean_abs": diff.mean(),
            "mean_rel": rel.mean(),
        }
    )


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--rows", type=int, default=2000)
    ap.add_argument("--tail", type=int, default=500)
    ap.add_argument("--seed", type=int, default=11)
    ap.add_argument("--eps", type=float, default=1e-12)
    args = ap.parse_args()

    series = ta.BarSeries.from_frame(make_ohlcv(args.rows, args.seed))
    test = ta.ComputationEngine().compute_frame(series, DEFAULT_SPECS)
    ref = talib_frame(np.asarray(series.closes, dtype=float), test.index)

    full = compare_frames(ref, test[ref.columns], args.eps)
    tail_idx = test.index[-args.tail:]
    tail = compare_frames(ref.loc[tail_idx], test.loc[tail_idx, ref.columns], args.eps)

    print("[i] rows:", args.rows)
    print("[i] tail rows:", args.tail)
    print("\nFull history:")
    print(full.sort_values("max_abs", ascending=False))
    print(f"\nLast {args.tail} rows:")
    print(tail.sort_values("max_abs", ascending=False))


if __name__ == "__main__":
    main()
