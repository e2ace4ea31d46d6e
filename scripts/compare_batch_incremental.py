#!/usr/bin/env python3
"""Batch vs incremental comparison.

Compares a full `compute_batch()` run to a two-phase session:
1) compute_batch on t=0..split
2) apply_bar on t=split+1..end, each bar first streamed as a few
   "forming" replaces (random ticks) and then finalized

Both paths must agree exactly; any non-zero difference is a bug.
"""
from __future__ import annotations

import argparse
import os
import sys
from typing import Dict, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import numpy as np
import pandas as pd
import pandas_ta_live as ta


DEFAULT_SPECS = [
    {"id": "sma", "type": "sma", "parameters": {"period": 20}},
    {"id": "ema", "type": "ema", "parameters": {"period": 20}},
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


def compare_frames(ref: pd.DataFrame, test: pd.DataFrame) -> pd.DataFrame:
    diff = (test - ref).abs()
    return pd.DataFrame(
        {
            "nan_ref": ref.isna().sum(),
            "nan_test": test.isna().sum(),
            "nan_mismatch": (ref.isna() != test.isna()).sum(),
            "max_abs": diff.max(),
            "n_diff": (diff > 0).sum(),
        }
    )


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--rows", type=int, default=1011)
    ap.add_argument("--split", type=int, default=30, help="batch end index")
    ap.add_argument("--ticks", type=int, default=3, help="forming updates per streamed bar")
    ap.add_argument("--seed", type=int, default=7)
    args = ap.parse_args()

    if args.split >= args.rows:
        raise SystemExit("--split must be < --rows")

    series = ta.BarSeries.from_frame(make_ohlcv(args.rows, args.seed))
    rng = np.random.default_rng(args.seed + 1)

    # Batch reference
    ref = ta.ComputationEngine().compute_frame(series, DEFAULT_SPECS)

    # Batch seed (t=0..split) + streamed tail
    engine = ta.ComputationEngine()
    seed_channels = engine.compute_batch(series[: args.split + 1], DEFAULT_SPECS)
    rows: Dict[str, List] = {cid: ch.values for cid, ch in seed_channels.items()}

    for bar in series[args.split + 1:]:
        first = True
        for _ in range(max(args.ticks, 0)):
            tick = ta.Bar(
                timestamp=bar.timestamp,
                open=bar.open,
                high=bar.high,
                low=bar.low,
                close=float(bar.close + rng.normal(0, 0.3)),
                volume=bar.volume,
            )
            engine.apply_bar(tick, is_replace=not first)
            first = False
        points = engine.apply_bar(bar, is_replace=not first)
        for cid, point in points.items():
            rows[cid].append(point.value)

    test = pd.DataFrame(
        {cid: [np.nan if v is None else v for v in values] for cid, values in rows.items()},
        index=ref.index,
    )
    summary = compare_frames(ref, test[ref.columns])

    print("[i] rows:", args.rows)
    print("[i] split index:", args.split)
    print("[i] ticks per bar:", args.ticks)
    print("[i] channels:", len(ref.columns))
    print()
    print(summary)
    if summary["n_diff"].sum() or summary["nan_mismatch"].sum():
        raise SystemExit("[X] batch and incremental results differ")
    print("\n[+] identical")


if __name__ == "__main__":
    main()
