#!/usr/bin/env python3
"""Benchmark batch seeding and incremental update speed.

Measures, as total history grows:
  - batch: compute_batch over the history (seed cost, should be ~O(rows))
  - tail:  apply_bar for the tail rows on a seeded session (true streaming
           cost; should not grow with history)
"""
from __future__ import annotations

import argparse
import copy
import os
import sys
from time import perf_counter
from typing import List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import numpy as np
import pandas as pd
import pandas_ta_live as ta


DEFAULT_SPECS = [
    {"id": "sma_200", "type": "sma", "parameters": {"period": 200}},
    {"id": "ema_50", "type": "ema", "parameters": {"period": 50}},
    {"id": "rsi_14", "type": "rsi"},
    {"id": "macd", "type": "macd"},
    {"id": "bb_20", "type": "bbands"},
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


def parse_list(value: str) -> List[int]:
    return [int(v.strip()) for v in value.split(",") if v.strip()]


def time_call(fn, runs: int) -> float:
    times = []
    for _ in range(max(runs, 1)):
        start = perf_counter()
        fn()
        times.append(perf_counter() - start)
    return sum(times) / len(times)


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument(
        "--sizes",
        type=str,
        default="10000,50000,100000",
        help="comma-separated total row counts",
    )
    ap.add_argument("--tail", type=int, default=100, help="streamed rows per run")
    ap.add_argument("--seed", type=int, default=7)
    ap.add_argument("--warmup", type=int, default=1, help="warmup runs (not timed)")
    ap.add_argument("--runs", type=int, default=3, help="timed runs")
    ap.add_argument(
        "--mode",
        type=str,
        default="both",
        choices=("batch", "tail", "both"),
        help="benchmark mode",
    )
    args = ap.parse_args()

    sizes = parse_list(args.sizes)

    print(f"[i] sizes: {sizes}")
    print(f"[i] tail: {args.tail}")
    print(f"[i] runs: {args.runs} (warmup: {args.warmup})")
    print(f"[i] mode: {args.mode}")

    for rows in sizes:
        if rows <= args.tail + 1:
            print(f"[i] skip rows={rows} (need > tail+1)")
            continue

        series = ta.BarSeries.from_frame(make_ohlcv(rows, args.seed))
        split = rows - args.tail
        hist = series[:split]
        tail = list(series[split:])

        # Seed session from history (not timed)
        base = ta.ComputationEngine()
        base.compute_batch(hist, DEFAULT_SPECS)

        def run_batch():
            ta.ComputationEngine().compute_batch(hist, DEFAULT_SPECS)

        def run_tail():
            engine = copy.deepcopy(base)
            for bar in tail:
                engine.apply_bar(bar)

        # Warmup
        for _ in range(max(args.warmup, 0)):
            if args.mode in ("batch", "both"):
                run_batch()
            if args.mode in ("tail", "both"):
                run_tail()

        # Timed runs
        if args.mode in ("batch", "both"):
            avg_batch = time_call(run_batch, args.runs)
            print(
                f"[batch] rows={split} avg_s={avg_batch:.6f} "
                f"s_per_100k={avg_batch / split * 100_000:.3f}"
            )
        if args.mode in ("tail", "both"):
            avg_tail = time_call(run_tail, args.runs)
            print(
                f"[tail] rows={rows} tail={args.tail} avg_s={avg_tail:.6f} "
                f"s_per_bar={avg_tail / max(args.tail, 1):.6f}"
            )


if __name__ == "__main__":
    main()
