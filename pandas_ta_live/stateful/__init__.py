# -*- coding: utf-8 -*-
"""pandas-ta-live.stateful -- streaming / stateful calculators.

Category modules populate REGISTRY at import time.  This package
re-exports it plus the shared base API and the family descriptors.
"""
from __future__ import annotations

# Base API (always available)
from ._base import (
    SMAState,
    EMAState,
    Calculator,
    CalculatorRegistry,
    REGISTRY,
    sma_make,
    sma_update_raw,
    ema_make,
    ema_update_raw,
    price_source,
    replay,
)

# ---------------------------------------------------------------------------
# Category modules – each populates the shared registry on import
# ---------------------------------------------------------------------------
from ._overlap import SMA, EMA, SMAParams, EMAParams, ema_of      # noqa: F401
from ._momentum import RSI, MACD, RSIParams, MACDParams, rsi_value  # noqa: F401
from ._volatility import BBANDS, BBandsParams                    # noqa: F401

__all__ = [
    # base
    "SMAState",
    "EMAState",
    "Calculator",
    "CalculatorRegistry",
    "REGISTRY",
    "sma_make",
    "sma_update_raw",
    "ema_make",
    "ema_update_raw",
    "price_source",
    "replay",
    # families
    "SMA",
    "EMA",
    "RSI",
    "MACD",
    "BBANDS",
    "SMAParams",
    "EMAParams",
    "RSIParams",
    "MACDParams",
    "BBandsParams",
    "ema_of",
    "rsi_value",
]
