# -*- coding: utf-8 -*-
"""pandas-ta-live stateful -- overlap indicators (plotted on the price axis).

Each section follows the pattern:
  1. Params dataclass + schema
  2. State dataclass  (if beyond what _base already provides)
  3. init / update / output_names / warmup helpers
  4. REGISTRY.register(Calculator(...))
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..bars import Bar
from ..params import ParamSchema, period_spec, source_spec
from ._base import (
    REGISTRY,
    Calculator,
    EMAState,
    SMAState,
    Values,
    ema_make,
    ema_update_raw,
    price_source,
    sma_make,
    sma_update_raw,
)


# ===========================================================================
# SMA
# ===========================================================================
# sma[i] = mean(x[i-period+1 .. i]), undefined for i < period-1.
# State: SMAState ring buffer + running sum.  Default period = 20.

@dataclass(frozen=True)
class SMAParams:
    period: int = 20
    source: str = "close"


SMA_SCHEMA = ParamSchema(specs=(period_spec(20, 200), source_spec()), cls=SMAParams)


def _sma_init(params: SMAParams) -> SMAState:
    return sma_make(params.period)


def _sma_update(
    state: SMAState, bar: Bar, params: SMAParams, replace: bool = False
) -> Tuple[Values, SMAState]:
    val, state = sma_update_raw(state, price_source(bar, params.source), replace)
    return [val], state


def _sma_output_names(params: SMAParams) -> List[str]:
    return ["sma"]


def _sma_warmup(params: SMAParams) -> int:
    return params.period


SMA = REGISTRY.register(Calculator(
    kind="sma",
    name="Simple Moving Average",
    description="Simple Moving Average with customizable period and price source",
    category="price",
    params=SMA_SCHEMA,
    warmup=_sma_warmup,
    output_names=_sma_output_names,
    init=_sma_init,
    update=_sma_update,
))


# ===========================================================================
# EMA
# ===========================================================================
# multiplier = 2/(period+1); seed = SMA of the first `period` inputs,
# then ema = (x - ema_prev) * multiplier + ema_prev.  Default period = 20.

@dataclass(frozen=True)
class EMAParams:
    period: int = 20
    source: str = "close"


EMA_SCHEMA = ParamSchema(specs=(period_spec(20, 200), source_spec()), cls=EMAParams)


def _ema_init(params: EMAParams) -> EMAState:
    return ema_make(params.period)


def _ema_update(
    state: EMAState, bar: Bar, params: EMAParams, replace: bool = False
) -> Tuple[Values, EMAState]:
    val, state = ema_update_raw(state, price_source(bar, params.source), replace)
    return [val], state


def _ema_output_names(params: EMAParams) -> List[str]:
    return ["ema"]


def _ema_warmup(params: EMAParams) -> int:
    return params.period


EMA = REGISTRY.register(Calculator(
    kind="ema",
    name="Exponential Moving Average",
    description="Exponential Moving Average with customizable period and price source",
    category="price",
    params=EMA_SCHEMA,
    warmup=_ema_warmup,
    output_names=_ema_output_names,
    init=_ema_init,
    update=_ema_update,
))


def ema_of(values: List[Optional[float]], period: int) -> List[Optional[float]]:
    """EMA over an arbitrary value list (None = undefined input)."""
    state = ema_make(period)
    out: List[Optional[float]] = []
    for x in values:
        val, state = ema_update_raw(state, x)
        out.append(val)
    return out
