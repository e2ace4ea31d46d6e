# -*- coding: utf-8 -*-
"""pandas-ta-live stateful -- volatility indicators.

Registered kinds
----------------
bbands
"""
from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import List, Tuple

from ..bars import Bar
from ..params import ParamSchema, ParamSpec, period_spec, source_spec
from ._base import (
    REGISTRY,
    Calculator,
    SMAState,
    Values,
    price_source,
    sma_make,
    sma_update_raw,
)


def _pstdev_from_buf(buf: deque, mean: float) -> float:
    """Population standard deviation (ddof=0) of a full window."""
    n = len(buf)
    variance = sum((x - mean) ** 2 for x in buf) / n
    return math.sqrt(variance)


# ===========================================================================
# Bollinger Bands
# ===========================================================================
# middle = SMA(period); sigma = population stdev over the same window
# upper  = middle + std_dev * sigma;  lower = middle - std_dev * sigma
# Defaults: period=20, stdDev=2

@dataclass(frozen=True)
class BBandsParams:
    period: int = 20
    std_dev: float = 2.0
    source: str = "close"


BBANDS_SCHEMA = ParamSchema(
    specs=(
        period_spec(20, 200),
        ParamSpec("stdDev", "std_dev", "float", 2.0, "Standard Deviations",
                  minimum=0.0, min_exclusive=True),
        source_spec(),
    ),
    cls=BBandsParams,
)


@dataclass
class BBandsState:
    sma: SMAState
    std_dev: float


def _bbands_init(params: BBandsParams) -> BBandsState:
    return BBandsState(sma=sma_make(params.period), std_dev=params.std_dev)


def _bbands_update(
    state: BBandsState, bar: Bar, params: BBandsParams, replace: bool = False
) -> Tuple[Values, BBandsState]:
    mid, state.sma = sma_update_raw(state.sma, price_source(bar, params.source), replace)
    if mid is None:
        return [None, None, None], state

    width = state.std_dev * _pstdev_from_buf(state.sma.buf, mid)
    return [mid + width, mid, mid - width], state


def _bbands_output_names(params: BBandsParams) -> List[str]:
    return ["upper", "middle", "lower"]


def _bbands_warmup(params: BBandsParams) -> int:
    return params.period


BBANDS = REGISTRY.register(Calculator(
    kind="bbands",
    name="Bollinger Bands",
    description="Bollinger Bands: SMA middle band with population standard deviation envelopes",
    category="price",
    params=BBANDS_SCHEMA,
    warmup=_bbands_warmup,
    output_names=_bbands_output_names,
    init=_bbands_init,
    update=_bbands_update,
))
