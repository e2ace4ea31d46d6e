# -*- coding: utf-8 -*-
"""pandas-ta-live stateful -- momentum indicators (oscillator axis).

Each section follows the pattern:
  1. Params dataclass + schema
  2. State dataclass
  3. init / update / output_names / warmup helpers
  4. REGISTRY.register(Calculator(...))
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..bars import Bar
from ..errors import InvalidParameterCombination
from ..params import ParamSchema, ParamSpec, period_spec, source_spec
from ._base import (
    REGISTRY,
    Calculator,
    EMAState,
    Values,
    ema_make,
    ema_update_raw,
    price_source,
)


# ===========================================================================
# RSI
# ===========================================================================
# gain = max(delta, 0), loss = max(-delta, 0) for every bar after the first.
# First value at index `period`: avg_gain / avg_loss = arithmetic mean of the
# first `period` gains / losses.  Then Wilder smoothing:
#   avg = (avg * (period - 1) + x) / period
# RSI = 100 - 100 / (1 + avg_gain / avg_loss); avg_loss == 0 -> 100.
# Default period = 14.

@dataclass(frozen=True)
class RSIParams:
    period: int = 14
    source: str = "close"


RSI_SCHEMA = ParamSchema(specs=(period_spec(14, 100), source_spec()), cls=RSIParams)


@dataclass
class RSIState:
    length: int
    last_close: Optional[float] = None
    avg_gain: Optional[float] = None
    avg_loss: Optional[float] = None
    _gain_sum: float = 0.0
    _loss_sum: float = 0.0
    _count: int = 0
    _undo: Tuple = (None, None, None, 0.0, 0.0, 0)


def rsi_value(avg_gain: float, avg_loss: float) -> float:
    """RSI from smoothed averages.

    avg_loss == 0 (a flat window included) is maximally overbought: 100.
    """
    if avg_loss == 0.0:
        # RS unbounded: pinned to 100, not 100 - 100 / (1 + RS) for some finite RS
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def _rsi_init(params: RSIParams) -> RSIState:
    return RSIState(length=params.period)


def _rsi_update(
    state: RSIState, bar: Bar, params: RSIParams, replace: bool = False
) -> Tuple[Values, RSIState]:
    x = price_source(bar, params.source)

    if replace:
        (state.last_close, state.avg_gain, state.avg_loss,
         state._gain_sum, state._loss_sum, state._count) = state._undo
    else:
        state._undo = (state.last_close, state.avg_gain, state.avg_loss,
                       state._gain_sum, state._loss_sum, state._count)

    if state.last_close is None:
        # Very first bar -- no delta yet, just store close.
        state.last_close = x
        return [None], state

    delta = x - state.last_close
    state.last_close = x
    gain = delta if delta > 0.0 else 0.0
    loss = -delta if delta < 0.0 else 0.0
    n = state.length

    if state.avg_gain is None:
        state._gain_sum += gain
        state._loss_sum += loss
        state._count += 1
        if state._count < n:
            return [None], state
        state.avg_gain = state._gain_sum / n
        state.avg_loss = state._loss_sum / n
    else:
        state.avg_gain = (state.avg_gain * (n - 1) + gain) / n
        state.avg_loss = (state.avg_loss * (n - 1) + loss) / n

    return [rsi_value(state.avg_gain, state.avg_loss)], state


def _rsi_output_names(params: RSIParams) -> List[str]:
    return ["rsi"]


def _rsi_warmup(params: RSIParams) -> int:
    return params.period + 1


RSI = REGISTRY.register(Calculator(
    kind="rsi",
    name="Relative Strength Index",
    description="RSI oscillator with Wilder smoothing",
    category="oscillator",
    params=RSI_SCHEMA,
    warmup=_rsi_warmup,
    output_names=_rsi_output_names,
    init=_rsi_init,
    update=_rsi_update,
))


# ===========================================================================
# MACD
# ===========================================================================
# MACD   = EMA(x, fast) - EMA(x, slow)         defined from index slow-1
# Signal = EMA(MACD, signal), undefined MACD values propagate, so the
#          first signal value is at index slow-1 + signal-1
# Hist   = MACD - Signal
# Defaults: fast=12, slow=26, signal=9

@dataclass(frozen=True)
class MACDParams:
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9
    source: str = "close"


def _macd_check(params: MACDParams) -> None:
    if params.fast_period >= params.slow_period:
        raise InvalidParameterCombination(
            f"[X] macd: fastPeriod ({params.fast_period}) must be < "
            f"slowPeriod ({params.slow_period})"
        )


MACD_SCHEMA = ParamSchema(
    specs=(
        ParamSpec("fastPeriod", "fast_period", "int", 12, "Fast Period", minimum=1, maximum=50),
        ParamSpec("slowPeriod", "slow_period", "int", 26, "Slow Period", minimum=1, maximum=100),
        ParamSpec("signalPeriod", "signal_period", "int", 9, "Signal Period", minimum=1, maximum=50),
        source_spec(),
    ),
    cls=MACDParams,
    check=_macd_check,
)


@dataclass
class MACDState:
    ema_fast: EMAState
    ema_slow: EMAState
    ema_signal: EMAState


def _macd_init(params: MACDParams) -> MACDState:
    return MACDState(
        ema_fast=ema_make(params.fast_period),
        ema_slow=ema_make(params.slow_period),
        ema_signal=ema_make(params.signal_period),
    )


def _macd_update(
    state: MACDState, bar: Bar, params: MACDParams, replace: bool = False
) -> Tuple[Values, MACDState]:
    x = price_source(bar, params.source)

    fast_val, state.ema_fast = ema_update_raw(state.ema_fast, x, replace)
    slow_val, state.ema_slow = ema_update_raw(state.ema_slow, x, replace)

    macd_val: Optional[float] = None
    if fast_val is not None and slow_val is not None:
        macd_val = fast_val - slow_val

    # The signal EMA steps on every bar (None while MACD warms up) so that
    # a replace always has exactly one step to redo.
    sig_val, state.ema_signal = ema_update_raw(state.ema_signal, macd_val, replace)

    hist_val: Optional[float] = None
    if macd_val is not None and sig_val is not None:
        hist_val = macd_val - sig_val

    return [macd_val, sig_val, hist_val], state


def _macd_output_names(params: MACDParams) -> List[str]:
    return ["macd", "signal", "histogram"]


def _macd_warmup(params: MACDParams) -> int:
    return params.slow_period + params.signal_period - 1


MACD = REGISTRY.register(Calculator(
    kind="macd",
    name="MACD (Moving Average Convergence Divergence)",
    description="MACD indicator with customizable fast, slow, and signal periods",
    category="oscillator",
    params=MACD_SCHEMA,
    warmup=_macd_warmup,
    output_names=_macd_output_names,
    init=_macd_init,
    update=_macd_update,
))
