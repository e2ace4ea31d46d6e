# -*- coding: utf-8 -*-
"""pandas-ta-live stateful -- shared base: state classes, helpers, registry.

All category modules (``_overlap``, ``_momentum``, ``_volatility``) import
from here and populate ``REGISTRY`` at load time.

Every update helper takes a ``replace`` flag.  An append snapshots the
scalar state it is about to overwrite; a replace restores that snapshot
and re-runs the same step with the new input.  A bar that is replaced any
number of times therefore leaves exactly the state an append of its final
value would have left, which is what keeps batch and streaming results
identical to the last bit.
"""
from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..bars import Bar, BarSeries
from ..params import ParamSchema

Values = List[Optional[float]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def price_source(bar: Bar, source: str) -> float:
    """Input value of *bar* for a ``source`` parameter."""
    if source == "close":
        return bar.close
    if source == "open":
        return bar.open
    if source == "high":
        return bar.high
    if source == "low":
        return bar.low
    if source == "hl2":
        return (bar.high + bar.low) / 2.0
    if source == "hlc3":
        return (bar.high + bar.low + bar.close) / 3.0
    if source == "ohlc4":
        return (bar.open + bar.high + bar.low + bar.close) / 4.0
    if source == "volume":
        return bar.volume
    raise ValueError(f"unknown price source: {source!r}")


# ---------------------------------------------------------------------------
# Shared state classes
# ---------------------------------------------------------------------------

@dataclass
class SMAState:
    """Ring buffer of the last *length* inputs plus their running sum.

    The sum is compensated (``total`` + ``comp``) and re-derived exactly
    from the buffer once per *length* appends, so a large value leaving
    the window does not take the small ones with it.

    ``_undo`` = (total, comp, _since_sync, evicted) before the newest input.
    """
    length: int
    buf: deque = field(default_factory=deque)
    total: float = 0.0
    comp: float = 0.0
    _since_sync: int = 0
    _undo: Tuple[float, float, int, Optional[float]] = (0.0, 0.0, 0, None)


@dataclass
class EMAState:
    """EMA with SMA seed: first output = mean of the first *length* inputs.

    ``_undo`` = (last, _warmup_sum, _warmup_count) before the newest step.
    """
    length: int
    alpha: float
    last: Optional[float] = None
    _warmup_sum: float = 0.0
    _warmup_count: int = 0
    _undo: Tuple[Optional[float], float, int] = (None, 0.0, 0)


# ---------------------------------------------------------------------------
# Low-level update helpers
# ---------------------------------------------------------------------------

def _add_compensated(total: float, comp: float, x: float) -> Tuple[float, float]:
    """Neumaier step: returns (total + x, updated compensation)."""
    t = total + x
    if abs(total) >= abs(x):
        comp += (total - t) + x
    else:
        comp += (x - t) + total
    return t, comp


def sma_make(length: int) -> SMAState:
    return SMAState(length=length, buf=deque(maxlen=length))


def sma_update_raw(state: SMAState, x: float, replace: bool = False) -> Tuple[Optional[float], SMAState]:
    """Single-step SMA update.  Returns (value | None, state).

    Amortised O(1): an append evicts the oldest input, a replace swaps only
    the newest one.  The sum is always rebuilt from the pre-step snapshot,
    never adjusted twice for the same bar.
    """
    if replace and state.buf:
        state.total, state.comp, state._since_sync, evicted = state._undo
        state.buf.pop()
        if evicted is not None:
            state.buf.appendleft(evicted)

    evicted = state.buf[0] if len(state.buf) == state.length else None
    state._undo = (state.total, state.comp, state._since_sync, evicted)
    if evicted is not None:
        state.total, state.comp = _add_compensated(state.total, state.comp, -evicted)
    state.total, state.comp = _add_compensated(state.total, state.comp, x)
    state.buf.append(x)

    state._since_sync += 1
    if state._since_sync >= state.length:
        state.total = math.fsum(state.buf)
        state.comp = math.fsum(list(state.buf) + [-state.total])
        state._since_sync = 0

    if len(state.buf) < state.length:
        return None, state
    return (state.total + state.comp) / state.length, state


def ema_make(length: int) -> EMAState:
    """EMA state -- multiplier = 2 / (length + 1)."""
    return EMAState(length=length, alpha=2.0 / (length + 1.0))


def ema_update_raw(
        state: EMAState, x: Optional[float], replace: bool = False
) -> Tuple[Optional[float], EMAState]:
    """Single-step EMA update.  Returns (value | None, state).

    ``x`` may be None (undefined input, e.g. the MACD line during its own
    warm-up).  The SMA seed needs *length* consecutive defined inputs, so an
    undefined input during warm-up restarts the count.  After the seed an
    undefined input yields None and leaves the recurrence untouched.
    """
    if replace:
        state.last, state._warmup_sum, state._warmup_count = state._undo
    else:
        state._undo = (state.last, state._warmup_sum, state._warmup_count)

    if x is None:
        if state.last is None:
            state._warmup_sum = 0.0
            state._warmup_count = 0
        return None, state

    if state.last is None:
        state._warmup_sum += x
        state._warmup_count += 1
        if state._warmup_count < state.length:
            return None, state
        state.last = state._warmup_sum / state.length   # SMA seed
        return state.last, state

    state.last = (x - state.last) * state.alpha + state.last
    return state.last, state


# ---------------------------------------------------------------------------
# Calculator descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Calculator:
    """Immutable descriptor for one indicator family.

    ``update(state, bar, params, replace) -> (values, state)`` is the only
    arithmetic; batch results replay it bar by bar.
    """
    kind:         str
    name:         str
    description:  str
    category:     str                                  # "price" | "oscillator"
    params:       ParamSchema
    warmup:       Callable[[Any], int]
    output_names: Callable[[Any], List[str]]
    init:         Callable[[Any], Any]
    update:       Callable[[Any, Bar, Any, bool], Tuple[Values, Any]]

    def compute_batch(self, series: BarSeries, params: Any) -> Tuple[List[Values], Any]:
        """Replay every bar of *series*.

        Returns one value list per output (aligned with the bars) and the
        final state, ready for incremental updates.
        """
        state, rows = replay(self, series, params)
        n_out = len(self.output_names(params))
        columns: List[Values] = [[row[k] for row in rows] for k in range(n_out)]
        return columns, state

    def compute_incremental(
            self, state: Any, bar: Bar, params: Any, is_replace: bool = False
    ) -> Tuple[Any, Values]:
        """Advance (append) or redo (replace) the last step of *state*."""
        values, state = self.update(state, bar, params, is_replace)
        return state, values


def replay(calc: Calculator, bars: Iterable[Bar], params: Any) -> Tuple[Any, List[Values]]:
    """Generic seed: run ``calc.update`` over *bars* from a fresh state."""
    state = calc.init(params)
    rows: List[Values] = []
    for bar in bars:
        values, state = calc.update(state, bar, params, False)
        rows.append(values)
    return state, rows


# ---------------------------------------------------------------------------
# Registry  (populated by category modules)
# ---------------------------------------------------------------------------

class CalculatorRegistry:
    """Lookup table from indicator type to Calculator.

    Registering an existing type replaces it.
    """

    def __init__(self) -> None:
        self._calculators: Dict[str, Calculator] = {}

    def register(self, calculator: Calculator) -> Calculator:
        self._calculators[calculator.kind] = calculator
        return calculator

    def get(self, kind: str) -> Optional[Calculator]:
        return self._calculators.get(kind)

    def unregister(self, kind: str) -> bool:
        return self._calculators.pop(kind, None) is not None

    def list_types(self) -> List[str]:
        return sorted(self._calculators)

    def has(self, kind: str) -> bool:
        return kind in self._calculators

    def all(self) -> List[Calculator]:
        return [self._calculators[k] for k in self.list_types()]

    def by_category(self, category: str) -> List[Calculator]:
        return [c for c in self.all() if c.category == category]

    def clear(self) -> None:
        self._calculators.clear()

    def copy(self) -> "CalculatorRegistry":
        other = CalculatorRegistry()
        other._calculators.update(self._calculators)
        return other

    def __contains__(self, kind: object) -> bool:
        return kind in self._calculators

    def __len__(self) -> int:
        return len(self._calculators)


REGISTRY = CalculatorRegistry()
