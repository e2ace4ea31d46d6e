# -*- coding: utf-8 -*-
"""pandas-ta-live -- bars and validated bar series.

A BarSeries is immutable, oldest first, never empty and strictly increasing
in timestamp.  Validation never sorts or repairs: streaming updates rely on
exact append / replace semantics, which only hold for ordered input.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral, Real
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union, overload

import numpy as np
import pandas as pd

from .errors import EmptySeries, InvalidBar, NonFiniteField, NonMonotonicTimestamp

PRICE_FIELDS: Tuple[str, ...] = ("open", "high", "low", "close", "volume")


@dataclass(frozen=True)
class Bar:
    """One OHLCV sample for a fixed time bucket."""
    timestamp: int
    open:      float
    high:      float
    low:       float
    close:     float
    volume:    float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], index: Optional[int] = None) -> "Bar":
        missing = [k for k in ("timestamp",) + PRICE_FIELDS[:4] if k not in data]
        if missing:
            raise InvalidBar(f"[X] bar is missing {', '.join(missing)}", index)
        return validate_bar(
            cls(
                timestamp=data["timestamp"],
                open=data["open"],
                high=data["high"],
                low=data["low"],
                close=data["close"],
                volume=data.get("volume", 0.0),
            ),
            index,
        )


BarLike = Union[Bar, Mapping[str, Any]]


def _as_timestamp(value: Any, index: Optional[int]) -> int:
    if isinstance(value, bool):
        raise InvalidBar(f"[X] timestamp must be an integer, got {value!r}", index)
    if isinstance(value, Integral):
        return int(value)
    if isinstance(value, Real):
        if not math.isfinite(value):
            raise NonFiniteField("timestamp", value, index)
        if float(value).is_integer():
            return int(value)
    raise InvalidBar(f"[X] timestamp must be an integer, got {value!r}", index)


def _as_price(name: str, value: Any, index: Optional[int]) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidBar(f"[X] {name} must be a number, got {value!r}", index)
    x = float(value)
    if not math.isfinite(x):
        raise NonFiniteField(name, value, index)
    return x


def validate_bar(bar: BarLike, index: Optional[int] = None) -> Bar:
    """Return *bar* as a Bar with int timestamp and finite float fields."""
    if not isinstance(bar, Bar):
        if isinstance(bar, Mapping):
            return Bar.from_mapping(bar, index)
        raise InvalidBar(f"[X] expected a Bar or mapping, got {type(bar).__name__}", index)
    ts = _as_timestamp(bar.timestamp, index)
    fields = {name: _as_price(name, getattr(bar, name), index) for name in PRICE_FIELDS}
    if ts == bar.timestamp and type(bar.timestamp) is int and all(
        type(getattr(bar, k)) is float for k in PRICE_FIELDS
    ):
        return bar
    return Bar(timestamp=ts, **fields)


class BarSeries:
    """Validated, immutable, time-ordered sequence of bars."""

    __slots__ = ("_bars",)

    def __init__(self, bars: Iterable[BarLike]) -> None:
        self._bars: Tuple[Bar, ...] = _validate(bars)

    @classmethod
    def _trusted(cls, bars: Tuple[Bar, ...]) -> "BarSeries":
        obj = cls.__new__(cls)
        obj._bars = bars
        return obj

    # -- sequence protocol -------------------------------------------------

    def __len__(self) -> int:
        return len(self._bars)

    def __iter__(self) -> Iterator[Bar]:
        return iter(self._bars)

    @overload
    def __getitem__(self, item: int) -> Bar: ...

    @overload
    def __getitem__(self, item: slice) -> "BarSeries": ...

    def __getitem__(self, item):
        if isinstance(item, slice):
            bars = self._bars[item]
            if item.step not in (None, 1):
                raise InvalidBar("[X] BarSeries slices must be contiguous")
            if not bars:
                raise EmptySeries("[X] slice selects no bars")
            return BarSeries._trusted(bars)
        return self._bars[item]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BarSeries):
            return NotImplemented
        return self._bars == other._bars

    def __hash__(self) -> int:
        return hash(self._bars)

    def __repr__(self) -> str:
        return (
            f"BarSeries(len={len(self)}, first={self._bars[0].timestamp}, "
            f"last={self._bars[-1].timestamp})"
        )

    # -- accessors ---------------------------------------------------------

    @property
    def bars(self) -> Tuple[Bar, ...]:
        return self._bars

    @property
    def first(self) -> Bar:
        return self._bars[0]

    @property
    def last(self) -> Bar:
        return self._bars[-1]

    @property
    def timestamps(self) -> List[int]:
        return [b.timestamp for b in self._bars]

    @property
    def closes(self) -> List[float]:
        return [b.close for b in self._bars]

    # -- pandas interop ----------------------------------------------------

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "BarSeries":
        """Build a series from an OHLCV DataFrame.

        Timestamps come from a ``timestamp`` column, an integer index named
        ``timestamp`` or a DatetimeIndex (converted to epoch milliseconds).
        Column names are matched case-insensitively.
        """
        if len(df) == 0:
            raise EmptySeries("[X] empty DataFrame")
        cols = {str(c).lower(): c for c in df.columns}
        missing = [k for k in PRICE_FIELDS[:4] if k not in cols]
        if missing:
            raise InvalidBar(f"[X] DataFrame is missing columns: {', '.join(missing)}")

        if "timestamp" in cols:
            ts_raw = df[cols["timestamp"]].to_numpy()
        elif isinstance(df.index, pd.DatetimeIndex):
            epoch = pd.Timestamp("1970-01-01", tz=df.index.tz)
            ts_raw = ((df.index - epoch) // pd.Timedelta(milliseconds=1)).to_numpy()
        elif df.index.name == "timestamp":
            ts_raw = df.index.to_numpy()
        else:
            raise InvalidBar("[X] DataFrame has no timestamp column or DatetimeIndex")

        arrays = {}
        for name in PRICE_FIELDS:
            if name in cols:
                arrays[name] = pd.to_numeric(df[cols[name]], errors="coerce").to_numpy(dtype=float)
            else:
                arrays[name] = np.zeros(len(df))
            bad = np.flatnonzero(~np.isfinite(arrays[name]))
            if bad.size:
                i = int(bad[0])
                raw = df[cols[name]].iloc[i] if name in cols else None
                raise NonFiniteField(name, raw, i)

        ts = [_as_timestamp(v.item() if hasattr(v, "item") else v, i) for i, v in enumerate(ts_raw)]
        order = np.diff(np.asarray(ts, dtype=np.int64))
        bad = np.flatnonzero(order <= 0)
        if bad.size:
            i = int(bad[0]) + 1
            raise NonMonotonicTimestamp(
                f"[X] timestamp {ts[i]} at index {i} is not after {ts[i - 1]}", i
            )

        bars = tuple(
            Bar(
                timestamp=ts[i],
                open=float(arrays["open"][i]),
                high=float(arrays["high"][i]),
                low=float(arrays["low"][i]),
                close=float(arrays["close"][i]),
                volume=float(arrays["volume"][i]),
            )
            for i in range(len(ts))
        )
        return cls._trusted(bars)

    def to_frame(self) -> pd.DataFrame:
        """OHLCV DataFrame indexed by timestamp."""
        df = pd.DataFrame(
            {name: [getattr(b, name) for b in self._bars] for name in PRICE_FIELDS},
            index=pd.Index(self.timestamps, name="timestamp", dtype="int64"),
        )
        return df


def _validate(bars: Iterable[BarLike]) -> Tuple[Bar, ...]:
    if isinstance(bars, BarSeries):
        return bars.bars
    out: List[Bar] = []
    prev: Optional[int] = None
    for i, raw in enumerate(bars):
        bar = validate_bar(raw, i)
        if prev is not None and bar.timestamp <= prev:
            raise NonMonotonicTimestamp(
                f"[X] timestamp {bar.timestamp} at index {i} is not after {prev}", i
            )
        prev = bar.timestamp
        out.append(bar)
    if not out:
        raise EmptySeries("[X] a bar series needs at least one bar")
    return tuple(out)


def validate_series(bars: Iterable[BarLike]) -> BarSeries:
    """Validate *bars* into an immutable BarSeries (see module docstring)."""
    return BarSeries(bars)
