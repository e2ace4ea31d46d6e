# -*- coding: utf-8 -*-
"""pandas-ta-live -- output channels.

A Channel is one named output series of one indicator instance, aligned
bar for bar with the input series.  ``None`` marks an undefined value
(warm-up); every other value is a finite float.
"""
from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from typing import Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import NumericAnomaly


class Point(NamedTuple):
    timestamp: int
    value: Optional[float]


def finite_or_none(value: Optional[float], channel_id: str = "") -> Optional[float]:
    """Boundary guard: a NaN / inf never leaves the engine."""
    if value is None or math.isfinite(value):
        return value
    warnings.warn(
        f"{channel_id}: non-finite value {value!r} replaced by undefined",
        NumericAnomaly,
        stacklevel=3,
    )
    return None


def channel_ids(instance_id: str, names: Sequence[str]) -> List[str]:
    """Channel ids of an instance: the id itself, or ``{id}_{name}`` each."""
    if len(names) == 1:
        return [instance_id]
    return [f"{instance_id}_{name}" for name in names]


@dataclass(frozen=True)
class Channel:
    channel_id:  str
    instance_id: str
    name:        str
    points:      Tuple[Point, ...]

    @classmethod
    def from_values(
            cls,
            channel_id: str,
            instance_id: str,
            name: str,
            timestamps: Sequence[int],
            values: Sequence[Optional[float]],
    ) -> "Channel":
        if len(timestamps) != len(values):
            raise ValueError(
                f"{channel_id}: {len(values)} values for {len(timestamps)} timestamps"
            )
        points = tuple(
            Point(ts, finite_or_none(v, channel_id)) for ts, v in zip(timestamps, values)
        )
        return cls(channel_id=channel_id, instance_id=instance_id, name=name, points=points)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def values(self) -> List[Optional[float]]:
        return [p.value for p in self.points]

    @property
    def timestamps(self) -> List[int]:
        return [p.timestamp for p in self.points]

    @property
    def first_defined(self) -> Optional[int]:
        """Index of the first defined value, None if still warming up."""
        for i, p in enumerate(self.points):
            if p.value is not None:
                return i
        return None

    @property
    def last(self) -> Optional[Point]:
        return self.points[-1] if self.points else None

    def to_series(self) -> pd.Series:
        """Float Series indexed by timestamp, NaN where undefined."""
        return pd.Series(
            np.array([np.nan if v is None else v for v in self.values], dtype=float),
            index=pd.Index(self.timestamps, name="timestamp", dtype="int64"),
            name=self.channel_id,
        )


def channels_to_frame(channels: Mapping[str, Channel] | Iterable[Channel]) -> pd.DataFrame:
    """One column per channel, indexed by timestamp."""
    items = channels.values() if isinstance(channels, Mapping) else channels
    series = [c.to_series() for c in items]
    if not series:
        return pd.DataFrame(index=pd.Index([], name="timestamp", dtype="int64"))
    return pd.concat(series, axis=1)

