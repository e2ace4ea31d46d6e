# -*- coding: utf-8 -*-
"""pandas-ta-live -- computation engine.

One ComputationEngine is one session: a single bar stream (e.g. one
symbol + timeframe + strategy) and the indicator instances configured on
it.  Sessions share nothing except the read-mostly calculator registry;
calls against one session must be serialized by the caller.

    engine = ComputationEngine()
    channels = engine.compute_batch(series, [{"id": "rsi", "type": "rsi"}])
    points = engine.apply_bar(forming_bar, is_replace=True)

The engine keeps per-instance recurrence state only (ring buffers for
windowed indicators, scalars otherwise), never the bar history.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import pandas as pd
from loguru import logger

from .bars import BarLike, BarSeries, validate_bar
from .channels import Channel, Point, channel_ids, channels_to_frame, finite_or_none
from .errors import DuplicateInstance, EmptySeries, NonMonotonicTimestamp
from .params import ParameterSet, parse_parameter_set
from .stateful import REGISTRY, Calculator, CalculatorRegistry

ParameterSetLike = Union[ParameterSet, Mapping[str, Any]]


@dataclass
class _Instance:
    parameter_set: ParameterSet
    calculator:    Calculator
    channel_ids:   List[str]
    state:         Any

    @property
    def id(self) -> str:
        return self.parameter_set.id


class _StateCache:
    """Incremental state per instance id, in configuration order."""

    def __init__(self) -> None:
        self._instances: Dict[str, _Instance] = {}

    def put(self, instance: _Instance) -> None:
        self._instances[instance.id] = instance

    def drop(self, instance_id: str) -> bool:
        return self._instances.pop(instance_id, None) is not None

    def clear(self) -> None:
        self._instances.clear()

    def channel_ids(self) -> List[str]:
        return [cid for inst in self._instances.values() for cid in inst.channel_ids]

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self._instances

    def __iter__(self) -> Iterator[_Instance]:
        return iter(list(self._instances.values()))

    def __len__(self) -> int:
        return len(self._instances)


class ComputationEngine:
    """Batch + incremental indicator computation for one bar stream."""

    def __init__(self, registry: Optional[CalculatorRegistry] = None) -> None:
        self.registry = registry if registry is not None else REGISTRY
        self._cache = _StateCache()
        self._last_ts: Optional[int] = None
        self._bar_count = 0

    # -- session info ------------------------------------------------------

    @property
    def instance_ids(self) -> List[str]:
        return [inst.id for inst in self._cache]

    @property
    def channel_ids(self) -> List[str]:
        return self._cache.channel_ids()

    @property
    def last_timestamp(self) -> Optional[int]:
        return self._last_ts

    @property
    def bar_count(self) -> int:
        """Bars seen by this session (replaces do not count)."""
        return self._bar_count

    @property
    def max_warmup(self) -> int:
        """Longest warm-up among the active instances."""
        return max(
            (inst.calculator.warmup(inst.parameter_set.params) for inst in self._cache),
            default=0,
        )

    def reset(self) -> None:
        """Drop every instance and its state."""
        self._cache.clear()
        self._last_ts = None
        self._bar_count = 0

    # -- configuration -----------------------------------------------------

    def _prepare(
            self, parameter_sets: Iterable[ParameterSetLike], taken: Iterable[str] = ()
    ) -> List[Tuple[ParameterSet, Calculator, List[str]]]:
        """Validate every set before anything is computed."""
        seen_ids = set()
        seen_channels = set(taken)
        prepared = []
        for raw in parameter_sets:
            ps = parse_parameter_set(raw, self.registry)
            if ps.id in seen_ids:
                raise DuplicateInstance(f"[X] duplicate instance id: {ps.id!r}")
            seen_ids.add(ps.id)
            if not ps.enabled:
                logger.debug("{}: disabled, skipped", ps.id)
                continue
            calc = self.registry.get(ps.type)
            ids = channel_ids(ps.id, calc.output_names(ps.params))
            clash = seen_channels.intersection(ids)
            if clash:
                raise DuplicateInstance(f"[X] channel id collision: {sorted(clash)}")
            seen_channels.update(ids)
            prepared.append((ps, calc, ids))
        return prepared

    def _run_batch(
            self, series: BarSeries, ps: ParameterSet, calc: Calculator, ids: List[str]
    ) -> Tuple[Dict[str, Channel], _Instance]:
        columns, state = calc.compute_batch(series, ps.params)
        timestamps = series.timestamps
        channels = {
            cid: Channel.from_values(cid, ps.id, name, timestamps, column)
            for cid, name, column in zip(ids, calc.output_names(ps.params), columns)
        }
        return channels, _Instance(ps, calc, ids, state)

    # -- operations --------------------------------------------------------

    def compute_batch(
            self,
            series: Union[BarSeries, Iterable[BarLike]],
            parameter_sets: Iterable[ParameterSetLike],
    ) -> Dict[str, Channel]:
        """Compute every enabled instance over *series* and start a session.

        All configuration is validated first; on a ConfigError or
        SeriesError the current session is left untouched.  The incremental
        state of each instance is taken from the end of its batch run, so
        ``apply_bar`` continues exactly where the batch stopped.
        """
        if not isinstance(series, BarSeries):
            series = BarSeries(series)
        prepared = self._prepare(parameter_sets)

        self.reset()
        out: Dict[str, Channel] = {}
        for ps, calc, ids in prepared:
            channels, instance = self._run_batch(series, ps, calc, ids)
            out.update(channels)
            self._cache.put(instance)

        self._last_ts = series.last.timestamp
        self._bar_count = len(series)
        logger.debug(
            "compute_batch: {} bars, {} instances, {} channels",
            len(series), len(prepared), len(out),
        )
        return out

    def compute_frame(
            self,
            series: Union[BarSeries, Iterable[BarLike]],
            parameter_sets: Iterable[ParameterSetLike],
    ) -> pd.DataFrame:
        """compute_batch, returned as a DataFrame (one column per channel)."""
        return channels_to_frame(self.compute_batch(series, parameter_sets))

    def apply_bar(self, bar: BarLike, is_replace: bool = False) -> Dict[str, Point]:
        """Feed one streamed bar; return the new / updated point per channel.

        ``is_replace=False``: a new bar opened; its timestamp must be after
        the last one.  ``is_replace=True``: the forming (last) bar changed;
        its timestamp must equal the last one.  Replacing any number of
        times and then appending gives the same values as a batch run over
        the final bars.
        """
        bar = validate_bar(bar)
        if is_replace:
            if self._last_ts is None:
                raise EmptySeries("[X] no bar to replace: the session has no bars yet")
            if bar.timestamp != self._last_ts:
                raise NonMonotonicTimestamp(
                    f"[X] replace timestamp {bar.timestamp} != last bar {self._last_ts}"
                )
        elif self._last_ts is not None and bar.timestamp <= self._last_ts:
            raise NonMonotonicTimestamp(
                f"[X] timestamp {bar.timestamp} is not after last bar {self._last_ts}"
            )

        out: Dict[str, Point] = {}
        for inst in self._cache:
            inst.state, values = inst.calculator.compute_incremental(
                inst.state, bar, inst.parameter_set.params, is_replace
            )
            for cid, value in zip(inst.channel_ids, values):
                out[cid] = Point(bar.timestamp, finite_or_none(value, cid))

        if not is_replace:
            self._last_ts = bar.timestamp
            self._bar_count += 1
        return out

    def add_instance(
            self,
            parameter_set: ParameterSetLike,
            series: Optional[Union[BarSeries, Iterable[BarLike]]] = None,
    ) -> Dict[str, Channel]:
        """Add one instance to a running session.

        Once the session has seen bars, *series* must be the history that
        ends at the session's last bar; it is replayed to seed the new
        instance.  On an empty session *series* (if given) starts the
        session, like a one-instance ``compute_batch``.
        """
        prepared = self._prepare([parameter_set], taken=self._cache.channel_ids())
        if not prepared:
            return {}
        ps, calc, ids = prepared[0]
        if ps.id in self._cache:
            raise DuplicateInstance(f"[X] instance already configured: {ps.id!r}")

        if series is None:
            if self._bar_count:
                raise EmptySeries(
                    f"[X] {ps.id}: session has {self._bar_count} bars, history required"
                )
            self._cache.put(_Instance(ps, calc, ids, calc.init(ps.params)))
            names = calc.output_names(ps.params)
            return {cid: Channel.from_values(cid, ps.id, name, [], []) for cid, name in zip(ids, names)}

        if self._last_ts is None and len(self._cache):
            raise NonMonotonicTimestamp(
                f"[X] {ps.id}: other instances are waiting for the first bar, "
                "add this one without history"
            )
        if not isinstance(series, BarSeries):
            series = BarSeries(series)
        if self._last_ts is not None and series.last.timestamp != self._last_ts:
            raise NonMonotonicTimestamp(
                f"[X] {ps.id}: history ends at {series.last.timestamp}, "
                f"session is at {self._last_ts}"
            )
        channels, instance = self._run_batch(series, ps, calc, ids)
        self._cache.put(instance)
        if self._last_ts is None:
            self._last_ts = series.last.timestamp
            self._bar_count = len(series)
        logger.debug("add_instance: {} seeded from {} bars", ps.id, len(series))
        return channels

    def remove_instance(self, instance_id: str) -> bool:
        """Forget an instance and its state.  False if it was not active."""
        removed = self._cache.drop(instance_id)
        if removed:
            logger.debug("remove_instance: {}", instance_id)
        return removed
