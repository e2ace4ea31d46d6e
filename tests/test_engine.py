# -*- coding: utf-8 -*-
"""Session behaviour and batch / incremental equivalence."""
from __future__ import annotations

import math
from dataclasses import dataclass, replace

import pandas as pd
import pytest

from pandas_ta_live import (
    REGISTRY,
    Bar,
    Calculator,
    ComputationEngine,
    DuplicateInstance,
    EmptySeries,
    InvalidParameterCombination,
    MACDParams,
    NonFiniteField,
    NonMonotonicTimestamp,
    NumericAnomaly,
    ParameterOutOfRange,
    ParamSchema,
    ParameterSet,
    Point,
    SMAParams,
    UnknownIndicatorType,
    make_parameter_set,
)

from conftest import STEP, T0, bars_from_closes


def values_of(channels):
    return {cid: ch.values for cid, ch in channels.items()}


def stream(engine, bars):
    """apply_bar each bar; collect the values per channel."""
    out = {}
    for bar in bars:
        for cid, point in engine.apply_bar(bar).items():
            assert point.timestamp == bar.timestamp
            out.setdefault(cid, []).append(point.value)
    return out


def jitter(bar: Bar, k: int) -> Bar:
    """Intermediate state of a forming bar."""
    return replace(bar, close=bar.close + 0.37 * k, high=bar.high + 0.5 * k, volume=bar.volume / (k + 1))


class TestEquivalence:
    def test_prefix_then_stream(self, random_series, all_families):
        full = values_of(ComputationEngine().compute_batch(random_series, all_families))

        engine = ComputationEngine()
        head = values_of(engine.compute_batch(random_series[:2], all_families))
        tail = stream(engine, random_series.bars[2:])

        assert set(full) == set(head) == set(tail)
        for cid in full:
            assert head[cid] + tail[cid] == full[cid], cid

    @pytest.mark.parametrize("split", [1, 2, 17, 60, 149])
    def test_any_split(self, random_series, all_families, split):
        full = values_of(ComputationEngine().compute_batch(random_series, all_families))
        engine = ComputationEngine()
        head = values_of(engine.compute_batch(random_series[:split], all_families))
        tail = stream(engine, random_series.bars[split:])
        for cid in full:
            assert head[cid] + tail.get(cid, []) == full[cid], cid

    def test_replace_then_append(self, random_series, all_families):
        full = values_of(ComputationEngine().compute_batch(random_series, all_families))

        engine = ComputationEngine()
        got = values_of(engine.compute_batch(random_series[:2], all_families))
        for bar in random_series.bars[2:]:
            engine.apply_bar(jitter(bar, 1))
            for k in (2, 3):
                engine.apply_bar(jitter(bar, k), is_replace=True)
            final = engine.apply_bar(bar, is_replace=True)
            for cid, point in final.items():
                got[cid].append(point.value)

        for cid in full:
            assert got[cid] == full[cid], cid
        assert engine.bar_count == len(random_series)
        assert engine.last_timestamp == random_series.last.timestamp

    def test_outlier_with_replaces(self):
        closes = [1.0, 2.0, 1e17, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0]
        sets = [
            {"id": "s", "type": "sma", "parameters": {"period": 2}},
            {"id": "b", "type": "bbands", "parameters": {"period": 3}},
        ]
        bars = bars_from_closes(closes)
        full = values_of(ComputationEngine().compute_batch(bars, sets))
        assert full["s"][-3:] == [5.5, 6.5, 7.5]

        engine = ComputationEngine()
        got = values_of(engine.compute_batch(bars[:2], sets))
        for bar in bars[2:]:
            engine.apply_bar(jitter(bar, 5))
            for cid, point in engine.apply_bar(bar, is_replace=True).items():
                got[cid].append(point.value)
        assert got == full

    def test_replace_last_batch_bar(self, random_series, all_families):
        """Replacing the last batch bar equals a batch over the corrected series."""
        corrected = list(random_series.bars)
        corrected[-1] = jitter(corrected[-1], 4)
        expected = values_of(ComputationEngine().compute_batch(corrected, all_families))

        engine = ComputationEngine()
        engine.compute_batch(random_series, all_families)
        points = engine.apply_bar(corrected[-1], is_replace=True)
        for cid, point in points.items():
            assert point == Point(corrected[-1].timestamp, expected[cid][-1])
        assert engine.bar_count == len(random_series)

    def test_replace_is_idempotent(self, random_series, all_families):
        engine = ComputationEngine()
        engine.compute_batch(random_series[:50], all_families)
        bar = random_series[50]
        first = engine.apply_bar(bar)
        assert engine.apply_bar(bar, is_replace=True) == first
        assert engine.apply_bar(bar, is_replace=True) == first


class TestBatch:
    def test_idempotent(self, random_series, all_families):
        engine = ComputationEngine()
        a = engine.compute_batch(random_series, all_families)
        b = engine.compute_batch(random_series, all_families)
        assert a == b

    def test_accepts_plain_bars(self, all_families):
        bars = bars_from_closes([float(i) for i in range(1, 30)])
        out = ComputationEngine().compute_batch(bars, all_families)
        assert out["sma"].values[4] == 3.0

    def test_channel_ids(self, random_series, all_families):
        out = ComputationEngine().compute_batch(random_series, all_families)
        assert list(out) == [
            "sma", "ema", "rsi", "macd_macd", "macd_signal", "macd_histogram",
            "bb_upper", "bb_middle", "bb_lower", "sma_hl2",
        ]
        ch = out["bb_upper"]
        assert (ch.instance_id, ch.name) == ("bb", "upper")
        assert ch.timestamps == random_series.timestamps

    def test_disabled_sets_are_skipped(self, random_series):
        engine = ComputationEngine()
        out = engine.compute_batch(random_series, [
            {"id": "a", "type": "sma", "enabled": False},
            {"id": "b", "type": "ema"},
        ])
        assert list(out) == ["b"]
        assert engine.instance_ids == ["b"]

    def test_accepts_parameter_set_objects(self, random_series):
        ps = make_parameter_set("r", "rsi", {"period": 5})
        out = ComputationEngine().compute_batch(random_series, [ps])
        assert out["r"].first_defined == 5

    def test_duplicate_instance_id(self, random_series):
        with pytest.raises(DuplicateInstance):
            ComputationEngine().compute_batch(random_series, [
                {"id": "a", "type": "sma"},
                {"id": "a", "type": "ema"},
            ])

    def test_channel_id_collision(self, random_series):
        with pytest.raises(DuplicateInstance):
            ComputationEngine().compute_batch(random_series, [
                {"id": "x", "type": "macd"},
                {"id": "x_signal", "type": "sma"},
            ])

    def test_config_error_leaves_session_untouched(self, random_series):
        engine = ComputationEngine()
        engine.compute_batch(random_series, [{"id": "s", "type": "sma"}])
        with pytest.raises(UnknownIndicatorType):
            engine.compute_batch(random_series, [{"id": "e", "type": "ema"}, {"id": "z", "type": "zz"}])
        with pytest.raises(ParameterOutOfRange):
            engine.compute_batch(random_series, [{"id": "e", "type": "ema", "parameters": {"period": 0}}])
        assert engine.instance_ids == ["s"]
        assert engine.bar_count == len(random_series)

    def test_series_error_leaves_session_untouched(self, random_series):
        engine = ComputationEngine()
        engine.compute_batch(random_series, [{"id": "s", "type": "sma"}])
        bad = bars_from_closes([1.0, float("nan")])
        with pytest.raises(NonFiniteField):
            engine.compute_batch(bad, [{"id": "e", "type": "ema"}])
        assert engine.instance_ids == ["s"]

    def test_hand_built_parameter_set_is_validated(self, random_series):
        engine = ComputationEngine()
        engine.compute_batch(random_series, [{"id": "s", "type": "sma"}])
        with pytest.raises(ParameterOutOfRange):
            engine.compute_batch(random_series, [ParameterSet("z", "sma", SMAParams(period=0))])
        bad_macd = ParameterSet("m", "macd", MACDParams(fast_period=26, slow_period=12))
        with pytest.raises(InvalidParameterCombination):
            engine.compute_batch(random_series, [bad_macd])
        with pytest.raises(InvalidParameterCombination):
            engine.add_instance(bad_macd, random_series)
        assert engine.instance_ids == ["s"]

    def test_empty_series(self):
        with pytest.raises(EmptySeries):
            ComputationEngine().compute_batch([], [{"id": "s", "type": "sma"}])

    def test_compute_frame(self, random_series, all_families):
        df = ComputationEngine().compute_frame(random_series, all_families)
        assert isinstance(df, pd.DataFrame)
        assert len(df) == len(random_series)
        assert list(df.index) == random_series.timestamps
        assert df["sma"].isna().sum() == 4
        assert df["macd_signal"].isna().sum() == 8 + 2

    def test_session_info(self, random_series, all_families):
        engine = ComputationEngine()
        assert engine.last_timestamp is None
        assert engine.max_warmup == 0
        engine.compute_batch(random_series, all_families)
        assert engine.instance_ids == ["sma", "ema", "rsi", "macd", "bb", "sma_hl2"]
        assert len(engine.channel_ids) == 10
        assert engine.max_warmup == 11
        engine.reset()
        assert engine.instance_ids == []
        assert engine.bar_count == 0


class TestApplyBar:
    @pytest.fixture
    def engine(self, random_series):
        engine = ComputationEngine()
        engine.compute_batch(random_series[:10], [{"id": "s", "type": "sma", "parameters": {"period": 3}}])
        return engine

    def test_append_requires_later_timestamp(self, engine, random_series):
        with pytest.raises(NonMonotonicTimestamp):
            engine.apply_bar(random_series[9])
        with pytest.raises(NonMonotonicTimestamp):
            engine.apply_bar(random_series[5])

    def test_replace_requires_same_timestamp(self, engine, random_series):
        with pytest.raises(NonMonotonicTimestamp):
            engine.apply_bar(random_series[10], is_replace=True)

    def test_replace_on_empty_session(self):
        engine = ComputationEngine()
        engine.add_instance({"id": "s", "type": "sma"})
        with pytest.raises(EmptySeries):
            engine.apply_bar(Bar(T0, 1.0, 1.0, 1.0, 1.0), is_replace=True)

    def test_invalid_bar_leaves_state(self, engine, random_series):
        with pytest.raises(NonFiniteField):
            engine.apply_bar(replace(random_series[10], close=float("inf")))
        assert engine.bar_count == 10
        assert engine.apply_bar(random_series[10])["s"].value is not None

    def test_accepts_mapping(self, engine, random_series):
        bar = random_series[10]
        points = engine.apply_bar({
            "timestamp": bar.timestamp, "open": bar.open, "high": bar.high,
            "low": bar.low, "close": bar.close, "volume": bar.volume,
        })
        assert points["s"].timestamp == bar.timestamp
        assert engine.last_timestamp == bar.timestamp

    def test_no_instances(self, random_series):
        engine = ComputationEngine()
        assert engine.apply_bar(random_series[0]) == {}
        assert engine.bar_count == 1


class TestInstances:
    def test_remove_instance(self, random_series, all_families):
        engine = ComputationEngine()
        engine.compute_batch(random_series[:20], all_families)
        assert engine.remove_instance("macd") is True
        assert engine.remove_instance("macd") is False
        points = engine.apply_bar(random_series[20])
        assert "macd_macd" not in points
        assert "sma" in points

    def test_add_instance_to_running_session(self, random_series):
        sets = [{"id": "s", "type": "sma", "parameters": {"period": 4}}]
        late = {"id": "r", "type": "rsi", "parameters": {"period": 5}}
        full = ComputationEngine().compute_batch(random_series, sets + [late])

        engine = ComputationEngine()
        engine.compute_batch(random_series[:40], sets)
        stream(engine, random_series.bars[40:80])
        seeded = engine.add_instance(late, random_series[:80])
        assert seeded["r"].values == full["r"].values[:80]

        tail = stream(engine, random_series.bars[80:])
        assert tail["r"] == full["r"].values[80:]
        assert tail["s"] == full["s"].values[80:]

    def test_add_instance_requires_history(self, random_series):
        engine = ComputationEngine()
        engine.compute_batch(random_series[:10], [{"id": "s", "type": "sma"}])
        with pytest.raises(EmptySeries):
            engine.add_instance({"id": "e", "type": "ema"})

    def test_add_instance_history_must_end_at_session(self, random_series):
        engine = ComputationEngine()
        engine.compute_batch(random_series[:10], [{"id": "s", "type": "sma"}])
        with pytest.raises(NonMonotonicTimestamp):
            engine.add_instance({"id": "e", "type": "ema"}, random_series[:9])

    def test_add_instance_duplicate(self, random_series):
        engine = ComputationEngine()
        engine.compute_batch(random_series[:10], [{"id": "s", "type": "sma"}])
        with pytest.raises(DuplicateInstance):
            engine.add_instance({"id": "s", "type": "ema"}, random_series[:10])

    def test_add_instance_to_empty_session(self, random_series):
        engine = ComputationEngine()
        channels = engine.add_instance({"id": "s", "type": "sma", "parameters": {"period": 2}})
        assert len(channels["s"]) == 0
        out = stream(engine, random_series.bars[:5])
        expected = ComputationEngine().compute_batch(random_series[:5], [
            {"id": "s", "type": "sma", "parameters": {"period": 2}},
        ])
        assert out["s"] == expected["s"].values

    def test_add_instance_starts_session(self, random_series):
        engine = ComputationEngine()
        engine.add_instance({"id": "s", "type": "sma"}, random_series[:30])
        assert engine.bar_count == 30
        assert engine.last_timestamp == random_series[29].timestamp

    def test_add_disabled_instance(self, random_series):
        engine = ComputationEngine()
        assert engine.add_instance({"id": "s", "type": "sma", "enabled": False}) == {}
        assert engine.instance_ids == []


@dataclass(frozen=True)
class _NoParams:
    pass


def _ratio_update(state, bar, params, replace_=False):
    if bar.volume == 0.0:
        return [math.inf], state
    return [bar.close / bar.volume], state


def test_non_finite_output_becomes_undefined():
    registry = REGISTRY.copy()
    registry.register(Calculator(
        kind="ratio",
        name="Close / Volume",
        description="close divided by volume",
        category="oscillator",
        params=ParamSchema(specs=(), cls=_NoParams),
        warmup=lambda p: 1,
        output_names=lambda p: ["ratio"],
        init=lambda p: None,
        update=_ratio_update,
    ))
    bars = [
        Bar(T0, 1.0, 1.0, 1.0, 1.0, volume=2.0),
        Bar(T0 + STEP, 1.0, 1.0, 1.0, 1.0, volume=0.0),
    ]
    engine = ComputationEngine(registry)
    with pytest.warns(NumericAnomaly):
        out = engine.compute_batch(bars, [{"id": "q", "type": "ratio"}])
    assert out["q"].values == [0.5, None]

    with pytest.warns(NumericAnomaly):
        points = engine.apply_bar(replace(bars[1], timestamp=T0 + 2 * STEP))
    assert points["q"] == Point(T0 + 2 * STEP, None)
    assert engine.apply_bar(replace(bars[0], timestamp=T0 + 3 * STEP))["q"].value == 0.5
