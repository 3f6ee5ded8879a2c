"""
Tests for time decay and bucket aggregation.
"""
import datetime as dt

import pytest

from conftest import FIXED_NOW, make_signal
from intent_engine.core.aggregation import aggregate, current_weight
from intent_engine.models.signal import SignalSource


class TestCurrentWeight:

    def test_fresh_signal_keeps_full_weight(self):
        signal = make_signal(intent_weight=0.8)
        assert current_weight(signal, FIXED_NOW) == pytest.approx(0.8)

    def test_continuous_daily_decay(self):
        signal = make_signal(intent_weight=1.0, decay_rate=0.1, timestamp=FIXED_NOW - dt.timedelta(days=2))
        assert current_weight(signal, FIXED_NOW) == pytest.approx(0.81)

        half_day = make_signal(intent_weight=1.0, decay_rate=0.1, timestamp=FIXED_NOW - dt.timedelta(hours=12))
        assert current_weight(half_day, FIXED_NOW) == pytest.approx(0.9 ** 0.5)

    def test_decay_is_monotonic_and_never_negative(self):
        signal = make_signal(intent_weight=0.9, decay_rate=0.3)
        weights = [current_weight(signal, FIXED_NOW + dt.timedelta(days=d)) for d in range(0, 200, 10)]

        assert weights == sorted(weights, reverse=True)
        assert all(w >= 0 for w in weights)

    def test_future_signal_treated_as_new(self):
        signal = make_signal(intent_weight=0.5, timestamp=FIXED_NOW + dt.timedelta(hours=3))
        assert current_weight(signal, FIXED_NOW) == pytest.approx(0.5)

    def test_zero_decay_never_fades(self):
        signal = make_signal(intent_weight=0.6, decay_rate=0.0, timestamp=FIXED_NOW - dt.timedelta(days=60))
        assert current_weight(signal, FIXED_NOW) == pytest.approx(0.6)


class TestAggregate:

    def test_single_signal_example(self):
        result = aggregate([make_signal(intent_weight=0.95)], FIXED_NOW)

        assert result.overall_score == pytest.approx(19.0)
        assert result.breakdown.website_signals == pytest.approx(19.0)
        assert result.breakdown.code_repository_signals == 0.0

    def test_buckets_follow_source(self):
        signals = [
            make_signal(source=SignalSource.DOCUMENTATION, intent_weight=0.5),
            make_signal(source=SignalSource.EXTERNAL, intent_weight=0.5),
            make_signal(source=SignalSource.EVENT, intent_weight=0.25),
            make_signal(source=SignalSource.CODE_REPOSITORY, intent_weight=0.1),
        ]
        breakdown = aggregate(signals, FIXED_NOW).breakdown

        assert breakdown.website_signals == pytest.approx(10.0)
        assert breakdown.competitive_signals == pytest.approx(10.0)
        assert breakdown.event_signals == pytest.approx(5.0)
        assert breakdown.code_repository_signals == pytest.approx(2.0)
        assert breakdown.total == pytest.approx(27.0)

    def test_overall_capped_but_buckets_are_not(self):
        signals = [make_signal(intent_weight=1.0) for _ in range(8)]
        result = aggregate(signals, FIXED_NOW)

        assert result.overall_score == 100.0
        assert result.breakdown.website_signals == pytest.approx(160.0)

    def test_deterministic(self):
        signals = [
            make_signal(intent_weight=0.7, timestamp=FIXED_NOW - dt.timedelta(days=3)),
            make_signal(source=SignalSource.COMMUNITY, intent_weight=0.4, decay_rate=0.05),
        ]
        first = aggregate(signals, FIXED_NOW)
        second = aggregate(list(reversed(signals)), FIXED_NOW)

        assert first.overall_score == pytest.approx(second.overall_score)
        assert first.breakdown == second.breakdown

    def test_empty_log_scores_zero(self):
        result = aggregate([], FIXED_NOW)
        assert result.overall_score == 0.0
        assert result.decayed == ()

    def test_custom_scale_factor(self):
        result = aggregate([make_signal(intent_weight=0.5)], FIXED_NOW, scale_factor=10)
        assert result.overall_score == pytest.approx(5.0)
