"""
Tests for buying stage, urgency, fit and trend rules.
"""
import datetime as dt

import pytest

from conftest import FIXED_NOW, make_signal
from intent_engine.core.aggregation import aggregate
from intent_engine.core.score_classifier import (
    calculate_fit,
    calculate_trend,
    calculate_urgency,
    classify_score,
    predict_buying_stage,
)
from intent_engine.models.profile import IdentityProfile
from intent_engine.models.score import BuyingStage, IntentTrend
from intent_engine.models.signal import SignalCategory


class TestBuyingStage:

    @pytest.mark.parametrize("score,expected", [
        (0, BuyingStage.AWARENESS),
        (10, BuyingStage.AWARENESS),
        (10.5, BuyingStage.AWARENESS),
        (30, BuyingStage.AWARENESS),
        (30.1, BuyingStage.CONSIDERATION),
        (60, BuyingStage.CONSIDERATION),
        (61, BuyingStage.EVALUATION),
        (80, BuyingStage.EVALUATION),
        (80.01, BuyingStage.PURCHASE),
        (100, BuyingStage.PURCHASE),
    ])
    def test_ladder_boundaries_are_exclusive(self, score, expected):
        assert predict_buying_stage(score) == expected

    def test_customer_with_renewed_intent_is_expansion(self):
        customer = IdentityProfile(is_customer=True)
        assert predict_buying_stage(45, customer) == BuyingStage.EXPANSION
        assert predict_buying_stage(5, customer) == BuyingStage.AWARENESS

    def test_prospect_is_never_expansion(self):
        assert predict_buying_stage(95, IdentityProfile()) == BuyingStage.PURCHASE


class TestUrgency:

    def test_ten_recent_purchase_signals_cap_at_100(self):
        signals = [make_signal(category=SignalCategory.PURCHASE_INTENT) for _ in range(10)]
        assert calculate_urgency(signals, FIXED_NOW) == 100.0

    def test_components(self):
        signals = [
            make_signal(category=SignalCategory.COMPETITIVE, intent_weight=0.5),
            make_signal(category=SignalCategory.AWARENESS, intent_weight=0.9),
        ]
        # 2 x 5 velocity + 1 high-weight x 10 + 1 competitive x 15
        assert calculate_urgency(signals, FIXED_NOW) == 35.0

    def test_old_signals_ignored(self):
        old = make_signal(timestamp=FIXED_NOW - dt.timedelta(days=8))
        assert calculate_urgency([old], FIXED_NOW) == 0.0

    def test_uses_raw_weight_not_decayed(self):
        aged = make_signal(intent_weight=0.9, decay_rate=0.5, category=SignalCategory.AWARENESS,
                           timestamp=FIXED_NOW - dt.timedelta(days=6))
        assert calculate_urgency([aged], FIXED_NOW) == 15.0


class TestFit:

    def test_unknown_identity_has_no_fit(self):
        assert calculate_fit(None) == 0.0

    def test_ideal_profile(self, sre_profile):
        assert calculate_fit(sre_profile) == 100.0

    def test_partial_profile(self):
        profile = IdentityProfile(
            employee_count=250,
            department="Marketing",
            seniority="manager",
            technology_stack=["docker", "java"],
        )
        # 30 size + 15 seniority + 2 tech
        assert calculate_fit(profile) == 47.0


class TestTrend:

    def test_empty_older_window_is_increasing(self):
        assert calculate_trend([make_signal()], FIXED_NOW) == IntentTrend.INCREASING

    def test_no_signals_is_stable(self):
        assert calculate_trend([], FIXED_NOW) == IntentTrend.STABLE

    def test_decreasing(self):
        signals = [
            make_signal(intent_weight=0.9, timestamp=FIXED_NOW - dt.timedelta(days=10)),
            make_signal(intent_weight=0.2, timestamp=FIXED_NOW - dt.timedelta(days=1)),
        ]
        assert calculate_trend(signals, FIXED_NOW) == IntentTrend.DECREASING

    def test_stable_within_band(self):
        signals = [
            make_signal(intent_weight=0.5, timestamp=FIXED_NOW - dt.timedelta(days=10)),
            make_signal(intent_weight=0.55, timestamp=FIXED_NOW - dt.timedelta(days=1)),
        ]
        assert calculate_trend(signals, FIXED_NOW) == IntentTrend.STABLE

    def test_signals_older_than_both_windows_ignored(self):
        ancient = make_signal(timestamp=FIXED_NOW - dt.timedelta(days=30))
        assert calculate_trend([ancient], FIXED_NOW) == IntentTrend.STABLE


class TestClassifyScore:

    def test_assembles_full_score(self, sre_profile):
        signals = [make_signal(intent_weight=0.95)]
        score = classify_score("visitor-1", signals, aggregate(signals, FIXED_NOW), sre_profile)

        assert score.identity_id == "visitor-1"
        assert score.overall_score == pytest.approx(19.0)
        assert score.buying_stage_prediction == BuyingStage.AWARENESS
        assert score.urgency_score == 35.0
        assert score.fit_score == 100.0
        assert score.trend == IntentTrend.INCREASING
        assert score.last_updated == FIXED_NOW
        assert score.signal_count == 1
