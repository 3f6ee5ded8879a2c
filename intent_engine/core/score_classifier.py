"""
Stage / Urgency / Fit / Trend Classification

Deterministic rules deriving the qualitative parts of an IntentScore from
aggregated data plus (optionally) the identity's external profile.
Buying stage is re-evaluated fresh every pass and may move backward as
decayed interest fades.
"""
import datetime as dt
from typing import Iterable, List, Optional, Tuple

from intent_engine.core.aggregation import AggregateResult
from intent_engine.models.profile import IdentityProfile
from intent_engine.models.score import BuyingStage, IntentScore, IntentTrend
from intent_engine.models.signal import IntentSignal, SignalCategory


# (exclusive lower bound, stage), highest first
STAGE_LADDER: List[Tuple[float, BuyingStage]] = [
    (80, BuyingStage.PURCHASE),
    (60, BuyingStage.EVALUATION),
    (30, BuyingStage.CONSIDERATION),
    (10, BuyingStage.AWARENESS),
]

ICP_DEPARTMENTS = {"devops", "sre"}
ICP_SENIORITIES = {"manager", "director"}
ICP_TECHNOLOGIES = {"kubernetes", "docker", "microservices", "aws", "monitoring"}

HIGH_WEIGHT_THRESHOLD = 0.8
TREND_RISE_RATIO = 1.2
TREND_FALL_RATIO = 0.8


def predict_buying_stage(overall_score: float, profile: Optional[IdentityProfile] = None) -> BuyingStage:
    stage = BuyingStage.AWARENESS
    for lower_bound, candidate in STAGE_LADDER:
        if overall_score > lower_bound:
            stage = candidate
            break

    # Existing customers showing renewed intent are expanding, not buying
    if profile is not None and profile.is_customer and stage != BuyingStage.AWARENESS:
        return BuyingStage.EXPANSION
    return stage


def _within(signal: IntentSignal, as_of: dt.datetime, days: float) -> bool:
    return (as_of - signal.timestamp).total_seconds() < days * 86400


def calculate_urgency(
    signals: Iterable[IntentSignal],
    as_of: dt.datetime,
    window_days: int = 7,
) -> float:
    """
    Short-window signal velocity:
        min(50, 5 x recent) + 10 x high-weight + 15 x competitive + 20 x purchase-intent
    capped at 100. Uses raw (non-decayed) weights.
    """
    recent = [s for s in signals if _within(s, as_of, window_days)]

    velocity = min(50, len(recent) * 5)
    high_intent = sum(1 for s in recent if s.intent_weight > HIGH_WEIGHT_THRESHOLD) * 10
    competitive = sum(1 for s in recent if s.category == SignalCategory.COMPETITIVE) * 15
    purchase = sum(1 for s in recent if s.category == SignalCategory.PURCHASE_INTENT) * 20

    return float(min(100, velocity + high_intent + competitive + purchase))


def calculate_fit(profile: Optional[IdentityProfile]) -> float:
    """Additive ICP points; an unknown identity simply has no fit."""
    if profile is None:
        return 0.0

    fit = 0
    if profile.employee_count > 100:
        fit += 30
    if profile.employee_count > 500:
        fit += 20

    if (profile.department or "").lower() in ICP_DEPARTMENTS:
        fit += 25
    if (profile.seniority or "").lower() in ICP_SENIORITIES:
        fit += 15

    tech_matches = sum(1 for tech in profile.technology_stack if tech.lower() in ICP_TECHNOLOGIES)
    fit += min(10, tech_matches * 2)

    return float(min(100, fit))


def calculate_trend(
    signals: Iterable[IntentSignal],
    as_of: dt.datetime,
    window_days: int = 7,
) -> IntentTrend:
    """
    Compare raw weight in the last window against the window before it.
    An empty older window never reads as a decline.
    """
    window = window_days * 86400
    older = 0.0
    recent = 0.0
    for signal in signals:
        age = (as_of - signal.timestamp).total_seconds()
        if age <= window:
            recent += signal.intent_weight
        elif age < 2 * window:
            older += signal.intent_weight

    if older == 0:
        return IntentTrend.INCREASING if recent > 0 else IntentTrend.STABLE
    if recent > older * TREND_RISE_RATIO:
        return IntentTrend.INCREASING
    if recent < older * TREND_FALL_RATIO:
        return IntentTrend.DECREASING
    return IntentTrend.STABLE


def classify_score(
    identity_id: str,
    signals: List[IntentSignal],
    aggregate: AggregateResult,
    profile: Optional[IdentityProfile],
    urgency_window_days: int = 7,
    trend_window_days: int = 7,
) -> IntentScore:
    """Assemble the published score. ``last_updated`` is the aggregation instant."""
    as_of = aggregate.as_of
    return IntentScore(
        identity_id=identity_id,
        overall_score=aggregate.overall_score,
        signal_breakdown=aggregate.breakdown,
        buying_stage_prediction=predict_buying_stage(aggregate.overall_score, profile),
        urgency_score=calculate_urgency(signals, as_of, urgency_window_days),
        fit_score=calculate_fit(profile),
        trend=calculate_trend(signals, as_of, trend_window_days),
        last_updated=as_of,
        signal_count=len(signals),
    )
