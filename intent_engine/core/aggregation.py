"""
Decay & Aggregation

Time-decay math and per-bucket aggregation. Everything here is a pure
function of (signals, as_of): identical inputs always give identical
outputs, so a recomputation can be retried safely.
"""
import datetime as dt
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from intent_engine.models.score import SOURCE_BUCKETS, ScoreBucket, SignalBreakdown
from intent_engine.models.signal import IntentSignal


DEFAULT_SCALE_FACTOR = 20.0
MAX_OVERALL_SCORE = 100.0


@dataclass(frozen=True)
class DecayedSignal:
    """A stored signal paired with its weight at the aggregation instant."""
    signal: IntentSignal
    current_weight: float


@dataclass(frozen=True)
class AggregateResult:
    as_of: dt.datetime
    breakdown: SignalBreakdown
    overall_score: float
    decayed: Tuple[DecayedSignal, ...]


def current_weight(signal: IntentSignal, as_of: dt.datetime) -> float:
    """
    intent_weight x (1 - decay_rate) ^ elapsed_days

    Elapsed days are continuous (not floored). Signals stamped after
    ``as_of`` are treated as brand new.
    """
    days = signal.age_days(as_of)
    return signal.intent_weight * (1.0 - signal.decay_rate) ** days


def decay_signals(signals: Iterable[IntentSignal], as_of: dt.datetime) -> List[DecayedSignal]:
    return [DecayedSignal(signal, current_weight(signal, as_of)) for signal in signals]


def bucket_scores(
    decayed: Iterable[DecayedSignal],
    scale_factor: float = DEFAULT_SCALE_FACTOR,
) -> Dict[ScoreBucket, float]:
    totals = {bucket: 0.0 for bucket in ScoreBucket}
    for item in decayed:
        bucket = SOURCE_BUCKETS[item.signal.source]
        totals[bucket] += item.current_weight * scale_factor
    return totals


def aggregate(
    signals: Iterable[IntentSignal],
    as_of: dt.datetime,
    scale_factor: float = DEFAULT_SCALE_FACTOR,
) -> AggregateResult:
    """
    Decay every signal to ``as_of`` and roll the results up.

    Bucket scores are left uncapped; only the overall score is capped at 100.
    """
    decayed = decay_signals(signals, as_of)
    totals = bucket_scores(decayed, scale_factor)
    breakdown = SignalBreakdown(**{bucket.value: score for bucket, score in totals.items()})
    overall = min(MAX_OVERALL_SCORE, sum(totals.values()))

    return AggregateResult(
        as_of=as_of,
        breakdown=breakdown,
        overall_score=overall,
        decayed=tuple(decayed),
    )
