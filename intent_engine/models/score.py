import datetime as dt
from enum import StrEnum
from typing import Annotated, Dict
from pydantic import Field
from intent_engine.models.base import FrozenEngineModel
from intent_engine.models.signal import SignalSource


class BuyingStage(StrEnum):
    AWARENESS = "awareness"
    CONSIDERATION = "consideration"
    EVALUATION = "evaluation"
    PURCHASE = "purchase"
    EXPANSION = "expansion"


class IntentTrend(StrEnum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class ScoreBucket(StrEnum):
    WEBSITE = "website_signals"
    CODE_REPOSITORY = "code_repository_signals"
    CONTENT = "content_signals"
    COMMUNITY = "community_signals"
    EVENT = "event_signals"
    COMPETITIVE = "competitive_signals"


# Documentation pages live on the website; external research rolls up as competitive.
SOURCE_BUCKETS: Dict[SignalSource, ScoreBucket] = {
    SignalSource.WEBSITE: ScoreBucket.WEBSITE,
    SignalSource.DOCUMENTATION: ScoreBucket.WEBSITE,
    SignalSource.CODE_REPOSITORY: ScoreBucket.CODE_REPOSITORY,
    SignalSource.CONTENT: ScoreBucket.CONTENT,
    SignalSource.COMMUNITY: ScoreBucket.COMMUNITY,
    SignalSource.EVENT: ScoreBucket.EVENT,
    SignalSource.EXTERNAL: ScoreBucket.COMPETITIVE,
}

NonNegative = Annotated[float, Field(ge=0)]
Percentage = Annotated[float, Field(ge=0, le=100)]


class SignalBreakdown(FrozenEngineModel):
    """Per-bucket sub-scores. Not capped individually."""
    website_signals: NonNegative = 0.0
    code_repository_signals: NonNegative = 0.0
    content_signals: NonNegative = 0.0
    community_signals: NonNegative = 0.0
    event_signals: NonNegative = 0.0
    competitive_signals: NonNegative = 0.0

    @property
    def total(self) -> float:
        return sum(getattr(self, bucket.value) for bucket in ScoreBucket)


class IntentScore(FrozenEngineModel):
    """
    The published, fully recomputed intent score of one identity.
    Replaced wholesale on every processing pass.
    """
    identity_id: str
    overall_score: Percentage
    signal_breakdown: SignalBreakdown
    buying_stage_prediction: BuyingStage
    urgency_score: Percentage
    fit_score: Percentage
    trend: IntentTrend
    last_updated: dt.datetime
    signal_count: int = Field(0, ge=0)
