import datetime as dt
from enum import StrEnum
from typing import List
from pydantic import Field
from intent_engine.models.base import FrozenEngineModel
from intent_engine.models.signal import IntentSignal, UnitInterval


class EvaluationStage(StrEnum):
    EARLY = "early"
    ACTIVE = "active"
    FINAL = "final"
    DECIDED = "decided"


class CompetitiveIntelligence(FrozenEngineModel):
    """Competitive-deal picture for one identity, produced on demand."""
    identity_id: str
    competitors_researched: List[str] = Field(default_factory=list)
    evaluation_stage: EvaluationStage = EvaluationStage.EARLY
    competitive_advantage_areas: List[str] = Field(default_factory=list)
    risk_factors: List[str] = Field(default_factory=list)
    win_probability: UnitInterval
    recommended_strategy: str
    last_updated: dt.datetime


class CompetitiveCapture(FrozenEngineModel):
    """Result of a competitive capture call: the signals stored and the refreshed analysis."""
    signals: List[IntentSignal] = Field(default_factory=list)
    intelligence: CompetitiveIntelligence
