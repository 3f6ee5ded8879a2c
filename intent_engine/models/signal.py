import datetime as dt
import uuid
from enum import StrEnum
from typing import Annotated, Any, Dict, FrozenSet
from pydantic import Field, field_validator
from intent_engine.models.base import FrozenEngineModel, utc_now


class SignalSource(StrEnum):
    WEBSITE = "website"
    CODE_REPOSITORY = "code_repository"
    DOCUMENTATION = "documentation"
    COMMUNITY = "community"
    CONTENT = "content"
    EVENT = "event"
    EXTERNAL = "external"


class SignalCategory(StrEnum):
    AWARENESS = "awareness"
    CONSIDERATION = "consideration"
    EVALUATION = "evaluation"
    PURCHASE_INTENT = "purchase_intent"
    COMPETITIVE = "competitive"


UnitInterval = Annotated[float, Field(ge=0, le=1.0)]


def new_signal_id() -> str:
    return f"signal_{uuid.uuid4().hex}"


class IntentSignal(FrozenEngineModel):
    """
    One observed behavioral event about an identity.

    Immutable once created: a signal is only ever superseded by newer
    signals or dropped by the retention window.
    """
    signal_id: str = Field(default_factory=new_signal_id)
    identity_id: str
    timestamp: dt.datetime = Field(default_factory=utc_now)
    source: SignalSource
    category: SignalCategory
    signal_type: str
    signal_data: Dict[str, Any] = Field(default_factory=dict)

    intent_weight: UnitInterval = Field(..., description="Base strength at creation time.")
    confidence: UnitInterval = Field(..., description="Reliability of the observation.")
    decay_rate: UnitInterval = Field(..., description="Fractional loss of weight per elapsed day.")

    correlations: FrozenSet[str] = Field(default_factory=frozenset)

    @field_validator("timestamp")
    @classmethod
    def ensure_timezone(cls, value: dt.datetime) -> dt.datetime:
        # Naive datetimes (e.g. from BSON) are treated as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value

    def age_days(self, as_of: dt.datetime) -> float:
        """Continuous fractional days elapsed since creation, never negative."""
        elapsed = (as_of - self.timestamp).total_seconds() / 86400
        return max(0.0, elapsed)
