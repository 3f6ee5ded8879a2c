"""
Pydantic models for capture request and response bodies.
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from intent_engine.models.activity import (
    CommunityActivity,
    CompetitiveActivity,
    ContentEngagement,
    RepositoryActivity,
)
from intent_engine.models.signal import IntentSignal


class IdentityScoped(BaseModel):
    identity_id: str = Field(..., min_length=1, description="Identity the activity belongs to")


class WebsiteCaptureRequest(IdentityScoped):
    page_url: str = Field(..., description="Path or full URL of the visited page")
    time_on_page: float = Field(0.0, description="Dwell time in seconds (negative values clamp to 0)")
    interactions: List[str] = Field(default_factory=list, description="Tracked UI interactions on the page")
    referrer: Optional[str] = Field(None, description="Referring URL, if any")
    utm: Optional[Dict[str, str]] = Field(None, description="UTM parameters attached to the visit")


class DocumentationCaptureRequest(IdentityScoped):
    doc_path: str
    time_spent: float = 0.0
    scroll_depth: float = Field(0.0, description="Fraction of the page scrolled (clamped to [0, 1])")
    search_queries: List[str] = Field(default_factory=list)
    downloaded_assets: List[str] = Field(default_factory=list)


class RepositoryCaptureRequest(IdentityScoped):
    account_handle: str = Field(..., description="Code-hosting account of the identity")
    activity: RepositoryActivity


class CommunityCaptureRequest(IdentityScoped):
    activity: CommunityActivity


class ContentCaptureRequest(IdentityScoped):
    engagement: ContentEngagement


class CompetitiveCaptureRequest(IdentityScoped):
    activity: CompetitiveActivity


class CaptureResponse(BaseModel):
    """Signals stored by a capture call (possibly none)."""
    identity_id: str
    signal_count: int
    signals: List[IntentSignal]

    @classmethod
    def from_signals(cls, identity_id: str, signals: List[IntentSignal]) -> "CaptureResponse":
        return cls(identity_id=identity_id, signal_count=len(signals), signals=signals)
