"""
Capture payloads.

Numeric inputs are clamped into their valid domain instead of being
rejected, so a capture call never fails on an out-of-range counter.
"""
from typing import Annotated, Any, Dict, List
from pydantic import BeforeValidator, Field
from intent_engine.models.base import EngineModel


def clamp_non_negative(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
        return type(value)(0)
    return value


def clamp_unit_interval(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return min(1.0, max(0.0, float(value)))
    return value


def clamp_watch_times(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: clamp_non_negative(seconds) for key, seconds in value.items()}
    return value


NonNegativeInt = Annotated[int, BeforeValidator(clamp_non_negative)]
NonNegativeSeconds = Annotated[float, BeforeValidator(clamp_non_negative)]
ScrollDepth = Annotated[float, BeforeValidator(clamp_unit_interval)]


class RepositoryActivity(EngineModel):
    starred: List[str] = Field(default_factory=list)
    forked: List[str] = Field(default_factory=list)
    commits: NonNegativeInt = 0
    issues_opened: List[str] = Field(default_factory=list)
    pull_requests: List[str] = Field(default_factory=list)
    orgs: List[str] = Field(default_factory=list)


class CommunityActivity(EngineModel):
    forum_posts: NonNegativeInt = 0
    questions_asked: List[str] = Field(default_factory=list)
    answers_provided: List[str] = Field(default_factory=list)
    chat_messages: NonNegativeInt = 0
    discussions: List[str] = Field(default_factory=list)
    events_attended: List[str] = Field(default_factory=list)
    help_requests: List[str] = Field(default_factory=list)


class ContentEngagement(EngineModel):
    blog_posts_read: List[str] = Field(default_factory=list)
    case_studies_viewed: List[str] = Field(default_factory=list)
    whitepapers_downloaded: List[str] = Field(default_factory=list)
    webinars_attended: List[str] = Field(default_factory=list)
    video_watch_time: Annotated[Dict[str, float], BeforeValidator(clamp_watch_times)] = Field(default_factory=dict)
    email_opens: List[str] = Field(default_factory=list)
    email_clicks: List[str] = Field(default_factory=list)


class CompetitiveActivity(EngineModel):
    competitor_sites_visited: List[str] = Field(default_factory=list)
    competitor_content_consumed: List[str] = Field(default_factory=list)
    comparison_searches: List[str] = Field(default_factory=list)
    vendor_eval_content: List[str] = Field(default_factory=list)
    rfp_signals: List[str] = Field(default_factory=list)
