"""
Signal Classifier

Pure functions turning raw capture payloads into IntentSignals. No
persistence happens here; the engine stores whatever is returned.

Every function takes the capture instant explicitly so classification is
reproducible in tests.
"""
import datetime as dt
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from intent_engine.classifiers.rules import (
    ASSET_DOWNLOAD_RULES,
    COMPARISON_SEARCH_RULES,
    COMPETITOR_REPOSITORIES,
    DOCUMENTATION_RULES,
    DOCUMENTATION_SEARCH_RULES,
    HELP_REQUEST_RULES,
    PAIN_POINT_RULES,
    WEBSITE_INTERACTION_RULES,
    WEBSITE_PAGE_RULES,
    WHITEPAPER_RULES,
    SignalRule,
    first_match,
    identify_competitor,
    matching_rules,
)
from intent_engine.models.activity import (
    CommunityActivity,
    CompetitiveActivity,
    ContentEngagement,
    RepositoryActivity,
)
from intent_engine.models.signal import IntentSignal, SignalCategory, SignalSource


DEEP_ENGAGEMENT_SECONDS = 120
DEEP_ENGAGEMENT_CEILING = 0.7
DEEP_ENGAGEMENT_FULL_SECONDS = 300

DOC_STUDY_SECONDS = 180
DOC_STUDY_SCROLL_DEPTH = 0.7

COMMUNITY_ENGAGEMENT_THRESHOLD = 5
ACTIVE_DEVELOPER_COMMITS = 100


def _signal(
    identity_id: str,
    now: dt.datetime,
    source: SignalSource,
    category: SignalCategory,
    signal_type: str,
    weight: float,
    confidence: float,
    decay_rate: float,
    signal_data: Dict[str, Any],
    correlations: Iterable[str] = (),
) -> IntentSignal:
    return IntentSignal(
        identity_id=identity_id,
        timestamp=now,
        source=source,
        category=category,
        signal_type=signal_type,
        signal_data=signal_data,
        intent_weight=min(1.0, max(0.0, weight)),
        confidence=min(1.0, max(0.0, confidence)),
        decay_rate=decay_rate,
        correlations=frozenset(correlations),
    )


def _from_rule(
    rule: SignalRule,
    identity_id: str,
    now: dt.datetime,
    source: SignalSource,
    signal_type: str,
    signal_data: Dict[str, Any],
    confidence: Optional[float] = None,
) -> IntentSignal:
    return _signal(
        identity_id,
        now,
        source,
        rule.category,
        signal_type,
        rule.weight,
        rule.confidence if confidence is None else confidence,
        rule.decay_rate,
        {**signal_data, "rule": rule.name},
        rule.correlations,
    )


def page_visit_confidence(time_on_page: float, interaction_count: int) -> float:
    """Base 0.5, boosted by dwell time and by interactions, capped at 1."""
    confidence = 0.5
    if time_on_page > 30:
        confidence += 0.2
    if time_on_page > 120:
        confidence += 0.2
    confidence += min(0.3, interaction_count * 0.1)
    return min(1.0, confidence)


# ============================================
# WEBSITE
# ============================================

def classify_website_visit(
    identity_id: str,
    page_url: str,
    time_on_page: float,
    interactions: List[str],
    now: dt.datetime,
    referrer: Optional[str] = None,
    utm: Optional[Dict[str, str]] = None,
) -> List[IntentSignal]:
    time_on_page = max(0.0, float(time_on_page))
    signals: List[IntentSignal] = []

    confidence = page_visit_confidence(time_on_page, len(interactions))
    for rule in matching_rules(WEBSITE_PAGE_RULES, page_url):
        signals.append(_from_rule(
            rule, identity_id, now, SignalSource.WEBSITE, "page_visit",
            {
                "page": page_url,
                "time_on_page": time_on_page,
                "interactions": list(interactions),
                "referrer": referrer,
                "utm_params": dict(utm or {}),
            },
            confidence=confidence,
        ))

    if time_on_page > DEEP_ENGAGEMENT_SECONDS:
        signals.append(_signal(
            identity_id, now, SignalSource.WEBSITE, SignalCategory.CONSIDERATION,
            "deep_engagement",
            min(DEEP_ENGAGEMENT_CEILING, time_on_page / DEEP_ENGAGEMENT_FULL_SECONDS),
            0.8, 0.05,
            {"page": page_url, "engagement_duration": time_on_page, "interactions": list(interactions)},
        ))

    for interaction in interactions:
        rule = first_match(WEBSITE_INTERACTION_RULES, interaction)
        if rule is None:
            continue
        signals.append(_from_rule(
            rule, identity_id, now, SignalSource.WEBSITE, "user_interaction",
            {"interaction": interaction, "page": page_url, "context": "website_engagement"},
        ))

    competitor = identify_competitor(referrer) if referrer else None
    if competitor:
        signals.append(_signal(
            identity_id, now, SignalSource.WEBSITE, SignalCategory.COMPETITIVE,
            "competitor_research", 0.8, 0.9, 0.02,
            {"competitor": competitor, "referrer": referrer, "landing_page": page_url},
        ))

    return signals


# ============================================
# CODE REPOSITORY
# ============================================

def classify_repository_activity(
    identity_id: str,
    account_handle: str,
    activity: RepositoryActivity,
    now: dt.datetime,
    tracked_repository: str,
) -> List[IntentSignal]:
    """
    Escalating ladder: star < fork < active contribution, each stickier
    (slower decay) than the last.
    """
    signals: List[IntentSignal] = []
    repository = tracked_repository.lower()
    base_data = {"repository": tracked_repository, "account_handle": account_handle}

    if repository in (repo.lower() for repo in activity.starred):
        signals.append(_signal(
            identity_id, now, SignalSource.CODE_REPOSITORY, SignalCategory.CONSIDERATION,
            "repository_star", 0.4, 0.9, 0.01, dict(base_data),
            ["open_source_interest"],
        ))

    if repository in (repo.lower() for repo in activity.forked):
        signals.append(_signal(
            identity_id, now, SignalSource.CODE_REPOSITORY, SignalCategory.EVALUATION,
            "repository_fork", 0.85, 0.95, 0.005, dict(base_data),
            ["hands_on_evaluation", "technical_validation"],
        ))

    # Issues and PRs reference the project by name, not always by full slug
    project = repository.split("/")[-1]
    issues = [issue for issue in activity.issues_opened if project in issue.lower()]
    pull_requests = [pr for pr in activity.pull_requests if project in pr.lower()]
    if issues or pull_requests:
        signals.append(_signal(
            identity_id, now, SignalSource.CODE_REPOSITORY, SignalCategory.EVALUATION,
            "active_contribution", 0.95, 0.98, 0.001,
            {**base_data, "issues": issues, "pull_requests": pull_requests},
            ["deep_technical_engagement", "community_investment"],
        ))

    if activity.commits >= ACTIVE_DEVELOPER_COMMITS:
        signals.append(_signal(
            identity_id, now, SignalSource.CODE_REPOSITORY, SignalCategory.AWARENESS,
            "developer_profile", min(0.5, activity.commits / 400), 0.6, 0.05,
            {"account_handle": account_handle, "commits": activity.commits, "orgs": list(activity.orgs)},
        ))

    owners = {repo.lower().split("/")[0] for repo in [*activity.starred, *activity.forked]}
    competitor_repos = sorted(
        COMPETITOR_REPOSITORIES[owner] for owner in owners if owner in COMPETITOR_REPOSITORIES
    )
    for competitor in competitor_repos:
        signals.append(_signal(
            identity_id, now, SignalSource.CODE_REPOSITORY, SignalCategory.COMPETITIVE,
            "competitor_repository_interest", 0.5, 0.8, 0.03,
            {"competitor": competitor, "account_handle": account_handle},
        ))

    return signals


# ============================================
# DOCUMENTATION
# ============================================

def classify_documentation_view(
    identity_id: str,
    doc_path: str,
    time_spent: float,
    scroll_depth: float,
    search_queries: List[str],
    downloaded_assets: List[str],
    now: dt.datetime,
) -> List[IntentSignal]:
    time_spent = max(0.0, float(time_spent))
    scroll_depth = min(1.0, max(0.0, float(scroll_depth)))
    signals: List[IntentSignal] = []

    if scroll_depth > DOC_STUDY_SCROLL_DEPTH and time_spent > DOC_STUDY_SECONDS:
        for rule in matching_rules(DOCUMENTATION_RULES, doc_path):
            signals.append(_from_rule(
                rule, identity_id, now, SignalSource.DOCUMENTATION, "deep_documentation_study",
                {
                    "doc_path": doc_path,
                    "time_spent": time_spent,
                    "scroll_depth": scroll_depth,
                    "search_queries": list(search_queries),
                },
            ))

    for query in search_queries:
        rule = first_match(DOCUMENTATION_SEARCH_RULES, f" {query} ")
        if rule:
            signals.append(_from_rule(
                rule, identity_id, now, SignalSource.DOCUMENTATION, "documentation_search",
                {"query": query, "doc_path": doc_path},
            ))

    for asset in downloaded_assets:
        rule = first_match(ASSET_DOWNLOAD_RULES, asset)
        if rule:
            signals.append(_from_rule(
                rule, identity_id, now, SignalSource.DOCUMENTATION, "asset_download",
                {"asset_name": asset, "download_context": doc_path},
            ))

    return signals


# ============================================
# COMMUNITY
# ============================================

def classify_community_activity(
    identity_id: str,
    activity: CommunityActivity,
    now: dt.datetime,
) -> List[IntentSignal]:
    signals: List[IntentSignal] = []

    total_engagement = (
        activity.forum_posts
        + activity.chat_messages
        + len(activity.questions_asked)
        + len(activity.answers_provided)
        + len(activity.discussions)
    )
    if total_engagement > COMMUNITY_ENGAGEMENT_THRESHOLD:
        signals.append(_signal(
            identity_id, now, SignalSource.COMMUNITY, SignalCategory.CONSIDERATION,
            "active_community_participation", min(0.7, total_engagement / 20), 0.8, 0.05,
            {
                "total_engagement": total_engagement,
                "forum_posts": activity.forum_posts,
                "chat_messages": activity.chat_messages,
                "questions": len(activity.questions_asked),
                "answers": len(activity.answers_provided),
                "discussions": len(activity.discussions),
            },
            ["community_investment", "technical_interest"],
        ))

    for question in activity.questions_asked:
        rule = first_match(PAIN_POINT_RULES, question)
        if rule:
            signals.append(_from_rule(
                rule, identity_id, now, SignalSource.COMMUNITY, "pain_point_question",
                {"question": question},
            ))

    for help_request in activity.help_requests:
        rule = first_match(HELP_REQUEST_RULES, help_request)
        if rule:
            signals.append(_from_rule(
                rule, identity_id, now, SignalSource.COMMUNITY, "implementation_help_request",
                {"help_request": help_request, "context": "implementation_planning"},
            ))

    for event in activity.events_attended:
        signals.append(_signal(
            identity_id, now, SignalSource.EVENT, SignalCategory.CONSIDERATION,
            "event_attendance", 0.5, 0.8, 0.05, {"event": event},
            ["education_seeking"],
        ))

    return signals


# ============================================
# CONTENT
# ============================================

def classify_content_engagement(
    identity_id: str,
    engagement: ContentEngagement,
    now: dt.datetime,
) -> List[IntentSignal]:
    signals: List[IntentSignal] = []

    for case_study in engagement.case_studies_viewed:
        signals.append(_signal(
            identity_id, now, SignalSource.CONTENT, SignalCategory.EVALUATION,
            "case_study_consumption", 0.75, 0.85, 0.04, {"case_study": case_study},
            ["social_proof_seeking", "vendor_evaluation"],
        ))

    for whitepaper in engagement.whitepapers_downloaded:
        rule = first_match(WHITEPAPER_RULES, whitepaper)
        if rule:
            signals.append(_from_rule(
                rule, identity_id, now, SignalSource.CONTENT, "business_case_research",
                {"whitepaper": whitepaper, "content_type": "business_justification"},
            ))

    for webinar in engagement.webinars_attended:
        signals.append(_signal(
            identity_id, now, SignalSource.EVENT, SignalCategory.CONSIDERATION,
            "webinar_attendance", 0.6, 0.8, 0.06, {"webinar": webinar},
            ["education_seeking", "vendor_evaluation"],
        ))

    if len(engagement.blog_posts_read) >= 3:
        signals.append(_signal(
            identity_id, now, SignalSource.CONTENT, SignalCategory.AWARENESS,
            "blog_readership", min(0.4, 0.1 * len(engagement.blog_posts_read)), 0.7, 0.08,
            {"posts": list(engagement.blog_posts_read)},
        ))

    for video, seconds in sorted(engagement.video_watch_time.items()):
        if seconds > 120:
            signals.append(_signal(
                identity_id, now, SignalSource.CONTENT, SignalCategory.CONSIDERATION,
                "video_engagement", min(0.6, seconds / 600), 0.75, 0.05,
                {"video": video, "watch_seconds": seconds},
            ))

    for click in engagement.email_clicks:
        signals.append(_signal(
            identity_id, now, SignalSource.CONTENT, SignalCategory.CONSIDERATION,
            "email_click", 0.35, 0.8, 0.1, {"email": click},
        ))

    if len(engagement.email_opens) >= 3:
        signals.append(_signal(
            identity_id, now, SignalSource.CONTENT, SignalCategory.AWARENESS,
            "email_engagement", min(0.3, 0.05 * len(engagement.email_opens)), 0.6, 0.1,
            {"opens": len(engagement.email_opens)},
        ))

    return signals


# ============================================
# COMPETITIVE RESEARCH
# ============================================

def classify_competitive_activity(
    identity_id: str,
    activity: CompetitiveActivity,
    now: dt.datetime,
) -> List[IntentSignal]:
    signals: List[IntentSignal] = []
    vendor_evaluation: FrozenSet[str] = frozenset({"vendor_evaluation"})

    for site in activity.competitor_sites_visited:
        competitor = identify_competitor(site)
        if competitor:
            signals.append(_signal(
                identity_id, now, SignalSource.EXTERNAL, SignalCategory.COMPETITIVE,
                "competitor_site_visit", 0.7, 0.85, 0.02,
                {"competitor": competitor, "url": site}, vendor_evaluation,
            ))

    for content in activity.competitor_content_consumed:
        data: Dict[str, Any] = {"content": content}
        competitor = identify_competitor(content)
        if competitor:
            data["competitor"] = competitor
        signals.append(_signal(
            identity_id, now, SignalSource.EXTERNAL, SignalCategory.COMPETITIVE,
            "competitor_content", 0.5, 0.7, 0.03, data, vendor_evaluation,
        ))

    for search in activity.comparison_searches:
        rule = first_match(COMPARISON_SEARCH_RULES, f" {search} ")
        if rule is None:
            continue
        data = {"query": search}
        competitor = identify_competitor(search)
        if competitor:
            data["competitor"] = competitor
        signals.append(_from_rule(
            rule, identity_id, now, SignalSource.EXTERNAL, "comparison_search", data,
        ))

    for content in activity.vendor_eval_content:
        signals.append(_signal(
            identity_id, now, SignalSource.EXTERNAL, SignalCategory.EVALUATION,
            "vendor_evaluation_research", 0.75, 0.8, 0.03, {"content": content}, vendor_evaluation,
        ))

    for rfp in activity.rfp_signals:
        signals.append(_signal(
            identity_id, now, SignalSource.EXTERNAL, SignalCategory.PURCHASE_INTENT,
            "rfp_activity", 0.95, 0.9, 0.01, {"rfp": rfp},
            ["procurement", "vendor_evaluation"],
        ))

    return signals
