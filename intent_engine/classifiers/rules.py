"""
Signal Rule Tables

Static, ordered rule tables mapping an observed value (page URL, interaction
name, doc path, asset name...) to the intent it reveals. Tables are evaluated
top to bottom and every matching rule emits its own signal.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from intent_engine.models.signal import SignalCategory as Category


Predicate = Callable[[str], bool]


@dataclass(frozen=True)
class SignalRule:
    """One row of a rule table."""
    name: str
    predicate: Predicate
    weight: float
    category: Category
    decay_rate: float
    confidence: float = 0.9
    correlations: FrozenSet[str] = field(default_factory=frozenset)

    def matches(self, value: str) -> bool:
        return self.predicate(value)


def contains(fragment: str) -> Predicate:
    """Case-insensitive substring match."""
    needle = fragment.lower()
    return lambda value: needle in value.lower()


def contains_any(*fragments: str) -> Predicate:
    needles = [fragment.lower() for fragment in fragments]
    return lambda value: any(needle in value.lower() for needle in needles)


def equals(expected: str) -> Predicate:
    return lambda value: value == expected


def matching_rules(rules: List[SignalRule], value: str) -> List[SignalRule]:
    return [rule for rule in rules if rule.matches(value)]


def first_match(rules: List[SignalRule], value: str) -> Optional[SignalRule]:
    return next((rule for rule in rules if rule.matches(value)), None)


# ============================================
# WEBSITE
# ============================================
PAGE_VISIT_DECAY = 0.1

WEBSITE_PAGE_RULES: List[SignalRule] = [
    SignalRule("/pricing", contains("/pricing"), 0.8, Category.PURCHASE_INTENT, PAGE_VISIT_DECAY),
    SignalRule("/enterprise", contains("/enterprise"), 0.9, Category.PURCHASE_INTENT, PAGE_VISIT_DECAY),
    SignalRule("/demo", contains("/demo"), 0.95, Category.PURCHASE_INTENT, PAGE_VISIT_DECAY),
    SignalRule("/contact", contains("/contact"), 0.85, Category.PURCHASE_INTENT, PAGE_VISIT_DECAY),
    SignalRule("/roi-calculator", contains("/roi-calculator"), 0.9, Category.EVALUATION, PAGE_VISIT_DECAY),
    SignalRule("/case-studies", contains("/case-studies"), 0.6, Category.CONSIDERATION, PAGE_VISIT_DECAY),
    SignalRule("/docs/enterprise", contains("/docs/enterprise"), 0.7, Category.EVALUATION, PAGE_VISIT_DECAY),
    SignalRule("/docs/getting-started", contains("/docs/getting-started"), 0.4, Category.CONSIDERATION, PAGE_VISIT_DECAY),
]

_ACTIVE_EVALUATION = frozenset({"active_evaluation"})

WEBSITE_INTERACTION_RULES: List[SignalRule] = [
    SignalRule("pricing_calculator_used", equals("pricing_calculator_used"), 0.9, Category.PURCHASE_INTENT, 0.08, 0.9, _ACTIVE_EVALUATION),
    SignalRule("demo_request_clicked", equals("demo_request_clicked"), 0.95, Category.PURCHASE_INTENT, 0.08, 0.9, _ACTIVE_EVALUATION),
    SignalRule("contact_form_filled", equals("contact_form_filled"), 0.9, Category.PURCHASE_INTENT, 0.08, 0.9, _ACTIVE_EVALUATION),
    SignalRule("enterprise_features_explored", equals("enterprise_features_explored"), 0.8, Category.EVALUATION, 0.08, 0.9, _ACTIVE_EVALUATION),
    SignalRule("integration_docs_viewed", equals("integration_docs_viewed"), 0.7, Category.EVALUATION, 0.08, 0.9, _ACTIVE_EVALUATION),
    SignalRule("comparison_chart_viewed", equals("comparison_chart_viewed"), 0.8, Category.COMPETITIVE, 0.08, 0.9, _ACTIVE_EVALUATION),
]

# (domain fragment, display name), checked in order
COMPETITOR_DOMAINS: List[Tuple[str, str]] = [
    ("pagerduty.com", "PagerDuty"),
    ("splunk.com", "Splunk"),
    ("datadog.com", "Datadog"),
    ("newrelic.com", "New Relic"),
]

# Public repositories owned by competitors
COMPETITOR_REPOSITORIES: Dict[str, str] = {
    "pagerduty": "PagerDuty",
    "splunk": "Splunk",
    "datadog": "Datadog",
    "newrelic": "New Relic",
}


def identify_competitor(text: str) -> Optional[str]:
    """Display name of the first competitor whose domain or name appears in text."""
    lowered = text.lower()
    for domain, name in COMPETITOR_DOMAINS:
        if domain in lowered or name.lower() in lowered:
            return name
    return None


# ============================================
# DOCUMENTATION
# ============================================
_DOC_STUDY = frozenset({"technical_evaluation", "implementation_planning"})

DOCUMENTATION_RULES: List[SignalRule] = [
    SignalRule("/docs/enterprise/", contains("/docs/enterprise/"), 0.9, Category.PURCHASE_INTENT, 0.03, 0.9, _DOC_STUDY),
    SignalRule("/docs/deployment/production", contains("/docs/deployment/production"), 0.8, Category.EVALUATION, 0.03, 0.9, _DOC_STUDY),
    SignalRule("/docs/integrations/enterprise", contains("/docs/integrations/enterprise"), 0.85, Category.EVALUATION, 0.03, 0.9, _DOC_STUDY),
    SignalRule("/docs/security/", contains("/docs/security/"), 0.7, Category.EVALUATION, 0.03, 0.9, _DOC_STUDY),
    SignalRule("/docs/compliance/", contains("/docs/compliance/"), 0.8, Category.EVALUATION, 0.03, 0.9, _DOC_STUDY),
    SignalRule("/docs/api/", contains("/docs/api/"), 0.6, Category.CONSIDERATION, 0.03, 0.9, _DOC_STUDY),
    SignalRule("/docs/getting-started/", contains("/docs/getting-started/"), 0.3, Category.AWARENESS, 0.03, 0.9, _DOC_STUDY),
]

DOCUMENTATION_SEARCH_RULES: List[SignalRule] = [
    SignalRule(
        "evaluation_query",
        contains_any("pricing", "enterprise", "sso", "sla", "migration", " vs ", "alternative"),
        0.6, Category.EVALUATION, 0.05, 0.7, frozenset({"technical_evaluation"}),
    ),
]

ASSET_DOWNLOAD_RULES: List[SignalRule] = [
    SignalRule(
        "evaluation_asset",
        contains_any("enterprise", "pricing", "roi"),
        0.8, Category.PURCHASE_INTENT, 0.02, 0.85, frozenset({"evaluation_toolkit"}),
    ),
]


# ============================================
# COMMUNITY
# ============================================
HELP_REQUEST_RULES: List[SignalRule] = [
    SignalRule(
        "implementation_help",
        contains("implement"),
        0.8, Category.EVALUATION, 0.02, 0.9, frozenset({"active_evaluation", "technical_blockers"}),
    ),
]

PAIN_POINT_RULES: List[SignalRule] = [
    SignalRule(
        "operational_pain",
        contains_any("alert fatigue", "on-call", "oncall", "incident", "noise", "escalation"),
        0.5, Category.CONSIDERATION, 0.04, 0.75, frozenset({"pain_point_discovery"}),
    ),
]


# ============================================
# CONTENT
# ============================================
WHITEPAPER_RULES: List[SignalRule] = [
    SignalRule(
        "business_case",
        contains_any("roi", "business-case"),
        0.9, Category.PURCHASE_INTENT, 0.02, 0.95, frozenset({"budget_planning", "executive_presentation"}),
    ),
]


# ============================================
# COMPETITIVE RESEARCH
# ============================================
COMPARISON_SEARCH_RULES: List[SignalRule] = [
    SignalRule(
        "comparison_search",
        contains_any(" vs ", "versus", "alternative", "compare", "comparison"),
        0.8, Category.COMPETITIVE, 0.02, 0.85, frozenset({"vendor_evaluation"}),
    ),
]
