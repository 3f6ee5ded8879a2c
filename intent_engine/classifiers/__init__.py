"""
Signal classification: rule tables and the pure classifiers built on them.
"""
from intent_engine.classifiers.rules import SignalRule, identify_competitor
from intent_engine.classifiers.signal_classifier import (
    classify_community_activity,
    classify_competitive_activity,
    classify_content_engagement,
    classify_documentation_view,
    classify_repository_activity,
    classify_website_visit,
    page_visit_confidence,
)

__all__ = [
    "SignalRule",
    "identify_competitor",
    "classify_community_activity",
    "classify_competitive_activity",
    "classify_content_engagement",
    "classify_documentation_view",
    "classify_repository_activity",
    "classify_website_visit",
    "page_visit_confidence",
]
