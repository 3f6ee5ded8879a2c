"""
Competitive Analyzer

On-demand analysis of an identity's competitive research: who they are
looking at, how far the evaluation has progressed, where we win or lose
against those vendors, and a recommended deal strategy.

Runs only when competitive activity is captured; it never feeds the
IntentScore.
"""
import datetime as dt
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from intent_engine.classifiers.rules import identify_competitor
from intent_engine.models.activity import CompetitiveActivity
from intent_engine.models.competitive import CompetitiveIntelligence, EvaluationStage
from intent_engine.models.signal import IntentSignal, SignalCategory, SignalSource


@dataclass(frozen=True)
class CompetitorProfile:
    advantages: Tuple[str, ...]
    risks: Tuple[str, ...]


COMPETITOR_CATALOG: Dict[str, CompetitorProfile] = {
    "PagerDuty": CompetitorProfile(("open_source", "alert_correlation"), ("brand_recognition",)),
    "Splunk": CompetitorProfile(("pricing_transparency", "time_to_value"), ("enterprise_footprint",)),
    "Datadog": CompetitorProfile(("open_source", "incident_automation"), ("platform_breadth",)),
    "New Relic": CompetitorProfile(("alert_correlation", "pricing_transparency"), ("existing_apm_investment",)),
}

DECISION_TERMS = ("award", "selected", "contract")

BASE_WIN_PROBABILITY = 0.5
ADVANTAGE_BONUS = 0.08
RISK_PENALTY = 0.10
OWN_ENGAGEMENT_BONUS = 0.05
MIN_WIN_PROBABILITY = 0.05
MAX_WIN_PROBABILITY = 0.95


def _unique(items: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


class CompetitiveAnalyzer:
    """
    Heuristic competitive-deal analysis.

    The catalog maps each known competitor to the areas where we usually
    win and the factors that usually hurt us.
    """

    def __init__(self, catalog: Optional[Dict[str, CompetitorProfile]] = None):
        self.catalog = catalog if catalog is not None else COMPETITOR_CATALOG

    def competitors(
        self,
        signals: Sequence[IntentSignal],
        activity: Optional[CompetitiveActivity] = None,
    ) -> List[str]:
        found = {s.signal_data["competitor"] for s in signals if s.signal_data.get("competitor")}

        if activity is not None:
            texts = (
                activity.competitor_sites_visited
                + activity.competitor_content_consumed
                + activity.comparison_searches
                + activity.vendor_eval_content
                + activity.rfp_signals
            )
            for text in texts:
                name = identify_competitor(text)
                if name:
                    found.add(name)

        return sorted(found)

    def evaluation_stage(
        self,
        signals: Sequence[IntentSignal],
        activity: Optional[CompetitiveActivity],
        competitors: Sequence[str],
    ) -> EvaluationStage:
        rfps = {s.signal_data.get("rfp", "") for s in signals if s.signal_type == "rfp_activity"}
        searches = {s.signal_data.get("query", "") for s in signals if s.signal_type == "comparison_search"}
        vendor_research = any(s.signal_type == "vendor_evaluation_research" for s in signals)

        if activity is not None:
            rfps.update(activity.rfp_signals)
            searches.update(activity.comparison_searches)
            vendor_research = vendor_research or bool(activity.vendor_eval_content)

        if any(term in rfp.lower() for rfp in rfps for term in DECISION_TERMS):
            return EvaluationStage.DECIDED
        if rfps:
            return EvaluationStage.FINAL
        if vendor_research or len(searches) >= 2 or len(competitors) >= 2:
            return EvaluationStage.ACTIVE
        return EvaluationStage.EARLY

    def advantage_areas(self, competitors: Sequence[str]) -> List[str]:
        return _unique(
            area
            for name in competitors
            if name in self.catalog
            for area in self.catalog[name].advantages
        )

    def risk_factors(self, competitors: Sequence[str], stage: EvaluationStage) -> List[str]:
        risks = [
            risk
            for name in competitors
            if name in self.catalog
            for risk in self.catalog[name].risks
        ]
        if stage == EvaluationStage.FINAL:
            risks.append("rfp_in_progress")
        if stage == EvaluationStage.DECIDED:
            risks.append("late_engagement")
        if len(competitors) >= 3:
            risks.append("multi_vendor_evaluation")
        return _unique(risks)

    @staticmethod
    def has_own_engagement(signals: Sequence[IntentSignal]) -> bool:
        """Evaluation or purchase intent observed on our own channels."""
        return any(
            s.source != SignalSource.EXTERNAL
            and s.category in (SignalCategory.EVALUATION, SignalCategory.PURCHASE_INTENT)
            for s in signals
        )

    @staticmethod
    def win_probability(advantages: Sequence[str], risks: Sequence[str], own_engagement: bool) -> float:
        probability = (
            BASE_WIN_PROBABILITY
            + ADVANTAGE_BONUS * len(advantages)
            - RISK_PENALTY * len(risks)
        )
        if own_engagement:
            probability += OWN_ENGAGEMENT_BONUS
        return round(min(MAX_WIN_PROBABILITY, max(MIN_WIN_PROBABILITY, probability)), 4)

    @staticmethod
    def recommend_strategy(
        competitors: Sequence[str],
        advantages: Sequence[str],
        risks: Sequence[str],
        win_probability: float,
    ) -> str:
        if not competitors:
            return "educate_on_category"
        if advantages and win_probability >= 0.7:
            return f"emphasize_{advantages[0]}_advantage"
        if advantages and win_probability >= 0.4:
            return f"differentiate_on_{advantages[0]}"
        if risks:
            return f"mitigate_{risks[0]}"
        return "educate_on_category"

    def analyze(
        self,
        identity_id: str,
        signals: Sequence[IntentSignal],
        activity: Optional[CompetitiveActivity],
        as_of: dt.datetime,
    ) -> CompetitiveIntelligence:
        """
        Build the competitive picture from the identity's live signal log
        plus the activity payload that triggered the analysis.
        """
        competitors = self.competitors(signals, activity)
        stage = self.evaluation_stage(signals, activity, competitors)
        advantages = self.advantage_areas(competitors)
        risks = self.risk_factors(competitors, stage)
        probability = self.win_probability(advantages, risks, self.has_own_engagement(signals))

        return CompetitiveIntelligence(
            identity_id=identity_id,
            competitors_researched=competitors,
            evaluation_stage=stage,
            competitive_advantage_areas=advantages,
            risk_factors=risks,
            win_probability=probability,
            recommended_strategy=self.recommend_strategy(competitors, advantages, risks, probability),
            last_updated=as_of,
        )
