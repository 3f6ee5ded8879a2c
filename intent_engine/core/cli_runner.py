"""
CLI Runner for the Intent Engine
Simulates a buyer journey on a virtual clock and prints the resulting score.
"""
import asyncio
import datetime as dt
from loguru import logger
from intent_engine.core.intent_engine import IntentEngine
from intent_engine.models.activity import CommunityActivity, CompetitiveActivity, RepositoryActivity
from intent_engine.models.profile import IdentityProfile
from intent_engine.models.score import IntentScore
from intent_engine.services.processing_scheduler import ProcessingScheduler
from intent_engine.services.profile_provider import InMemoryProfileProvider
from intent_engine.utils.observability import configure_logging


class SimulatedClock:
    """Manually advanced clock so a multi-week journey runs instantly."""

    def __init__(self, start: dt.datetime):
        self.current = start

    def __call__(self) -> dt.datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current += dt.timedelta(**delta)


def print_score(score: IntentScore | None) -> None:
    if score is None:
        print("   (no score yet)")
        return
    print(f"   Overall: {score.overall_score:.1f}  Urgency: {score.urgency_score:.0f}  Fit: {score.fit_score:.0f}")
    print(f"   Stage: {score.buying_stage_prediction}  Trend: {score.trend}  Signals: {score.signal_count}")


async def run_demo(identity_id: str = "visitor-acme-sre") -> IntentScore | None:
    """
    Walk one prospect from first docs visit to RFP and show how the score
    moves after each scheduler tick.
    """
    configure_logging()

    logger.info("=" * 70)
    logger.info("Intent Engine - Buyer Journey Demo")
    logger.info("=" * 70)

    clock = SimulatedClock(dt.datetime(2024, 3, 1, 9, 0, tzinfo=dt.UTC))
    profiles = InMemoryProfileProvider({
        identity_id: IdentityProfile(
            employee_count=750,
            department="SRE",
            seniority="Manager",
            technology_stack=["kubernetes", "aws", "terraform"],
        )
    })
    engine = IntentEngine(profile_provider=profiles, clock=clock)
    scheduler = ProcessingScheduler(engine)

    journey = [
        ("Day 0: studies the production deployment guide", 0,
         engine.capture_documentation(identity_id, "/docs/deployment/production", time_spent=240, scroll_depth=0.9)),
        ("Day 2: stars the repository", 2,
         engine.capture_repository_activity(
             identity_id, "acme-sre", RepositoryActivity(starred=[engine.tracked_repository]))),
        ("Day 6: asks how to implement alert routing", 4,
         engine.capture_community(
             identity_id, CommunityActivity(help_requests=["How do I implement alert routing?"]))),
        ("Day 9: pricing page via a PagerDuty referral", 3,
         engine.capture_website(
             identity_id, "/pricing", time_on_page=180,
             interactions=["pricing_calculator_used", "demo_request_clicked"],
             referrer="https://www.pagerduty.com/pricing")),
    ]

    for label, days, capture in journey:
        clock.advance(days=days)
        signals = await capture
        await scheduler.tick()

        print(f"\n{'-' * 70}")
        print(f"{label}: {len(signals)} signals")
        print_score(await engine.get_score(identity_id))

    clock.advance(days=1)
    result = await engine.capture_competitive(identity_id, CompetitiveActivity(
        competitor_sites_visited=["https://www.datadoghq.com/pricing", "https://www.datadog.com/product"],
        comparison_searches=["pagerduty vs openconductor", "datadog alternative"],
        rfp_signals=["Incident management RFP issued"],
    ))
    await scheduler.tick()

    intel = result.intelligence
    print(f"\n{'=' * 70}")
    print("Competitive Intelligence")
    print(f"{'=' * 70}")
    print(f"   Competitors: {', '.join(intel.competitors_researched) or '-'}")
    print(f"   Evaluation stage: {intel.evaluation_stage}")
    print(f"   Win probability: {intel.win_probability:.0%}")
    print(f"   Strategy: {intel.recommended_strategy}")

    final = await engine.get_score(identity_id)
    print(f"\n{'=' * 70}")
    print("Final Intent Score")
    print(f"{'=' * 70}")
    print_score(final)

    clock.advance(days=120)
    await scheduler.run_retention_cleanup(clock())
    print(f"\nAfter 120 quiet days the identity is {'gone' if await engine.get_score(identity_id) is None else 'still scored'}.")
    return final


if __name__ == "__main__":
    asyncio.run(run_demo())
