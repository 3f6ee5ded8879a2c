"""
Tests for the IntentEngine.

Covers capture, recomputation, retention and workflow dispatch on
in-memory collaborators with a fake clock.
"""
import asyncio
import datetime as dt

import pytest

from conftest import BrokenPruneStore, make_signal
from intent_engine.core.intent_engine import IntentEngine
from intent_engine.models.activity import CommunityActivity, CompetitiveActivity, RepositoryActivity
from intent_engine.models.competitive import EvaluationStage
from intent_engine.models.profile import IdentityProfile
from intent_engine.models.score import BuyingStage
from intent_engine.models.signal import SignalCategory
from intent_engine.utils.metrics import metrics


pytestmark = pytest.mark.asyncio


class ExplodingProfileProvider:
    async def get_profile(self, identity_id):
        raise RuntimeError("profile service down")


class TestCapture:
    """Capture classifies, stores and queues; it never scores."""

    async def test_capture_stores_and_enqueues(self, engine):
        signals = await engine.capture_website("visitor-1", "/pricing", time_on_page=45)

        assert len(signals) == 1
        assert await engine.get_signals("visitor-1") == signals
        assert await engine.get_score("visitor-1") is None

        queue_metrics = await engine.queue.get_metrics()
        assert queue_metrics.pending == 1

    async def test_repeated_captures_queue_identity_once(self, engine):
        await engine.capture_website("visitor-1", "/pricing")
        await engine.capture_website("visitor-1", "/demo")

        assert (await engine.queue.get_metrics()).pending == 1
        assert len(await engine.get_signals("visitor-1")) == 2

    async def test_capture_without_signals_does_not_enqueue(self, engine):
        signals = await engine.capture_website("visitor-1", "/about")

        assert signals == []
        assert (await engine.queue.get_metrics()).pending == 0
        assert metrics.captures.value(channel="website") == 1

    async def test_capture_counts_signals_by_source(self, engine):
        await engine.capture_community("visitor-1", CommunityActivity(events_attended=["KubeCon", "SREcon"]))

        assert metrics.signals_captured.value(source="event") == 2

    async def test_repository_capture_uses_tracked_repository(self, engine):
        signals = await engine.capture_repository_activity(
            "visitor-1", "octocat", RepositoryActivity(forked=[engine.tracked_repository]),
        )
        assert [s.signal_type for s in signals] == ["repository_fork"]

    async def test_concurrent_captures_lose_nothing(self, engine):
        await asyncio.gather(*(
            engine.capture_website("visitor-1", "/pricing") for _ in range(25)
        ))
        assert len(await engine.get_signals("visitor-1")) == 25

    async def test_identity_with_braces_is_captured(self, engine):
        """Identity ids are arbitrary strings, including format placeholders."""
        signals = await engine.capture_website("{acct}", "/pricing", time_on_page=45)

        assert len(signals) == 1
        assert (await engine.queue.get_metrics()).pending == 1

        score = await engine.recompute("{acct}")
        assert score.identity_id == "{acct}"

    async def test_capture_timestamps_come_from_clock(self, engine, clock):
        clock.advance(hours=5)
        signals = await engine.capture_documentation(
            "visitor-1", "/docs/api/", search_queries=["pricing tiers"],
        )
        assert signals[0].timestamp == clock()


class TestRecompute:
    """Recompute publishes a fresh score from the live log."""

    async def test_recompute_publishes_score(self, engine):
        await engine.capture_website("visitor-1", "/demo")

        score = await engine.recompute("visitor-1")

        assert score is not None
        assert score.overall_score == pytest.approx(19.0)
        assert score.buying_stage_prediction == BuyingStage.AWARENESS
        assert await engine.get_score("visitor-1") == score

    async def test_score_reflects_decay_at_recompute_time(self, engine, clock):
        await engine.capture_website("visitor-1", "/demo")
        clock.advance(days=5)

        score = await engine.recompute("visitor-1")

        assert score.overall_score == pytest.approx(19.0 * 0.9 ** 5)
        assert score.last_updated == clock()

    async def test_calculate_score_has_no_side_effects(self, engine, clock):
        await engine.capture_website("visitor-1", "/pricing")

        preview = await engine.calculate_score("visitor-1", clock() + dt.timedelta(days=100))

        assert preview is None
        assert await engine.get_score("visitor-1") is None
        assert len(await engine.get_signals("visitor-1")) == 1

        current = await engine.calculate_score("visitor-1")
        assert current.overall_score == pytest.approx(16.0)
        assert await engine.get_score("visitor-1") is None

    async def test_recompute_unknown_identity(self, engine):
        assert await engine.recompute("nobody") is None

    async def test_fit_uses_profile(self, engine, profiles, sre_profile):
        profiles.set_profile("visitor-1", sre_profile)
        await engine.capture_website("visitor-1", "/pricing")

        score = await engine.recompute("visitor-1")
        assert score.fit_score == 100.0

    async def test_profile_failure_scores_zero_fit(self, engine):
        engine.profile_provider = ExplodingProfileProvider()
        await engine.capture_website("visitor-1", "/pricing")

        score = await engine.recompute("visitor-1")
        assert score.fit_score == 0.0

    async def test_profile_failure_with_braced_identity(self, engine):
        engine.profile_provider = ExplodingProfileProvider()
        await engine.capture_website("{acct}", "/pricing")

        score = await engine.recompute("{acct}")
        assert score.fit_score == 0.0

    async def test_customer_with_intent_is_expansion(self, engine, profiles):
        profiles.set_profile("visitor-1", IdentityProfile(is_customer=True))
        await engine.capture_website("visitor-1", "/demo", interactions=["demo_request_clicked"])

        score = await engine.recompute("visitor-1")
        assert score.buying_stage_prediction == BuyingStage.EXPANSION


class TestRetention:
    """Signals older than the retention window disappear with their score."""

    async def test_expired_identity_loses_score(self, engine, clock):
        await engine.capture_website("visitor-1", "/pricing")
        await engine.recompute("visitor-1")

        clock.advance(days=91)
        assert await engine.recompute("visitor-1") is None
        assert await engine.get_score("visitor-1") is None
        assert await engine.tracked_identities() == []

    async def test_signal_at_boundary_is_expired(self, engine, clock):
        await engine.capture_website("visitor-1", "/pricing")

        clock.advance(days=89)
        assert len(await engine.get_signals("visitor-1")) == 1
        clock.advance(days=1)
        assert await engine.get_signals("visitor-1") == []

    async def test_cleanup_removes_only_expired_identities(self, engine, clock):
        await engine.capture_website("old-visitor", "/pricing")
        await engine.recompute("old-visitor")
        clock.advance(days=60)
        await engine.capture_website("new-visitor", "/pricing")
        clock.advance(days=31)

        removed = await engine.run_retention_cleanup()

        assert removed == ["old-visitor"]
        assert await engine.get_score("old-visitor") is None
        assert await engine.tracked_identities() == ["new-visitor"]
        assert metrics.retention_removals.value() == 1
        assert metrics.tracked_identities.value() == 1

    async def test_cleanup_drops_competitive_intelligence(self, engine, clock):
        await engine.capture_competitive(
            "visitor-1", CompetitiveActivity(rfp_signals=["Observability RFP"]),
        )
        clock.advance(days=120)

        await engine.run_retention_cleanup()
        assert await engine.get_competitive_intelligence("visitor-1") is None

    async def test_cleanup_skips_identity_whose_store_call_fails(self, clock, profiles):
        store = BrokenPruneStore(broken={"stuck"}, message="write failed: {'code': 11000}")
        engine = IntentEngine(store=store, profile_provider=profiles, clock=clock)
        await engine.capture_website("stuck", "/pricing")
        await engine.capture_website("old-visitor", "/pricing")
        clock.advance(days=91)

        removed = await engine.run_retention_cleanup()

        assert removed == ["old-visitor"]
        assert await engine.tracked_identities() == ["stuck"]

    async def test_lock_is_stable_across_cleanup(self, engine, clock):
        await engine.capture_website("visitor-1", "/pricing")
        lock = engine._locks["visitor-1"]
        clock.advance(days=91)

        await engine.run_retention_cleanup()
        await engine.capture_website("visitor-1", "/pricing")

        assert engine._locks["visitor-1"] is lock


class TestCompetitiveCapture:

    async def test_capture_returns_signals_and_intelligence(self, engine):
        result = await engine.capture_competitive("visitor-1", CompetitiveActivity(
            competitor_sites_visited=["https://www.datadoghq.com/pricing"],
            rfp_signals=["Monitoring RFP issued"],
        ))

        assert [s.signal_type for s in result.signals] == ["competitor_site_visit", "rfp_activity"]
        intel = result.intelligence
        assert intel.competitors_researched == ["Datadog"]
        assert intel.evaluation_stage == EvaluationStage.FINAL
        assert intel.risk_factors == ["platform_breadth", "rfp_in_progress"]
        assert intel.win_probability == pytest.approx(0.46)
        assert intel.recommended_strategy == "differentiate_on_open_source"
        assert await engine.get_competitive_intelligence("visitor-1") == intel

    async def test_analysis_reads_whole_live_log(self, engine):
        await engine.capture_website(
            "visitor-1", "/pricing", referrer="https://www.pagerduty.com/",
        )
        result = await engine.capture_competitive("visitor-1", CompetitiveActivity(
            comparison_searches=["splunk vs openconductor"],
        ))

        assert result.intelligence.competitors_researched == ["PagerDuty", "Splunk"]
        assert result.intelligence.evaluation_stage == EvaluationStage.ACTIVE

    async def test_competitive_signals_feed_the_score(self, engine):
        await engine.capture_competitive("visitor-1", CompetitiveActivity(rfp_signals=["RFP"]))

        score = await engine.recompute("visitor-1")
        assert score.signal_breakdown.competitive_signals == pytest.approx(19.0)


class TestWorkflowDispatch:
    """At most one workflow tier fires per recomputation."""

    async def test_high_intent_triggers_high_workflow(self, engine, trigger):
        await engine.capture_website(
            "visitor-1", "/demo", time_on_page=200,
            interactions=["demo_request_clicked", "pricing_calculator_used", "contact_form_filled"],
            referrer="https://www.pagerduty.com/",
        )

        score = await engine.recompute("visitor-1")

        assert score.overall_score == 100.0
        assert score.urgency_score == 100.0
        assert trigger.high == [score]
        assert trigger.medium == []
        assert metrics.workflow_triggers.value(tier="high_intent", status="sent") == 1

    async def test_medium_intent_triggers_medium_workflow(self, engine, trigger, clock):
        old = clock() - dt.timedelta(days=8)
        await engine.store.append("visitor-1", [
            make_signal(timestamp=old, decay_rate=0.0, category=SignalCategory.EVALUATION) for _ in range(3)
        ], clock())

        score = await engine.recompute("visitor-1")

        assert score.overall_score == pytest.approx(57.0)
        assert score.urgency_score == 0.0
        assert trigger.medium == [score]
        assert trigger.high == []

    async def test_low_score_triggers_nothing(self, engine, trigger):
        await engine.capture_website("visitor-1", "/pricing")
        await engine.recompute("visitor-1")

        assert trigger.high == [] and trigger.medium == []

    async def test_dispatch_can_be_disabled(self, engine, trigger):
        await engine.capture_website(
            "visitor-1", "/demo", time_on_page=200,
            interactions=["demo_request_clicked", "pricing_calculator_used", "contact_form_filled"],
        )
        await engine.recompute("visitor-1", dispatch=False)

        assert trigger.high == []
