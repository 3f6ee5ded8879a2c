"""
Intent Engine
The central hub that turns captured behavior into published intent scores.

Architecture:
    Capture → Classifier → Signal Store → Recompute Queue
    Scheduler tick → Decay & Aggregation → Stage/Urgency/Fit/Trend → Score → Workflows
"""
import asyncio
import datetime as dt
import time
from collections import defaultdict
from typing import Callable, Dict, List, Optional

from intent_engine.classifiers import (
    classify_community_activity,
    classify_competitive_activity,
    classify_content_engagement,
    classify_documentation_view,
    classify_repository_activity,
    classify_website_visit,
)
from intent_engine.config import get_settings
from intent_engine.core.aggregation import aggregate
from intent_engine.core.score_classifier import classify_score
from intent_engine.models.activity import (
    CommunityActivity,
    CompetitiveActivity,
    ContentEngagement,
    RepositoryActivity,
)
from intent_engine.models.base import utc_now
from intent_engine.models.competitive import CompetitiveCapture, CompetitiveIntelligence
from intent_engine.models.profile import IdentityProfile
from intent_engine.models.score import IntentScore
from intent_engine.models.signal import IntentSignal
from intent_engine.processing_queue import InMemoryRecomputeQueue, RecomputeQueue
from intent_engine.repositories import InMemorySignalStore, SignalStore
from intent_engine.services.competitive_analyzer import CompetitiveAnalyzer
from intent_engine.services.profile_provider import InMemoryProfileProvider, ProfileProvider
from intent_engine.services.workflow_triggers import WorkflowDispatcher
from intent_engine.utils.metrics import metrics
from intent_engine.utils.observability import log_business_event, log_recomputation, logger


Clock = Callable[[], dt.datetime]


class IntentEngine:
    """
    Owns every identity's signal log, published score and competitive
    intelligence.

    Responsibilities:
    1. Classify capture payloads and append the resulting signals
    2. Queue identities for recomputation (capture never waits on scoring)
    3. Recompute and publish scores, then hand them to workflows
    4. Enforce the retention window

    All mutations of one identity's log or score happen under that
    identity's lock.

    Usage:
        >>> engine = IntentEngine()
        >>> await engine.capture_website("visitor-42", "/pricing", time_on_page=95)
        >>> await engine.recompute("visitor-42")
        >>> score = await engine.get_score("visitor-42")
    """

    def __init__(
        self,
        store: Optional[SignalStore] = None,
        queue: Optional[RecomputeQueue] = None,
        profile_provider: Optional[ProfileProvider] = None,
        dispatcher: Optional[WorkflowDispatcher] = None,
        analyzer: Optional[CompetitiveAnalyzer] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            store: Signal store (in-memory if None)
            queue: Recompute queue (in-memory if None)
            profile_provider: Profile lookup (empty in-memory provider if None)
            dispatcher: Workflow dispatcher (log-only triggers if None)
            analyzer: Competitive analyzer (default catalog if None)
            clock: Source of "now" for captures and default recomputation instants
        """
        settings = get_settings()
        self.store = store or InMemorySignalStore(settings.signal_retention_days)
        self.queue = queue or InMemoryRecomputeQueue()
        self.profile_provider = profile_provider or InMemoryProfileProvider()
        self.dispatcher = dispatcher or WorkflowDispatcher()
        self.analyzer = analyzer or CompetitiveAnalyzer()
        self.clock = clock or utc_now

        self.scale_factor = settings.score_scale_factor
        self.urgency_window_days = settings.urgency_window_days
        self.trend_window_days = settings.trend_window_days
        self.tracked_repository = settings.tracked_repository

        self._scores: Dict[str, IntentScore] = {}
        self._intelligence: Dict[str, CompetitiveIntelligence] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def now(self) -> dt.datetime:
        return self.clock()

    # ============================================
    # CAPTURE
    # ============================================

    async def _ingest(self, identity_id: str, channel: str, signals: List[IntentSignal], now: dt.datetime) -> List[IntentSignal]:
        """Append under the identity lock, then queue a recomputation."""
        metrics.captures.inc(channel=channel)
        if not signals:
            logger.debug(f"No signals from {channel} capture for {identity_id}")
            return signals

        async with self._locks[identity_id]:
            await self.store.append(identity_id, signals, now)

        await self.queue.enqueue(identity_id)

        for signal in signals:
            metrics.signals_captured.inc(source=signal.source.value)

        logger.bind(identity_id=identity_id, channel=channel, signal_count=len(signals)).debug(
            f"Captured {len(signals)} {channel} signals for {identity_id}"
        )
        return signals

    async def capture_website(
        self,
        identity_id: str,
        page_url: str,
        time_on_page: float = 0.0,
        interactions: Optional[List[str]] = None,
        referrer: Optional[str] = None,
        utm: Optional[Dict[str, str]] = None,
    ) -> List[IntentSignal]:
        now = self.now()
        signals = classify_website_visit(
            identity_id, page_url, time_on_page, interactions or [], now, referrer=referrer, utm=utm,
        )
        return await self._ingest(identity_id, "website", signals, now)

    async def capture_repository_activity(
        self,
        identity_id: str,
        account_handle: str,
        activity: RepositoryActivity,
    ) -> List[IntentSignal]:
        now = self.now()
        signals = classify_repository_activity(
            identity_id, account_handle, activity, now, self.tracked_repository,
        )
        return await self._ingest(identity_id, "repository", signals, now)

    async def capture_documentation(
        self,
        identity_id: str,
        doc_path: str,
        time_spent: float = 0.0,
        scroll_depth: float = 0.0,
        search_queries: Optional[List[str]] = None,
        downloaded_assets: Optional[List[str]] = None,
    ) -> List[IntentSignal]:
        now = self.now()
        signals = classify_documentation_view(
            identity_id, doc_path, time_spent, scroll_depth,
            search_queries or [], downloaded_assets or [], now,
        )
        return await self._ingest(identity_id, "documentation", signals, now)

    async def capture_community(self, identity_id: str, activity: CommunityActivity) -> List[IntentSignal]:
        now = self.now()
        signals = classify_community_activity(identity_id, activity, now)
        return await self._ingest(identity_id, "community", signals, now)

    async def capture_content(self, identity_id: str, engagement: ContentEngagement) -> List[IntentSignal]:
        now = self.now()
        signals = classify_content_engagement(identity_id, engagement, now)
        return await self._ingest(identity_id, "content", signals, now)

    async def capture_competitive(self, identity_id: str, activity: CompetitiveActivity) -> CompetitiveCapture:
        """
        Store competitive signals and refresh the identity's competitive
        intelligence from its whole live log.
        """
        now = self.now()
        signals = classify_competitive_activity(identity_id, activity, now)
        await self._ingest(identity_id, "competitive", signals, now)

        async with self._locks[identity_id]:
            live = await self._live_signals(identity_id, now)
            intelligence = self.analyzer.analyze(identity_id, live, activity, now)
            self._intelligence[identity_id] = intelligence

        log_business_event(
            "competitive_intelligence_updated",
            identity_id,
            competitors=intelligence.competitors_researched,
            evaluation_stage=intelligence.evaluation_stage.value,
            win_probability=intelligence.win_probability,
            strategy=intelligence.recommended_strategy,
        )
        return CompetitiveCapture(signals=signals, intelligence=intelligence)

    # ============================================
    # READ
    # ============================================

    async def _live_signals(self, identity_id: str, as_of: dt.datetime) -> List[IntentSignal]:
        return [s for s in await self.store.signals(identity_id) if self.store.is_live(s, as_of)]

    async def get_signals(self, identity_id: str) -> List[IntentSignal]:
        """Live signals in append order; expired entries are never returned."""
        return await self._live_signals(identity_id, self.now())

    async def get_score(self, identity_id: str) -> Optional[IntentScore]:
        return self._scores.get(identity_id)

    async def get_competitive_intelligence(self, identity_id: str) -> Optional[CompetitiveIntelligence]:
        return self._intelligence.get(identity_id)

    async def tracked_identities(self) -> List[str]:
        return await self.store.identities()

    # ============================================
    # SCORING
    # ============================================

    async def _lookup_profile(self, identity_id: str) -> Optional[IdentityProfile]:
        try:
            return await self.profile_provider.get_profile(identity_id)
        except Exception as e:
            logger.bind(identity_id=identity_id).warning(
                f"Profile lookup failed for {identity_id}, scoring with zero fit: {e}"
            )
            return None

    def _score(
        self,
        identity_id: str,
        signals: List[IntentSignal],
        profile: Optional[IdentityProfile],
        as_of: dt.datetime,
    ) -> IntentScore:
        result = aggregate(signals, as_of, self.scale_factor)
        return classify_score(
            identity_id,
            signals,
            result,
            profile,
            urgency_window_days=self.urgency_window_days,
            trend_window_days=self.trend_window_days,
        )

    async def calculate_score(self, identity_id: str, as_of: Optional[dt.datetime] = None) -> Optional[IntentScore]:
        """
        Compute what the identity's score would be at ``as_of`` without
        publishing it, pruning anything or triggering workflows.

        Returns:
            The score, or None when the identity has no live signals
        """
        as_of = as_of or self.now()
        signals = await self._live_signals(identity_id, as_of)
        if not signals:
            return None
        profile = await self._lookup_profile(identity_id)
        return self._score(identity_id, signals, profile, as_of)

    async def recompute(
        self,
        identity_id: str,
        as_of: Optional[dt.datetime] = None,
        dispatch: bool = True,
    ) -> Optional[IntentScore]:
        """
        Recompute and publish an identity's score.

        Expired signals are pruned first; an identity left without signals
        loses its score. The published score replaces the previous one
        wholesale. Workflows are triggered after the lock is released.
        """
        as_of = as_of or self.now()
        start_time = time.perf_counter()

        # Looked up outside the lock so a slow profile service never blocks captures
        profile = await self._lookup_profile(identity_id)

        async with self._locks[identity_id]:
            signals = await self.store.prune(identity_id, as_of)
            if not signals:
                self._forget(identity_id)
                await self.store.remove(identity_id)
                logger.debug(f"No live signals for {identity_id}, score removed")
                return None

            score = self._score(identity_id, signals, profile, as_of)
            self._scores[identity_id] = score

        duration = time.perf_counter() - start_time
        metrics.recompute_duration.observe(duration)
        log_recomputation(
            identity_id=identity_id,
            overall_score=score.overall_score,
            urgency_score=score.urgency_score,
            stage=score.buying_stage_prediction.value,
            trend=score.trend.value,
            duration_ms=duration * 1000,
            signal_count=score.signal_count,
            fit_score=score.fit_score,
        )

        if dispatch:
            await self.dispatcher.dispatch(score)
        return score

    def _forget(self, identity_id: str) -> None:
        """Drop every derived record for an identity. Caller holds the lock."""
        self._scores.pop(identity_id, None)
        self._intelligence.pop(identity_id, None)

    # ============================================
    # RETENTION
    # ============================================

    async def run_retention_cleanup(self, now: Optional[dt.datetime] = None) -> List[str]:
        """
        Prune every identity's log. Identities left empty are removed along
        with their score and competitive intelligence.

        A store error on one identity is logged and skipped; the remaining
        identities are still cleaned.

        Returns:
            Removed identity ids
        """
        now = now or self.now()
        removed: List[str] = []
        failed: List[str] = []

        for identity_id in await self.store.identities():
            try:
                if await self._expire(identity_id, now):
                    removed.append(identity_id)
            except Exception as e:
                failed.append(identity_id)
                logger.bind(identity_id=identity_id, error=str(e)).exception(
                    f"Retention cleanup failed for {identity_id}: {e}"
                )

        # Scores whose log vanished through another path
        for identity_id in list(self._scores):
            if identity_id in removed or identity_id in failed:
                continue
            try:
                async with self._locks[identity_id]:
                    if not await self.store.signals(identity_id):
                        self._forget(identity_id)
                        removed.append(identity_id)
            except Exception as e:
                logger.bind(identity_id=identity_id, error=str(e)).exception(
                    f"Retention check failed for {identity_id}: {e}"
                )

        for identity_id in removed:
            log_business_event("identity_expired", identity_id, as_of=now.isoformat())

        if removed:
            metrics.retention_removals.inc(len(removed))
            logger.info(f"Retention cleanup removed {len(removed)} identities")

        metrics.tracked_identities.set(len(await self.store.identities()))
        return removed

    async def _expire(self, identity_id: str, now: dt.datetime) -> bool:
        """Prune one identity; drop it entirely when nothing live remains."""
        async with self._locks[identity_id]:
            if await self.store.prune(identity_id, now):
                return False
            await self.store.remove(identity_id)
            self._forget(identity_id)
            return True
