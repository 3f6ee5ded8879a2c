"""
Processing Scheduler

Background loop that drains the recompute queue in fixed-size batches and
runs periodic maintenance (pattern refresh, retention cleanup).
"""

import asyncio
import datetime as dt
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from intent_engine.config import get_settings
from intent_engine.core.intent_engine import IntentEngine
from intent_engine.utils.metrics import Timer, metrics
from intent_engine.utils.observability import logger


PatternRefresher = Callable[[dt.datetime], Awaitable[None]]


@dataclass
class TickReport:
    """What a single tick did."""
    started_at: dt.datetime
    processed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    patterns_refreshed: bool = False
    cleanup_ran: bool = False
    removed: List[str] = field(default_factory=list)


class ProcessingScheduler:
    """
    Drives recomputation for an IntentEngine.

    Each tick:
    1. Runs retention cleanup when due (daily; first tick always)
    2. Runs the pattern refresh hook when due (hourly; first tick always)
    3. Dequeues up to ``batch_size`` identities and recomputes them
       concurrently; every dequeued identity finishes before the tick returns

    Usage:
        scheduler = ProcessingScheduler(engine)
        await scheduler.tick()            # one pass (tests, cron)
        await scheduler.start()           # background loop
        await scheduler.stop()
    """

    def __init__(
        self,
        engine: IntentEngine,
        batch_size: Optional[int] = None,
        max_concurrent: Optional[int] = None,
        tick_seconds: Optional[float] = None,
        pattern_refresh_interval_seconds: Optional[int] = None,
        retention_cleanup_interval_seconds: Optional[int] = None,
        pattern_refresher: Optional[PatternRefresher] = None,
    ):
        settings = get_settings()
        self.engine = engine
        self.queue = engine.queue
        self.batch_size = batch_size or settings.processing_batch_size
        self.max_concurrent = max_concurrent or settings.processing_max_concurrent
        self.tick_seconds = tick_seconds or settings.processing_tick_seconds
        self.pattern_refresh_interval = dt.timedelta(
            seconds=pattern_refresh_interval_seconds or settings.pattern_refresh_interval_seconds
        )
        self.retention_cleanup_interval = dt.timedelta(
            seconds=retention_cleanup_interval_seconds or settings.retention_cleanup_interval_seconds
        )
        self.pattern_refresher = pattern_refresher

        self.last_pattern_refresh: Optional[dt.datetime] = None
        self.last_retention_cleanup: Optional[dt.datetime] = None

        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        self._running = False
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    # ============================================
    # ONE PASS
    # ============================================

    async def tick(self, now: Optional[dt.datetime] = None) -> TickReport:
        now = now or self.engine.now()
        report = TickReport(started_at=now)

        with Timer(metrics.tick_duration):
            if self._is_due(self.last_retention_cleanup, self.retention_cleanup_interval, now):
                try:
                    report.removed = await self.run_retention_cleanup(now)
                    report.cleanup_ran = True
                except Exception as e:
                    logger.bind(error=str(e)).exception(f"Retention cleanup failed: {e}")

            if self._is_due(self.last_pattern_refresh, self.pattern_refresh_interval, now):
                try:
                    await self.refresh_patterns(now)
                    report.patterns_refreshed = True
                except Exception as e:
                    logger.bind(error=str(e)).exception(f"Pattern refresh failed: {e}")

            report.processed, report.failed = await self.process_batch(now)

        await self._publish_queue_metrics()

        if report.processed or report.failed:
            logger.bind(processed=len(report.processed), failed=len(report.failed)).info(
                f"Tick processed {len(report.processed)} identities ({len(report.failed)} failed)"
            )
        return report

    @staticmethod
    def _is_due(last_run: Optional[dt.datetime], interval: dt.timedelta, now: dt.datetime) -> bool:
        return last_run is None or now - last_run >= interval

    async def process_batch(self, now: dt.datetime) -> tuple[List[str], List[str]]:
        """
        Recompute one batch of queued identities.

        Returns:
            (succeeded, failed) identity ids
        """
        batch = await self.queue.dequeue_batch(self.batch_size)
        if not batch:
            return [], []

        outcomes = await asyncio.gather(*(self._process_identity(identity_id, now) for identity_id in batch))

        succeeded = [identity_id for identity_id, ok in zip(batch, outcomes) if ok]
        failed = [identity_id for identity_id, ok in zip(batch, outcomes) if not ok]
        return succeeded, failed

    async def _process_identity(self, identity_id: str, now: dt.datetime) -> bool:
        succeeded = False
        reason = "cancelled"
        async with self._semaphore:
            try:
                await self.engine.recompute(identity_id, now)
                succeeded = True
            except Exception as e:
                reason = str(e)
                logger.bind(identity_id=identity_id, error=reason).exception(
                    f"Failed to recompute {identity_id}: {e}"
                )
            finally:
                # Always release the queue entry so later enqueues are not stuck deferred
                if succeeded:
                    metrics.recomputations.inc(status="success")
                    await self.queue.complete(identity_id)
                else:
                    metrics.recomputations.inc(status="failed")
                    await self.queue.fail(identity_id, reason)
        return succeeded

    # ============================================
    # MAINTENANCE
    # ============================================

    async def refresh_patterns(self, now: dt.datetime) -> None:
        """Hourly hook. Runs the configured refresher, then updates tracking gauges."""
        self.last_pattern_refresh = now
        if self.pattern_refresher is not None:
            try:
                await self.pattern_refresher(now)
            except Exception as e:
                logger.bind(error=str(e)).error(f"Pattern refresh hook failed: {e}")

        tracked = await self.engine.tracked_identities()
        metrics.tracked_identities.set(len(tracked))
        logger.debug(f"Pattern refresh at {now.isoformat()}: {len(tracked)} tracked identities")

    async def run_retention_cleanup(self, now: dt.datetime) -> List[str]:
        """
        Daily retention pass over every identity.

        The pass is only marked done once it returns, so a failed pass is
        retried on the next tick.
        """
        removed = await self.engine.run_retention_cleanup(now)
        self.last_retention_cleanup = now
        return removed

    async def _publish_queue_metrics(self) -> None:
        queue_metrics = await self.queue.get_metrics()
        metrics.track_queue(queue_metrics.pending, queue_metrics.processing, queue_metrics.deferred)

    # ============================================
    # BACKGROUND LOOP
    # ============================================

    async def run_forever(self) -> None:
        """
        Call ``tick()`` every ``tick_seconds`` until ``stop()``.

        A failing tick is logged and the loop carries on.
        """
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._running = True
        self._stop_event.clear()
        logger.info(
            f"Processing scheduler started (batch_size={self.batch_size}, "
            f"tick={self.tick_seconds}s)"
        )

        try:
            while self._running:
                try:
                    await self.tick()
                except Exception as e:
                    logger.exception(f"Scheduler tick crashed: {e}")

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.tick_seconds)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            logger.info("Processing scheduler stopped")

    async def start(self) -> asyncio.Task:
        """Run the loop as a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self) -> None:
        """
        Stop after the current tick finishes.

        A tick in progress completes its batch; no new tick starts.
        """
        self._running = False
        self._stop_event.set()

        if self._task is not None:
            try:
                await asyncio.wait_for(self._task, timeout=30.0)
            except asyncio.TimeoutError:
                logger.warning("Timeout waiting for scheduler, cancelling")
                self._task.cancel()
            self._task = None
