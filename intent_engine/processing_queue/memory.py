"""
In-Memory Recompute Queue

FIFO of identity ids for single-process deployments and tests.
Uses asyncio primitives for safe concurrent access from capture calls
and the processing scheduler.
"""

import asyncio
import time
from collections import OrderedDict
from typing import Optional

from intent_engine.processing_queue.base import RecomputeQueue, QueueMetrics
from intent_engine.utils.observability import logger


class InMemoryRecomputeQueue(RecomputeQueue):
    """
    In-memory recompute queue implementation.

    Pending identities are kept in insertion order; each identity appears
    at most once across pending and in-flight. Data is lost on restart.
    """

    def __init__(self):
        self._pending: OrderedDict[str, None] = OrderedDict()
        self._processing: dict[str, float] = {}
        self._deferred: set[str] = set()
        self._completed = 0
        self._failed = 0
        self._processing_times: list[float] = []
        self._lock = asyncio.Lock()

    async def enqueue(self, identity_id: str) -> bool:
        async with self._lock:
            if identity_id in self._processing:
                self._deferred.add(identity_id)
                return False
            if identity_id in self._pending:
                return False

            self._pending[identity_id] = None
            return True

    async def dequeue_batch(self, limit: int) -> list[str]:
        async with self._lock:
            batch: list[str] = []
            started = time.monotonic()
            while self._pending and len(batch) < limit:
                identity_id, _ = self._pending.popitem(last=False)
                self._processing[identity_id] = started
                batch.append(identity_id)
            return batch

    async def complete(self, identity_id: str) -> None:
        async with self._lock:
            started = self._finish(identity_id)
            if started is None:
                return

            self._completed += 1
            self._processing_times.append((time.monotonic() - started) * 1000)

            # Keep only last 1000 processing times
            if len(self._processing_times) > 1000:
                self._processing_times = self._processing_times[-1000:]

    async def fail(self, identity_id: str, error: str) -> None:
        async with self._lock:
            if self._finish(identity_id) is None:
                return
            self._failed += 1
            logger.debug(f"Recompute failed for {identity_id}: {error}")

    def _finish(self, identity_id: str) -> Optional[float]:
        """Leave the in-flight set; a deferred request goes to the back of the queue."""
        started = self._processing.pop(identity_id, None)
        if started is None:
            return None

        if identity_id in self._deferred:
            self._deferred.discard(identity_id)
            self._pending[identity_id] = None
        return started

    async def get_metrics(self) -> QueueMetrics:
        async with self._lock:
            total = self._completed + self._failed
            error_rate = (self._failed / total * 100) if total > 0 else 0.0
            avg_time = (
                sum(self._processing_times) / len(self._processing_times)
                if self._processing_times
                else 0.0
            )

            return QueueMetrics(
                pending=len(self._pending),
                processing=len(self._processing),
                completed=self._completed,
                failed=self._failed,
                deferred=len(self._deferred),
                avg_processing_time_ms=avg_time,
                error_rate=error_rate,
            )
