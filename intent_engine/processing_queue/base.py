"""
Base Recompute Queue Interface

Abstract interface for the queue of identities awaiting score recomputation.
"""

from abc import ABC, abstractmethod
from pydantic import BaseModel


class QueueMetrics(BaseModel):
    """
    Recompute queue metrics.

    Attributes:
        pending: Identities awaiting recomputation
        processing: Identities currently being recomputed
        completed: Total successful recomputations
        failed: Total failed recomputations
        deferred: Identities re-queued once their in-flight pass finishes
        avg_processing_time_ms: Average dequeue-to-complete duration
        error_rate: Percentage of failed recomputations
    """
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    deferred: int = 0
    avg_processing_time_ms: float = 0.0
    error_rate: float = 0.0


class RecomputeQueue(ABC):
    """
    Abstract recompute queue.

    Implementations must provide:
    - Enqueue: Request a recomputation (deduplicated)
    - Dequeue batch: Take up to N identities in FIFO order
    - Complete: Mark an identity's pass as done
    - Fail: Mark an identity's pass as failed (no retry)
    - Metrics: Get current queue statistics
    """

    @abstractmethod
    async def enqueue(self, identity_id: str) -> bool:
        """
        Request a recomputation for an identity.

        An identity already pending is not queued twice. An identity
        currently in flight is deferred and re-queued on completion.

        Returns:
            True if the identity was newly added to the pending queue
        """
        pass

    @abstractmethod
    async def dequeue_batch(self, limit: int) -> list[str]:
        """
        Take up to ``limit`` identities, oldest first, and mark them in flight.

        Returns:
            Identity ids (empty list if nothing is pending)
        """
        pass

    @abstractmethod
    async def complete(self, identity_id: str) -> None:
        pass

    @abstractmethod
    async def fail(self, identity_id: str, error: str) -> None:
        """
        Record a failed pass. Failed identities are not retried; the next
        capture for the identity queues it again.
        """
        pass

    @abstractmethod
    async def get_metrics(self) -> QueueMetrics:
        pass
