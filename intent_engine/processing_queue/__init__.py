"""
Recompute Queue

Identities whose signal logs changed wait here until the processing
scheduler recomputes their scores.

Components:
- RecomputeQueue: Abstract queue interface
- InMemoryRecomputeQueue: Deduplicating FIFO for single-process deployments
- QueueMetrics: Pending / in-flight / outcome counters
"""

from intent_engine.processing_queue.base import RecomputeQueue, QueueMetrics
from intent_engine.processing_queue.memory import InMemoryRecomputeQueue

__all__ = [
    "RecomputeQueue",
    "QueueMetrics",
    "InMemoryRecomputeQueue",
]
