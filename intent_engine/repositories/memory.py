"""
In-Memory Signal Store

Default store for single-process deployments and tests.
Data is lost on restart.
"""
import asyncio
import datetime as dt
from typing import Dict, List

from .base import SignalStore
from ..models.signal import IntentSignal
from ..utils.observability import logger


class InMemorySignalStore(SignalStore):
    """
    Dict-of-lists signal store guarded by an asyncio lock.

    Suitable for:
    - Testing
    - Single-instance deployments

    Not suitable for:
    - Multi-instance deployments
    - Signal history that must survive restarts
    """

    def __init__(self, retention_days: int = 90):
        super().__init__(retention_days)
        self._logs: Dict[str, List[IntentSignal]] = {}
        self._lock = asyncio.Lock()

    async def append(self, identity_id: str, signals: List[IntentSignal], now: dt.datetime) -> List[IntentSignal]:
        async with self._lock:
            log = self._logs.get(identity_id, []) + list(signals)
            live = [signal for signal in log if self.is_live(signal, now)]
            dropped = len(log) - len(live)

            if live:
                self._logs[identity_id] = live
            else:
                self._logs.pop(identity_id, None)

            if dropped:
                logger.debug(f"Dropped {dropped} expired signals for {identity_id} on append")

            return list(live)

    async def signals(self, identity_id: str) -> List[IntentSignal]:
        async with self._lock:
            return list(self._logs.get(identity_id, []))

    async def prune(self, identity_id: str, now: dt.datetime) -> List[IntentSignal]:
        async with self._lock:
            log = self._logs.get(identity_id, [])
            live = [signal for signal in log if self.is_live(signal, now)]
            if live:
                self._logs[identity_id] = live
            else:
                self._logs.pop(identity_id, None)
            return list(live)

    async def remove(self, identity_id: str) -> None:
        async with self._lock:
            self._logs.pop(identity_id, None)

    async def identities(self) -> List[str]:
        async with self._lock:
            return list(self._logs.keys())
