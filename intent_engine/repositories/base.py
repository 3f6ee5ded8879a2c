"""
Signal Store Interface
Per-identity, append-only, ordered signal logs with a rolling retention window.
"""
from abc import ABC, abstractmethod
import datetime as dt
from typing import List

from ..models.signal import IntentSignal


class SignalStore(ABC):
    """
    Abstract signal store.

    Implementations must provide:
    - Append: Add signals to an identity's log (and apply retention)
    - Signals: Read an identity's log in append order
    - Prune: Drop expired signals for one identity
    - Remove: Delete an identity's log entirely
    - Identities: List every identity with a log

    Append is the only way signals enter a log; stored signals are never
    edited in place.
    """

    def __init__(self, retention_days: int = 90):
        self.retention_days = retention_days

    def cutoff(self, now: dt.datetime) -> dt.datetime:
        """Signals stamped at or before this instant have expired."""
        return now - dt.timedelta(days=self.retention_days)

    def is_live(self, signal: IntentSignal, now: dt.datetime) -> bool:
        return signal.timestamp > self.cutoff(now)

    @abstractmethod
    async def append(self, identity_id: str, signals: List[IntentSignal], now: dt.datetime) -> List[IntentSignal]:
        """
        Append signals to an identity's log, then drop expired entries.

        Args:
            identity_id: Owning identity
            signals: Signals in capture order
            now: Instant used for the retention cutoff

        Returns:
            The identity's log after the append
        """
        pass

    @abstractmethod
    async def signals(self, identity_id: str) -> List[IntentSignal]:
        """
        Get an identity's log in append order.

        Returns:
            Stored signals (empty list for unknown identities)
        """
        pass

    @abstractmethod
    async def prune(self, identity_id: str, now: dt.datetime) -> List[IntentSignal]:
        """
        Drop an identity's expired signals.

        Returns:
            The remaining (live) signals
        """
        pass

    @abstractmethod
    async def remove(self, identity_id: str) -> None:
        """Delete an identity's log entirely."""
        pass

    @abstractmethod
    async def identities(self) -> List[str]:
        """Every identity that currently has a log."""
        pass
