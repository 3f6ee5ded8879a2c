"""
MongoDB Signal Store
Persists each identity's signal log as one document per signal.
"""
from typing import Any, Dict, List
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
import datetime as dt

from .base import SignalStore
from .connection import SIGNALS_COLLECTION
from ..models.signal import IntentSignal
from ..utils.observability import logger


class MongoSignalStore(SignalStore):
    """
    Signal store backed by the ``intent_signals`` collection.

    Append order is recovered by sorting on ``_id``; expired signals are
    removed with a range delete on ``timestamp``.
    """

    def __init__(self, database: AsyncIOMotorDatabase, retention_days: int = 90):
        super().__init__(retention_days)
        self.database = database
        self.collection: AsyncIOMotorCollection = database[SIGNALS_COLLECTION]

    @staticmethod
    def _to_document(signal: IntentSignal) -> Dict[str, Any]:
        doc = signal.model_dump(mode="json")
        # Keep a real datetime so range queries on timestamp work
        doc["timestamp"] = signal.timestamp
        return doc

    @staticmethod
    def _from_document(doc: Dict[str, Any]) -> IntentSignal:
        doc = dict(doc)
        doc.pop("_id", None)
        return IntentSignal.model_validate(doc)

    async def append(self, identity_id: str, signals: List[IntentSignal], now: dt.datetime) -> List[IntentSignal]:
        if signals:
            documents = [self._to_document(signal) for signal in signals]
            result = await self.collection.insert_many(documents, ordered=True)
            logger.bind(identity_id=identity_id, collection=SIGNALS_COLLECTION).debug(
                f"Appended {len(result.inserted_ids)} signals"
            )
        return await self.prune(identity_id, now)

    async def signals(self, identity_id: str) -> List[IntentSignal]:
        cursor = self.collection.find({"identity_id": identity_id}).sort("_id", 1)
        return [self._from_document(doc) async for doc in cursor]

    async def prune(self, identity_id: str, now: dt.datetime) -> List[IntentSignal]:
        result = await self.collection.delete_many({
            "identity_id": identity_id,
            "timestamp": {"$lte": self.cutoff(now)},
        })
        if result.deleted_count:
            logger.bind(identity_id=identity_id).debug(
                f"Pruned {result.deleted_count} expired signals"
            )
        return await self.signals(identity_id)

    async def remove(self, identity_id: str) -> None:
        await self.collection.delete_many({"identity_id": identity_id})

    async def identities(self) -> List[str]:
        return list(await self.collection.distinct("identity_id"))
