"""
Repository Layer
Signal log persistence: in-memory by default, MongoDB when configured.
"""
from .base import SignalStore
from .memory import InMemorySignalStore
from .signals import MongoSignalStore
from .connection import db_manager, get_database, DatabaseManager

__all__ = [
    "SignalStore",
    "InMemorySignalStore",
    "MongoSignalStore",
    "db_manager",
    "get_database",
    "DatabaseManager",
]
