"""Key-value stores: in-memory, local JSON file, shared realtime database."""

from memecoin_tracker.storage import keys
from memecoin_tracker.storage.base import KeyValueStore, OnChange, Unsubscribe
from memecoin_tracker.storage.in_memory import InMemoryKeyValueStore
from memecoin_tracker.storage.json_file import JsonFileKeyValueStore
from memecoin_tracker.storage.realtime_db import RealtimeDatabaseStore

__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "OnChange",
    "RealtimeDatabaseStore",
    "Unsubscribe",
    "keys",
]
