"""
Storage Module

Versioned key-value stores backing the funding request records and
sequence counters.
"""

from .kv_store import InMemoryKeyValueStore, KeyValueStore, VersionedValue
from .sql_store import SqlKeyValueStore

__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqlKeyValueStore",
    "VersionedValue",
]
