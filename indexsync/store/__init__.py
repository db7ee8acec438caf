"""Relational record stores consumed by the indexing adapters."""

from indexsync.store.base import RecordStore
from indexsync.store.sqlite_store import SQLiteRecordStore

__all__ = ["RecordStore", "SQLiteRecordStore"]
