"""Base indexing adapter: turns store records into search documents."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from indexsync.models import Indexable, Record, RecordType
from indexsync.store.base import RecordStore

if TYPE_CHECKING:
    from indexsync.engine import SearchEngine

logger = logging.getLogger(__name__)


class RecordAdapter:
    """Serializes, streams and re-derives the records of one type."""

    def __init__(self, store: RecordStore, record_type: RecordType) -> None:
        self._store = store
        self.record_type = record_type
        self.count = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.record_type.value!r})"

    @property
    def index_name(self) -> str:
        return self.record_type.value

    def load(self, record_id: int) -> Record | None:
        """Re-derive a single record from the store by primary key."""
        return self._store.get(self.record_type, record_id)

    def serialize(self, record: Record, engine: SearchEngine | None = None) -> dict[str, Any]:
        body: dict[str, Any] = dict(record.data)
        body["id"] = record.id
        if record.parent_id is not None:
            body["parentId"] = record.parent_id
        return body

    def update(self, engine: SearchEngine, obj: Indexable) -> None:
        """Re-index the complete document for *obj*."""
        record = self._as_record(obj)
        if record is None:
            logger.warning("%s %s not found in store, skipping update", self.index_name, obj.id)
            return
        engine.add_document(self.serialize(record, engine), self.index_name)

    def populate(self, engine: SearchEngine) -> list[str]:
        """Stream every record of this type into the index.

        Per-record failures are collected and returned rather than raised.
        """
        self.count = 0
        errors: list[str] = []
        for record in self._store.iter_records(self.record_type):
            try:
                engine.add_document(self.serialize(record, engine), self.index_name)
            except Exception as exc:
                logger.debug("Failed to index %s %s", self.index_name, record.id, exc_info=True)
                errors.append(f"{self.index_name} {record.id}: {exc}")
                continue
            self.count += 1
        return errors

    def _as_record(self, obj: Indexable) -> Record | None:
        if isinstance(obj, Record):
            return obj
        return self.load(obj.id)
