"""Document mutation API: the engine the rest of the application talks to."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from elasticsearch import Elasticsearch

from indexsync.adapters import RecordAdapter, build_adapters
from indexsync.batch import MutationBatchQueue
from indexsync.config.models import IndexSyncConfig
from indexsync.errors import (
    MalformedDocumentError,
    MissingAdapterError,
    NotFoundError,
    UnknownIndexError,
)
from indexsync.index.client import create_client
from indexsync.index.handle import PhysicalIndex, physical_name
from indexsync.index.registry import IndexRegistry
from indexsync.lifecycle.manager import IndexLifecycleManager
from indexsync.lifecycle.version import VersionCheckCache
from indexsync.models import (
    DocumentMutation,
    Indexable,
    MutationOp,
    RecordType,
    UpdateOptions,
    UpdateOutcome,
)
from indexsync.store.base import RecordStore

logger = logging.getLogger(__name__)


class SearchEngine:
    """Keeps the search indices in step with the system of record.

    One engine is the whole context of a process: client, index registry,
    batch queue, adapters and caches all hang off it. The server version is
    checked on construction; an incompatible server aborts construction
    before any index is touched.

    In batch mode, mutations are queued and only reach the cluster when the
    queue flushes, so always finish with ``close()`` or use the engine as a
    context manager.
    """

    def __init__(
        self,
        config: IndexSyncConfig | None = None,
        client: Elasticsearch | None = None,
        store: RecordStore | None = None,
        adapters: dict[RecordType, RecordAdapter] | None = None,
        version_cache: VersionCheckCache | None = None,
        initialize: bool = True,
    ) -> None:
        self.config = config or IndexSyncConfig()
        self.client = client if client is not None else create_client(self.config.server)
        self.store = store
        self.enabled = True

        if version_cache is None:
            version_cache = VersionCheckCache(
                ttl=self.config.version_check.cache_ttl,
                path=self.config.version_check.cache_path,
            )
        self.registry = IndexRegistry()
        self.lifecycle = IndexLifecycleManager(self.client, self.registry, self.config, version_cache)
        self.lifecycle.check_version()

        self.batch_mode = self.config.batch.enabled
        self.batch = MutationBatchQueue(
            self.registry,
            self.config.batch.size,
            enabled=self.batch_mode,
            on_flush_error=self.config.batch.on_flush_error,
        )

        if adapters is None:
            adapters = build_adapters(store) if store is not None else {}
        self.adapters = adapters
        # term id -> parent id, published for the duration of a population pass
        self.term_parent_list: dict[int, int | None] | None = None

        self._initialized = False
        if initialize:
            self.initialize()

    def initialize(self) -> None:
        """Register a physical index handle for every indexed record type."""
        if self._initialized:
            return
        prefix = self.config.index.name
        for record_type in RecordType.indexed():
            name = record_type.value
            self.registry.register(name, PhysicalIndex(self.client, physical_name(prefix, name)))
        self._initialized = True

    # -- administrative toggle -------------------------------------------------

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    # -- mutations -------------------------------------------------------------

    def add_document(self, body: dict[str, Any], index_name: str | RecordType) -> None:
        """Index a full document. *body* must carry its identifier under ``id``."""
        if not self.enabled:
            return
        if body.get("id") is None:
            raise MalformedDocumentError("Failed to parse id field.")

        name = _index_name(index_name)
        data = dict(body)
        doc_id = data.pop("id")
        mutation = DocumentMutation(id=doc_id, body=data, op=MutationOp.add)

        if self.batch_mode:
            self.registry.resolve(name)
            self.batch.enqueue_add(name, mutation)
        else:
            self.registry.index_document(name, mutation)

    def partial_update(self, obj: Indexable, data: dict[str, Any]) -> None:
        """Merge *data* into the stored document for *obj*.

        Nested objects merge key by key while scalars and arrays are
        replaced. Fields cannot be removed this way; set them to None
        instead. A missing document is created from the full record.
        """
        if not self.enabled or obj.record_type is RecordType.user:
            return

        outcome = self.registry.update_document(obj.record_type.value, obj.id, data)
        if outcome is UpdateOutcome.updated:
            return
        if obj.record_type not in self.adapters:
            logger.debug("No adapter for %s, cannot create %s", obj.record_type.value, obj.id)
            return
        logger.debug("%s %s not in index, creating it", obj.record_type.value, obj.id)
        self.update(obj)

    def partial_update_by_id(
        self, type_name: str | RecordType, record_id: int, data: dict[str, Any]
    ) -> None:
        """Like partial_update, driven by a type name and primary key."""
        if not self.enabled:
            return
        record_type = _record_type(type_name)
        if record_type is RecordType.user:
            return

        outcome = self.registry.update_document(record_type.value, record_id, data)
        if outcome is UpdateOutcome.updated:
            return

        adapter = self.adapters.get(record_type)
        if adapter is None:
            logger.debug("No adapter for %s, cannot create %s", record_type.value, record_id)
            return
        record = adapter.load(record_id)
        if record is None:
            logger.debug("%s %s not found in store", record_type.value, record_id)
            return
        self.add_document(adapter.serialize(record, self), record_type.value)

    def delete(self, obj: Indexable) -> None:
        if not self.enabled or obj.record_type is RecordType.user:
            return

        name = obj.record_type.value
        if self.batch_mode:
            # The document may still be waiting in the add queue, so the
            # delete is queued too and sent after the additions.
            self.registry.resolve(name)
            self.batch.enqueue_delete(name, DocumentMutation(id=obj.id, op=MutationOp.delete))
            return

        try:
            self.registry.delete_by_id(name, obj.id)
        except NotFoundError:
            logger.debug("%s %s already absent from index", name, obj.id)

    def update(self, obj: Indexable, options: UpdateOptions | dict[str, Any] | None = None) -> None:
        """Re-index *obj* through its type's adapter.

        Only information objects receive *options*.
        """
        if not self.enabled or obj.record_type is RecordType.user:
            return

        adapter = self.adapters.get(obj.record_type)
        if adapter is None:
            raise MissingAdapterError(obj.record_type.value)

        if obj.record_type is RecordType.information_object:
            if isinstance(options, dict):
                options = UpdateOptions(**options)
            adapter.update(self, obj, options)
            return

        adapter.update(self, obj)

    # -- housekeeping ----------------------------------------------------------

    def publish_term_parent_list(self, taxonomy_ids: Iterable[int]) -> None:
        """Load the term id -> parent id table adapters use to resolve ancestry."""
        if self.store is None:
            return
        self.term_parent_list = self.store.term_parent_list(taxonomy_ids)
        logger.debug("Published %d term parent entries", len(self.term_parent_list))

    def flush(self) -> None:
        self.batch.flush()

    def optimize(self) -> None:
        """Force-merge every registered index."""
        for _, index in self.registry:
            index.forcemerge()

    def close(self) -> None:
        """Send whatever is still queued. Call once when done with the engine."""
        if not self.enabled:
            return
        self.batch.deactivate()

    def __enter__(self) -> SearchEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _index_name(index_name: str | RecordType) -> str:
    return index_name.value if isinstance(index_name, RecordType) else index_name


def _record_type(type_name: str | RecordType) -> RecordType:
    if isinstance(type_name, RecordType):
        return type_name
    try:
        return RecordType.from_name(type_name)
    except ValueError:
        raise UnknownIndexError(type_name) from None
