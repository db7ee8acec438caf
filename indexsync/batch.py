"""Batch queue that groups document mutations into bulk requests."""

from __future__ import annotations

import logging
from typing import Literal

from indexsync.index.registry import IndexRegistry
from indexsync.models import DocumentMutation

logger = logging.getLogger(__name__)

FlushErrorPolicy = Literal["discard", "retain"]


class MutationBatchQueue:
    """Pending additions and deletions for the one active index.

    Additions are always sent before deletions: a delete queued for a
    document that is still waiting in the add queue must find it in the
    index. Switching to another index flushes the current one first.

    When a bulk request fails, *on_flush_error* decides what happens to the
    failed segment: ``discard`` drops it (at-most-once delivery), ``retain``
    keeps it queued so the next flush sends it again. The error is re-raised
    either way.
    """

    def __init__(
        self,
        registry: IndexRegistry,
        batch_size: int,
        enabled: bool = True,
        on_flush_error: FlushErrorPolicy = "discard",
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._registry = registry
        self.batch_size = batch_size
        self.enabled = enabled
        self.on_flush_error = on_flush_error
        self.active_index: str | None = None
        self._adds: list[DocumentMutation] = []
        self._deletes: list[DocumentMutation] = []
        self.flush_count = 0

    @property
    def pending_adds(self) -> list[DocumentMutation]:
        return list(self._adds)

    @property
    def pending_deletes(self) -> list[DocumentMutation]:
        return list(self._deletes)

    def enqueue_add(self, index_name: str, mutation: DocumentMutation) -> None:
        self._activate(index_name)
        self._adds.append(mutation)
        if len(self._adds) >= self.batch_size:
            self.flush()

    def enqueue_delete(self, index_name: str, mutation: DocumentMutation) -> None:
        self._activate(index_name)
        self._deletes.append(mutation)
        if len(self._deletes) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        """Send pending additions, then deletions, then refresh the index."""
        if not self.enabled or self.active_index is None:
            return

        index_name = self.active_index
        if self._adds:
            try:
                self._registry.add_documents(index_name, list(self._adds))
            except Exception:
                self._on_failure(self._adds, "additions", index_name)
                raise
            self._adds = []

        if self._deletes:
            try:
                self._registry.delete_documents(index_name, list(self._deletes))
            except Exception:
                self._on_failure(self._deletes, "deletions", index_name)
                raise
            self._deletes = []

        self._registry.refresh(index_name)
        self.flush_count += 1

    def deactivate(self) -> None:
        """Final flush at shutdown."""
        self.flush()

    # -- helpers ---------------------------------------------------------------

    def _activate(self, index_name: str) -> None:
        if self.active_index is None:
            self.active_index = index_name
        elif self.active_index != index_name:
            self.flush()
            self.active_index = index_name

    def _on_failure(self, segment: list[DocumentMutation], label: str, index_name: str) -> None:
        if self.on_flush_error == "retain":
            logger.warning(
                "Bulk %s failed on %s; keeping %d document(s) queued",
                label, index_name, len(segment),
            )
            return
        logger.warning(
            "Bulk %s failed on %s; discarding %d document(s)",
            label, index_name, len(segment),
        )
        segment.clear()
