"""Information object adapter: the only adapter whose update takes options."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from indexsync.adapters.terms import (
    GENRE_TAXONOMY_ID,
    PLACE_TAXONOMY_ID,
    SUBJECT_TAXONOMY_ID,
    TermAwareAdapter,
)
from indexsync.models import Indexable, RecordType, UpdateOptions
from indexsync.store.base import RecordStore

if TYPE_CHECKING:
    from indexsync.engine import SearchEngine

logger = logging.getLogger(__name__)


class InformationObjectAdapter(TermAwareAdapter):
    def __init__(self, store: RecordStore) -> None:
        super().__init__(
            store,
            RecordType.information_object,
            taxonomies=(SUBJECT_TAXONOMY_ID, PLACE_TAXONOMY_ID, GENRE_TAXONOMY_ID),
        )

    def update(
        self,
        engine: SearchEngine,
        obj: Indexable,
        options: UpdateOptions | None = None,
    ) -> None:
        """Re-index *obj* and, with ``update_descendants``, its whole subtree."""
        super().update(engine, obj)
        if options is None or not options.update_descendants:
            return

        pending = [obj.id]
        visited = {obj.id}
        updated = 0
        while pending:
            parent_id = pending.pop()
            for child in self._store.children(parent_id):
                if child.record_type is not self.record_type or child.id in visited:
                    continue
                visited.add(child.id)
                engine.add_document(self.serialize(child, engine), self.index_name)
                pending.append(child.id)
                updated += 1
        logger.debug("Updated %d descendant(s) of %s %s", updated, self.index_name, obj.id)
