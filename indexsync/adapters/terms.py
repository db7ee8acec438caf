"""Adapters that index related terms together with their ancestors."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from indexsync.adapters.base import RecordAdapter
from indexsync.models import Record, RecordType
from indexsync.store.base import RecordStore

if TYPE_CHECKING:
    from indexsync.engine import SearchEngine

SUBJECT_TAXONOMY_ID = 35
PLACE_TAXONOMY_ID = 42
GENRE_TAXONOMY_ID = 78


def term_ancestors(term_id: int, parents: dict[int, int | None]) -> list[int]:
    """Ancestors of *term_id*, nearest first, within the terms present in *parents*.

    The walk stops at the first parent outside the table, so taxonomy roots
    never show up as ancestors.
    """
    ancestors: list[int] = []
    seen = {term_id}
    parent = parents.get(term_id)
    while parent is not None and parent in parents and parent not in seen:
        ancestors.append(parent)
        seen.add(parent)
        parent = parents.get(parent)
    return ancestors


class TermAwareAdapter(RecordAdapter):
    """Adds ``termIds`` and ``termAncestorIds`` to each document.

    Ancestry comes from the term-parent table published on the engine for a
    population pass; outside one, it is read from the store per record.
    """

    def __init__(
        self,
        store: RecordStore,
        record_type: RecordType,
        taxonomies: Sequence[int] = (SUBJECT_TAXONOMY_ID, PLACE_TAXONOMY_ID),
    ) -> None:
        super().__init__(store, record_type)
        self.taxonomies = tuple(taxonomies)

    def serialize(self, record: Record, engine: SearchEngine | None = None) -> dict[str, Any]:
        body = super().serialize(record, engine)
        term_ids = self._store.related_term_ids(record.id)
        if not term_ids:
            return body

        parents = engine.term_parent_list if engine is not None else None
        if parents is None:
            parents = self._store.term_parent_list(self.taxonomies)

        ancestor_ids: set[int] = set()
        for term_id in term_ids:
            ancestor_ids.update(term_ancestors(term_id, parents))
        body["termIds"] = term_ids
        body["termAncestorIds"] = sorted(ancestor_ids)
        return body
