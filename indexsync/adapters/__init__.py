"""Indexing adapters, one per record type, resolved through an explicit map."""

from indexsync.adapters.base import RecordAdapter
from indexsync.adapters.information_object import InformationObjectAdapter
from indexsync.adapters.terms import (
    GENRE_TAXONOMY_ID,
    PLACE_TAXONOMY_ID,
    SUBJECT_TAXONOMY_ID,
    TermAwareAdapter,
    term_ancestors,
)
from indexsync.models import RecordType
from indexsync.store.base import RecordStore


def build_adapters(store: RecordStore) -> dict[RecordType, RecordAdapter]:
    """Create the adapter for every indexed record type.

    The reserved ``user`` kind has no adapter and is never indexed.
    """
    return {
        RecordType.aip: RecordAdapter(store, RecordType.aip),
        RecordType.term: RecordAdapter(store, RecordType.term),
        RecordType.actor: TermAwareAdapter(store, RecordType.actor),
        RecordType.accession: RecordAdapter(store, RecordType.accession),
        RecordType.repository: RecordAdapter(store, RecordType.repository),
        RecordType.function_object: RecordAdapter(store, RecordType.function_object),
        RecordType.information_object: InformationObjectAdapter(store),
    }


__all__ = [
    "GENRE_TAXONOMY_ID",
    "InformationObjectAdapter",
    "PLACE_TAXONOMY_ID",
    "RecordAdapter",
    "SUBJECT_TAXONOMY_ID",
    "TermAwareAdapter",
    "build_adapters",
    "term_ancestors",
]
