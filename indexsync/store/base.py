"""Record store interface: the relational system of record, as seen by indexing."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Protocol, runtime_checkable

from indexsync.models import Record, RecordType


@runtime_checkable
class RecordStore(Protocol):
    """Read access to the rows that back search documents."""

    def iter_records(self, record_type: RecordType) -> Iterator[Record]: ...

    def get(self, record_type: RecordType, record_id: int) -> Record | None: ...

    def count(self, record_type: RecordType) -> int: ...

    def children(self, record_id: int) -> list[Record]: ...

    def related_term_ids(self, object_id: int) -> list[int]: ...

    def term_parent_list(self, taxonomy_ids: Iterable[int]) -> dict[int, int | None]: ...
