"""Registry of physical index handles keyed by logical type name."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

from indexsync.errors import UnknownIndexError
from indexsync.index.handle import PhysicalIndex
from indexsync.models import DocumentMutation, UpdateOutcome


class IndexRegistry:
    """Maps logical index names to their physical handles.

    Built once when the engine starts; other components only ever refer to
    an index by its logical name.
    """

    def __init__(self) -> None:
        self._indices: dict[str, PhysicalIndex] = {}

    def register(self, name: str, handle: PhysicalIndex) -> None:
        self._indices[name] = handle

    def resolve(self, name: str) -> PhysicalIndex:
        try:
            return self._indices[name]
        except KeyError:
            raise UnknownIndexError(name) from None

    def names(self) -> list[str]:
        return list(self._indices)

    def __contains__(self, name: object) -> bool:
        return name in self._indices

    def __iter__(self) -> Iterator[tuple[str, PhysicalIndex]]:
        return iter(self._indices.items())

    def __len__(self) -> int:
        return len(self._indices)

    # -- passthroughs ----------------------------------------------------------

    def add_documents(self, name: str, mutations: Sequence[DocumentMutation]) -> int:
        return self.resolve(name).add_documents(mutations)

    def delete_documents(self, name: str, mutations: Sequence[DocumentMutation]) -> int:
        return self.resolve(name).delete_documents(mutations)

    def index_document(self, name: str, mutation: DocumentMutation) -> None:
        self.resolve(name).index_document(mutation)

    def update_document(self, name: str, doc_id: int | str, data: dict[str, Any]) -> UpdateOutcome:
        return self.resolve(name).update_document(doc_id, data)

    def delete_by_id(self, name: str, doc_id: int | str) -> None:
        self.resolve(name).delete_by_id(doc_id)

    def refresh(self, name: str) -> None:
        """Make recent writes to *name* visible to searches."""
        self.resolve(name).refresh()
