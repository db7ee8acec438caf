"""Shared models: record types, document mutations and population results."""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RecordType(str, Enum):
    """Logical index names, one per indexed record type.

    ``user`` is a reserved kind that is never indexed.
    """

    aip = "aip"
    term = "term"
    actor = "actor"
    accession = "accession"
    repository = "repository"
    function_object = "functionObject"
    information_object = "informationObject"
    user = "user"

    @classmethod
    def indexed(cls) -> list[RecordType]:
        """Every record type that owns a physical index."""
        return [t for t in cls if t is not cls.user]

    @classmethod
    def from_name(cls, name: str) -> RecordType:
        """Resolve a logical name, case-insensitively."""
        lowered = name.lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        raise ValueError(f"Unknown record type: {name!r}")


class MutationOp(str, Enum):
    add = "add"
    delete = "delete"
    update = "update"


class DocumentMutation(BaseModel):
    """One pending change to a search document, keyed by its primary key."""

    model_config = ConfigDict(frozen=True)

    id: int | str
    body: dict[str, Any] | None = None
    op: MutationOp = MutationOp.add

    @model_validator(mode="after")
    def _check_body(self) -> DocumentMutation:
        if self.body is None and self.op is not MutationOp.delete:
            raise ValueError(f"{self.op.value} mutation requires a body")
        if self.body is not None and "id" in self.body:
            raise ValueError("document id must not be duplicated inside the body")
        return self


class UpdateOutcome(str, Enum):
    """Result of a partial update against the index."""

    updated = "updated"
    not_found = "not_found"


@runtime_checkable
class Indexable(Protocol):
    """Anything the engine can index: a primary key and a record type."""

    id: int
    record_type: RecordType


class Record(BaseModel):
    """A row from the system of record, as handed to indexing adapters."""

    id: int
    record_type: RecordType
    parent_id: int | None = None
    taxonomy_id: int | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class UpdateOptions(BaseModel):
    """Extra options honoured only by information object updates."""

    update_descendants: bool = False


class PopulateOptions(BaseModel):
    exclude_types: list[str] = Field(default_factory=list)
    update: bool = False

    def excludes(self, name: str) -> bool:
        return name.lower() in {t.lower() for t in self.exclude_types}


class PopulationReport(BaseModel):
    """Outcome of a full population pass."""

    total: int = 0
    elapsed: float = 0.0
    indices: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
