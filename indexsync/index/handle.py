"""Handle around one physical Elasticsearch index."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from elasticsearch import ApiError, Elasticsearch, TransportError
from elasticsearch import NotFoundError as ESNotFoundError
from elasticsearch.helpers import bulk

from indexsync.errors import ClientResponseError, NotFoundError
from indexsync.models import DocumentMutation, MutationOp, UpdateOutcome

logger = logging.getLogger(__name__)


def physical_name(prefix: str, logical_name: str) -> str:
    """Physical index name for a logical type: ``{prefix}_{lowercased name}``."""
    return f"{prefix}_{logical_name.lower()}"


@contextmanager
def client_errors(operation: str, index: str | None) -> Iterator[None]:
    """Translate client exceptions into the indexsync error taxonomy."""
    try:
        yield
    except ESNotFoundError as e:
        raise NotFoundError(operation, index, e) from e
    except (ApiError, TransportError) as e:
        raise ClientResponseError(operation, index, e) from e


class PhysicalIndex:
    """Operations against a single named index on the cluster."""

    def __init__(self, client: Elasticsearch, name: str) -> None:
        self._client = client
        self.name = name

    def __repr__(self) -> str:
        return f"PhysicalIndex({self.name!r})"

    # -- schema ----------------------------------------------------------------

    def exists(self) -> bool:
        with client_errors("exists", self.name):
            return bool(self._client.indices.exists(index=self.name))

    def create(self, settings: dict[str, Any], recreate: bool = True) -> None:
        """Create the index, dropping any existing one first when *recreate* is set."""
        if recreate and self.exists():
            with client_errors("delete index", self.name):
                self._client.indices.delete(index=self.name)
        with client_errors("create index", self.name):
            self._client.indices.create(index=self.name, settings=settings)

    def put_mapping(self, properties: dict[str, Any], params: dict[str, Any] | None = None) -> None:
        """Send field properties plus any top-level mapping parameters."""
        body: dict[str, Any] = {"properties": properties}
        for key, value in (params or {}).items():
            body[key] = value
        with client_errors("put mapping", self.name):
            self._client.indices.put_mapping(index=self.name, body=body)

    # -- documents -------------------------------------------------------------

    def add_documents(self, mutations: Sequence[DocumentMutation]) -> int:
        actions = [
            {"_op_type": "index", "_index": self.name, "_id": str(m.id), "_source": m.body}
            for m in mutations
        ]
        return self._bulk("bulk add", actions)

    def delete_documents(self, mutations: Sequence[DocumentMutation]) -> int:
        actions = [
            {"_op_type": "delete", "_index": self.name, "_id": str(m.id)} for m in mutations
        ]
        return self._bulk("bulk delete", actions)

    def index_document(self, mutation: DocumentMutation) -> None:
        with client_errors("index document", self.name):
            self._client.index(index=self.name, id=str(mutation.id), document=mutation.body)

    def update_document(self, doc_id: int | str, data: dict[str, Any]) -> UpdateOutcome:
        """Merge *data* into an existing document.

        Nested objects merge key by key; scalars and arrays are replaced.
        A missing document is reported as ``UpdateOutcome.not_found``.
        """
        try:
            with client_errors("update document", self.name):
                self._client.update(index=self.name, id=str(doc_id), doc=data)
        except NotFoundError:
            return UpdateOutcome.not_found
        return UpdateOutcome.updated

    def delete_by_id(self, doc_id: int | str) -> None:
        with client_errors("delete document", self.name):
            self._client.delete(index=self.name, id=str(doc_id))

    def refresh(self) -> None:
        with client_errors("refresh", self.name):
            self._client.indices.refresh(index=self.name)

    def forcemerge(self) -> None:
        with client_errors("forcemerge", self.name):
            self._client.indices.forcemerge(index=self.name)

    # -- helpers ---------------------------------------------------------------

    def _bulk(self, operation: str, actions: list[dict[str, Any]]) -> int:
        if not actions:
            return 0
        with client_errors(operation, self.name):
            success, errors = bulk(self._client, actions, raise_on_error=False)

        # Deleting a document that never reached the index is not a failure
        failures = [item for item in errors if not _is_missing_delete(item)]
        if failures:
            raise ClientResponseError(
                operation,
                self.name,
                message=f"{len(failures)} of {len(actions)} document(s) failed: {failures[0]}",
            )
        logger.debug("%s on %s: %d document(s)", operation, self.name, success)
        return success


def _is_missing_delete(item: dict[str, Any]) -> bool:
    info = item.get(MutationOp.delete.value)
    return info is not None and info.get("status") == 404
