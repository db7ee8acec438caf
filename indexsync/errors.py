"""Exception taxonomy for the search index synchronization engine."""

from __future__ import annotations


class IndexSyncError(Exception):
    """Base class for every error raised by indexsync."""


class IncompatibleServerError(IndexSyncError):
    """The search server reports a version below the supported minimum."""

    def __init__(self, version: str, minimum: str) -> None:
        self.version = version
        self.minimum = minimum
        super().__init__(
            f"The version of Elasticsearch that you are running is out of date ({version}), "
            f"and no longer compatible. Please upgrade to version {minimum} or newer."
        )


class MappingLoadError(IndexSyncError):
    """No usable mapping definition file could be found or parsed."""


class MalformedDocumentError(IndexSyncError):
    """A document body is missing its identifier field."""


class UnknownIndexError(IndexSyncError, KeyError):
    """A logical index name was never registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No index registered under logical name '{name}'")

    def __str__(self) -> str:
        return self.args[0]


class MissingAdapterError(IndexSyncError):
    """No indexing adapter is registered for a record type."""

    def __init__(self, record_type: str) -> None:
        self.record_type = record_type
        super().__init__(f"No indexing adapter registered for '{record_type}'")


class ClientResponseError(IndexSyncError):
    """Wraps transport and server errors from the search client with context."""

    def __init__(
        self,
        operation: str,
        index: str | None,
        cause: Exception | None = None,
        message: str | None = None,
    ) -> None:
        self.operation = operation
        self.index = index
        target = f" on {index}" if index else ""
        detail = message if message is not None else str(cause)
        super().__init__(f"{operation}{target} failed: {detail}")
        if cause is not None:
            self.__cause__ = cause


class NotFoundError(ClientResponseError):
    """The targeted document or index does not exist."""
