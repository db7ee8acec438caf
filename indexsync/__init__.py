"""indexsync - keeps Elasticsearch indices synchronized with an archival record store."""

from indexsync.batch import MutationBatchQueue
from indexsync.config import IndexSyncConfig, load_config
from indexsync.engine import SearchEngine
from indexsync.errors import (
    ClientResponseError,
    IncompatibleServerError,
    IndexSyncError,
    MalformedDocumentError,
    MissingAdapterError,
    MappingLoadError,
    NotFoundError,
    UnknownIndexError,
)
from indexsync.index import IndexRegistry, PhysicalIndex
from indexsync.lifecycle import IndexLifecycleManager, VersionCheckCache
from indexsync.models import (
    DocumentMutation,
    MutationOp,
    PopulateOptions,
    PopulationReport,
    Record,
    RecordType,
    UpdateOptions,
    UpdateOutcome,
)
from indexsync.population import PopulationOrchestrator

__version__ = "0.1.0"

__all__ = [
    "ClientResponseError",
    "DocumentMutation",
    "IncompatibleServerError",
    "IndexLifecycleManager",
    "IndexRegistry",
    "IndexSyncConfig",
    "IndexSyncError",
    "MalformedDocumentError",
    "MappingLoadError",
    "MissingAdapterError",
    "MutationBatchQueue",
    "MutationOp",
    "NotFoundError",
    "PhysicalIndex",
    "PopulateOptions",
    "PopulationOrchestrator",
    "PopulationReport",
    "Record",
    "RecordType",
    "SearchEngine",
    "UnknownIndexError",
    "UpdateOptions",
    "UpdateOutcome",
    "VersionCheckCache",
    "load_config",
]
