"""Index lifecycle: server version checks, mappings and index (re)creation."""

from indexsync.lifecycle.manager import (
    DIACRITICS_FILTER,
    STRIP_MARKDOWN_FILTER,
    IndexLifecycleManager,
)
from indexsync.lifecycle.mappings import (
    find_first,
    load_diacritics_mapping,
    load_mapping_file,
    normalize_mappings,
)
from indexsync.lifecycle.version import (
    VersionCheckCache,
    check_version,
    fetch_server_version,
    parse_version,
    version_at_least,
)

__all__ = [
    "DIACRITICS_FILTER",
    "IndexLifecycleManager",
    "STRIP_MARKDOWN_FILTER",
    "VersionCheckCache",
    "check_version",
    "fetch_server_version",
    "find_first",
    "load_diacritics_mapping",
    "load_mapping_file",
    "normalize_mappings",
    "parse_version",
    "version_at_least",
]
