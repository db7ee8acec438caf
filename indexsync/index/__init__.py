"""Physical index handles, the logical-name registry and client construction."""

from indexsync.index.client import create_client
from indexsync.index.handle import PhysicalIndex, client_errors, physical_name
from indexsync.index.registry import IndexRegistry

__all__ = [
    "IndexRegistry",
    "PhysicalIndex",
    "client_errors",
    "create_client",
    "physical_name",
]
