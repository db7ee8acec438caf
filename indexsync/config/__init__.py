from .loader import load_config
from .models import (
    AnalysisConfig,
    BatchConfig,
    IndexConfig,
    IndexSyncConfig,
    MappingConfig,
    ServerConfig,
    StoreConfig,
    VersionCheckConfig,
)

__all__ = [
    "AnalysisConfig",
    "BatchConfig",
    "IndexConfig",
    "IndexSyncConfig",
    "MappingConfig",
    "ServerConfig",
    "StoreConfig",
    "VersionCheckConfig",
    "load_config",
]
