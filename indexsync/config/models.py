from pydantic import BaseModel, Field
from typing import Any, Literal


def _default_index_configuration() -> dict[str, Any]:
    return {
        "number_of_shards": 4,
        "number_of_replicas": 1,
        "index.mapping.total_fields.limit": 3000,
        "index.max_result_window": 10000,
        "analysis": {
            "analyzer": {
                "default": {
                    "tokenizer": "standard",
                    "filter": ["lowercase", "preserved_asciifolding"],
                    "char_filter": [],
                },
                "autocomplete": {
                    "tokenizer": "whitespace",
                    "filter": ["lowercase", "engram", "preserved_asciifolding"],
                    "char_filter": [],
                },
            },
            "filter": {
                "preserved_asciifolding": {"type": "asciifolding", "preserve_original": True},
                "engram": {"type": "edge_ngram", "min_gram": 3, "max_gram": 10},
            },
            "char_filter": {
                "strip_md": {
                    "type": "pattern_replace",
                    "pattern": "[\\*_#!\\[\\]\\(\\)\\->`\\+\\\\~:\\|\\^=]",
                    "replacement": " ",
                },
            },
        },
    }


class ServerConfig(BaseModel):
    hosts: list[str] = Field(default_factory=lambda: ["http://localhost:9200"])
    username: str | None = None
    password_env: str = "INDEXSYNC_ES_PASSWORD"
    api_key_env: str | None = None
    verify_certs: bool = True
    request_timeout: float = Field(default=30.0, gt=0)


class IndexConfig(BaseModel):
    name: str = Field(default="atom", min_length=1)
    configuration: dict[str, Any] = Field(default_factory=_default_index_configuration)


class BatchConfig(BaseModel):
    enabled: bool = False
    size: int = Field(default=500, gt=0)
    on_flush_error: Literal["discard", "retain"] = "discard"


class AnalysisConfig(BaseModel):
    markdown_enabled: bool = True
    diacritics: bool = False


class MappingConfig(BaseModel):
    search_dirs: list[str] = Field(default_factory=lambda: ["./config", "~/.indexsync"])
    filename: str = "mapping.yml"
    diacritics_dirs: list[str] = Field(default_factory=lambda: ["./uploads"])
    diacritics_filename: str = "diacritics_mapping.yml"


class StoreConfig(BaseModel):
    path: str = ".indexsync/records.db"


class VersionCheckConfig(BaseModel):
    min_server_version: str = "7.10.0"
    cache_ttl: int = Field(default=3600, ge=0)
    cache_path: str | None = ".indexsync/version_ok"


class IndexSyncConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    mappings: MappingConfig = Field(default_factory=MappingConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    version_check: VersionCheckConfig = Field(default_factory=VersionCheckConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
