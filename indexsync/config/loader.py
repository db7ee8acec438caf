"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import IndexSyncConfig


def load_config(cli_path: str | None = None) -> IndexSyncConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults.

    Candidates are the ``--config`` path, ``./indexsync.yaml`` and
    ``~/.indexsync/config.yaml``. The first existing, non-empty file wins and
    is not merged with the others; its relative paths (mapping search dirs,
    store and version cache) stay relative to the working directory.
    """
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./indexsync.yaml"),
        Path.home() / ".indexsync" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return IndexSyncConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return IndexSyncConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `indexsync config init`
DEFAULT_CONFIG_TEMPLATE = """\
# indexsync.yaml

# Search cluster
server:
  hosts: ["http://localhost:9200"]
  # username: "elastic"
  password_env: "INDEXSYNC_ES_PASSWORD"
  verify_certs: true
  request_timeout: 30

# Physical index naming: {name}_{lowercased type}
index:
  name: "atom"
  # configuration: {}          # shared settings block (shards, analysis, ...)

# Batch mode
batch:
  enabled: false
  size: 500
  on_flush_error: "discard"    # discard | retain

# Analyzer augmentation
analysis:
  markdown_enabled: true
  diacritics: false

# Mapping definitions (first mapping.yml found wins)
mappings:
  search_dirs: ["./config", "~/.indexsync"]
  diacritics_dirs: ["./uploads"]

# Relational store used by `indexsync populate`
store:
  path: ".indexsync/records.db"

# Server version contract
version_check:
  min_server_version: "7.10.0"
  cache_ttl: 3600
  cache_path: ".indexsync/version_ok"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
