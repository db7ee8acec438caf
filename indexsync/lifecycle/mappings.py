"""Mapping definition loading and shorthand normalization.

A mapping file is YAML with one entry per type, optionally wrapped in a
top-level ``mapping`` key::

    mapping:
      contactInformation:
        _attributes: {nested_only: true}
        properties:
          email: {type: keyword}
      repository:
        _attributes: {timestamp: true}
        _foreign_types: {contactInformations: contactInformation}
        dynamic: strict
        properties:
          identifier: {type: keyword}

Shorthand keys are expanded and then removed, leaving plain Elasticsearch
mapping bodies: ``properties`` plus top-level mapping parameters.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml

from indexsync.errors import MappingLoadError

logger = logging.getLogger(__name__)

SHORTHAND_KEYS = frozenset({"_attributes", "_foreign_types", "_partial_foreign_types", "_patterns"})

_TIMESTAMP_PROPERTIES = {
    "createdAt": {"type": "date"},
    "updatedAt": {"type": "date"},
}


def find_first(filename: str, search_dirs: Sequence[str | Path]) -> Path | None:
    """Return the first ``<dir>/<filename>`` that exists, in search order."""
    for directory in search_dirs:
        candidate = Path(directory).expanduser() / filename
        if candidate.is_file():
            return candidate
    return None


def _read_yaml(path: Path) -> Any:
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise MappingLoadError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise MappingLoadError(f"Could not read {path}: {e}") from e


def load_mapping_file(filename: str, search_dirs: Sequence[str | Path]) -> dict[str, Any]:
    """Load the first mapping file found. Raises MappingLoadError if there is none."""
    path = find_first(filename, search_dirs)
    if path is None:
        searched = ", ".join(str(d) for d in search_dirs)
        raise MappingLoadError(f"You must create a {filename} file (searched: {searched})")

    raw = _read_yaml(path)
    if isinstance(raw, dict) and isinstance(raw.get("mapping"), dict):
        raw = raw["mapping"]
    if not isinstance(raw, dict) or not raw:
        raise MappingLoadError(f"{path} does not define any mapping")
    logger.info("Loaded mappings from %s", path)
    return raw


def load_diacritics_mapping(filename: str, search_dirs: Sequence[str | Path]) -> Any:
    path = find_first(filename, search_dirs)
    if path is None:
        raise MappingLoadError(f"You must create a {filename} file.")
    return _read_yaml(path)


def normalize_mappings(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Expand shorthands and drop embed-only types.

    - ``_attributes.timestamp`` adds ``createdAt``/``updatedAt`` date fields.
    - ``_foreign_types`` embeds another type's properties as an object field.
    - ``_partial_foreign_types`` embeds an inline object definition.
    - Types flagged ``_attributes.nested_only`` are only available for
      embedding and do not get an index.
    """
    types = {name: copy.deepcopy(definition or {}) for name, definition in raw.items()}
    by_lower = {name.lower(): name for name in types}

    def lookup(type_name: str) -> dict[str, Any]:
        key = by_lower.get(str(type_name).lower())
        if key is None:
            raise MappingLoadError(f"Unknown foreign type '{type_name}'")
        return types[key]

    def expand(definition: dict[str, Any], trail: tuple[str, ...]) -> dict[str, Any]:
        result = {k: v for k, v in definition.items() if k not in SHORTHAND_KEYS}
        properties = dict(result.get("properties") or {})

        attributes = definition.get("_attributes") or {}
        if attributes.get("timestamp"):
            for field, spec in _TIMESTAMP_PROPERTIES.items():
                properties.setdefault(field, dict(spec))

        for field, type_name in (definition.get("_foreign_types") or {}).items():
            if str(type_name).lower() in trail:
                raise MappingLoadError(f"Circular foreign type reference: {type_name}")
            foreign = expand(lookup(type_name), trail + (str(type_name).lower(),))
            properties[field] = {"type": "object", "properties": foreign.get("properties", {})}

        for field, inline in (definition.get("_partial_foreign_types") or {}).items():
            embedded = expand(inline or {}, trail)
            embedded.setdefault("type", "object")
            properties[field] = embedded

        result["properties"] = {
            name: _strip_shorthands(spec) for name, spec in properties.items()
        }
        return result

    normalized: dict[str, dict[str, Any]] = {}
    for name, definition in types.items():
        if (definition.get("_attributes") or {}).get("nested_only"):
            continue
        normalized[name] = expand(definition, (name.lower(),))
    return normalized


def _strip_shorthands(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _strip_shorthands(v) for k, v in value.items() if k not in SHORTHAND_KEYS}
    if isinstance(value, list):
        return [_strip_shorthands(v) for v in value]
    return value
