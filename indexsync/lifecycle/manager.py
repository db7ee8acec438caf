"""Index lifecycle: version contract, index (re)creation, mappings and analysis."""

from __future__ import annotations

import copy
import logging
from typing import Any

from elasticsearch import Elasticsearch

from indexsync.config.models import IndexSyncConfig
from indexsync.index.handle import physical_name
from indexsync.index.registry import IndexRegistry
from indexsync.lifecycle.mappings import (
    load_diacritics_mapping,
    load_mapping_file,
    normalize_mappings,
)
from indexsync.lifecycle.version import VersionCheckCache, check_version
from indexsync.models import PopulateOptions

logger = logging.getLogger(__name__)

STRIP_MARKDOWN_FILTER = "strip_md"
DIACRITICS_FILTER = "diacritics_lowercase"


class IndexLifecycleManager:
    """Owns the shared settings block and the normalized mapping definitions."""

    def __init__(
        self,
        client: Elasticsearch,
        registry: IndexRegistry,
        config: IndexSyncConfig,
        version_cache: VersionCheckCache,
    ) -> None:
        self._client = client
        self._registry = registry
        self._config = config
        self.version_cache = version_cache
        self.settings: dict[str, Any] = copy.deepcopy(config.index.configuration)
        self._mappings: dict[str, dict[str, Any]] | None = None

    # -- server version --------------------------------------------------------

    def check_version(self) -> None:
        check_version(
            self._client,
            self._config.version_check.min_server_version,
            self.version_cache,
        )

    # -- indices ---------------------------------------------------------------

    def recreate_index(
        self,
        name: str,
        mapping: dict[str, Any],
        update_only: bool = False,
        settings: dict[str, Any] | None = None,
    ) -> bool:
        """(Re)create an index and send its mapping.

        With *update_only*, an index that already exists is left untouched.
        Every key of *mapping* other than ``properties`` is sent as a
        top-level mapping parameter. Returns True if the index was created.
        """
        index = self._registry.resolve(name)
        if update_only and index.exists():
            logger.debug("Index %s exists, keeping its mapping", index.name)
            return False

        index.create(settings if settings is not None else self.settings, recreate=True)

        params = {k: v for k, v in mapping.items() if k != "properties"}
        logger.info("Defining mapping for index %s...", index.name)
        index.put_mapping(mapping.get("properties", {}), params)
        return True

    def describe_indices(self, options: PopulateOptions) -> list[str]:
        """Log and return the physical indices a population pass will touch."""
        mappings = self.load_and_normalize_mappings()
        verb = "updated" if options.update else "created"
        logger.info("Indices that will be %s:", verb)

        names = []
        for type_name in mappings:
            if options.excludes(type_name):
                continue
            names.append(physical_name(self._config.index.name, type_name))
            logger.info(" - %s", names[-1])
        if not names:
            logger.info("   None")
        return names

    # -- mappings and analysis -------------------------------------------------

    def load_and_normalize_mappings(self) -> dict[str, dict[str, Any]]:
        """Normalized mapping definitions, loaded once for this engine's lifetime."""
        if self._mappings is None:
            raw = load_mapping_file(
                self._config.mappings.filename,
                self._config.mappings.search_dirs,
            )
            self._mappings = normalize_mappings(raw)
        return self._mappings

    def load_diacritics_mapping(self) -> None:
        """Install the diacritics char filter when diacritics support is enabled."""
        if not self._config.analysis.diacritics:
            return
        definition = load_diacritics_mapping(
            self._config.mappings.diacritics_filename,
            self._config.mappings.diacritics_dirs,
        )
        analysis = self.settings.setdefault("analysis", {})
        analysis.setdefault("char_filter", {})[DIACRITICS_FILTER] = definition

    def configure_filters(self) -> None:
        """Adjust every analyzer's char_filter chain to the enabled features.

        Only applies when markdown support is on and ``strip_md`` is defined:
        ``strip_md`` is then prepended, and ``diacritics_lowercase`` appended
        when diacritics are on. Otherwise the chains are left untouched.
        """
        analysis = self.settings.get("analysis") or {}
        char_filters = analysis.get("char_filter") or {}
        if not (self._config.analysis.markdown_enabled and STRIP_MARKDOWN_FILTER in char_filters):
            return
        diacritics = self._config.analysis.diacritics

        for analyzer in (analysis.get("analyzer") or {}).values():
            chain = list(analyzer.get("char_filter") or [])
            if STRIP_MARKDOWN_FILTER not in chain:
                chain.insert(0, STRIP_MARKDOWN_FILTER)
            if diacritics and DIACRITICS_FILTER not in chain:
                chain.append(DIACRITICS_FILTER)
            analyzer["char_filter"] = chain
