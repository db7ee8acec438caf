"""Full-corpus (re)indexing."""

from __future__ import annotations

import logging
import time

from indexsync.adapters import GENRE_TAXONOMY_ID, PLACE_TAXONOMY_ID, SUBJECT_TAXONOMY_ID
from indexsync.engine import SearchEngine
from indexsync.models import PopulateOptions, PopulationReport, RecordType

logger = logging.getLogger(__name__)


class PopulationOrchestrator:
    """Drives the lifecycle manager and the indexing adapters over every type."""

    def __init__(self, engine: SearchEngine) -> None:
        self._engine = engine

    def populate(self, options: PopulateOptions | None = None) -> PopulationReport:
        """Define (or keep, with ``update``) each index and stream its records in.

        A failing type does not stop the pass: its error is recorded and the
        next type is attempted. Per-record errors are collected the same way.
        """
        options = options or PopulateOptions()
        engine = self._engine
        lifecycle = engine.lifecycle

        engine.initialize()
        mappings = lifecycle.load_and_normalize_mappings()
        lifecycle.load_diacritics_mapping()
        lifecycle.configure_filters()

        report = PopulationReport(indices=lifecycle.describe_indices(options))
        if not report.indices:
            return report

        indexing_ios = not options.excludes(RecordType.information_object.value)
        indexing_actors = not options.excludes(RecordType.actor.value)
        if indexing_ios or indexing_actors:
            taxonomies = [SUBJECT_TAXONOMY_ID, PLACE_TAXONOMY_ID]
            if indexing_ios:
                taxonomies.append(GENRE_TAXONOMY_ID)
            engine.publish_term_parent_list(taxonomies)

        if options.update:
            logger.info("Populating indices...")
        else:
            logger.info("Defining and populating indices...")

        start = time.perf_counter()
        try:
            for type_name, mapping in mappings.items():
                if options.excludes(type_name):
                    continue
                self._populate_type(type_name, mapping, options, report)

            try:
                engine.flush()
            except Exception as exc:
                report.errors.append(f"final flush: {exc}")
        finally:
            engine.term_parent_list = None

        report.elapsed = time.perf_counter() - start
        logger.info(
            "Indices populated with %s documents in %.2f seconds.", report.total, report.elapsed
        )
        if report.errors:
            logger.warning("The following errors have been encountered:")
            for error in report.errors:
                logger.warning("%s", error)
            logger.warning("Please, contact an administrator.")
        return report

    def _populate_type(
        self,
        type_name: str,
        mapping: dict,
        options: PopulateOptions,
        report: PopulationReport,
    ) -> None:
        engine = self._engine
        try:
            record_type = RecordType.from_name(type_name)
            adapter = engine.adapters.get(record_type)
            if adapter is None:
                report.errors.append(f"{type_name}: no indexing adapter registered")
                return
            engine.lifecycle.recreate_index(record_type.value, mapping, options.update)
            errors = adapter.populate(engine)
        except Exception as exc:
            logger.error("Populating %s failed: %s", type_name, exc)
            report.errors.append(f"{type_name}: {exc}")
            return

        report.errors.extend(errors)
        report.total += adapter.count
        logger.info("%s: %d document(s) indexed", type_name, adapter.count)
