"""Tests for SearchEngine: the document mutation API."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from indexsync.adapters import RecordAdapter
from indexsync.errors import (
    ClientResponseError,
    IncompatibleServerError,
    MalformedDocumentError,
    MissingAdapterError,
    UnknownIndexError,
)
from indexsync.lifecycle.version import VersionCheckCache
from indexsync.models import Record, RecordType, UpdateOptions


def _term(record_id: int = 1, **data) -> Record:
    return Record(id=record_id, record_type=RecordType.term, data=data or {"name": "Optics"})


def _user(record_id: int = 99) -> SimpleNamespace:
    return SimpleNamespace(id=record_id, record_type=RecordType.user)


def _network_calls(client: MagicMock) -> list[str]:
    """Names of client calls made after construction, excluding the version check."""
    return [c[0] for c in client.mock_calls if c[0] != "info"]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_registers_every_indexed_type(self, make_engine, sample_config):
        engine = make_engine(sample_config)
        assert set(engine.registry.names()) == {t.value for t in RecordType.indexed()}
        assert engine.registry.resolve("informationObject").name == "atom_informationobject"
        assert "user" not in engine.registry

    def test_initialize_false_skips_registry(self, make_engine, sample_config):
        engine = make_engine(sample_config, initialize=False)
        assert len(engine.registry) == 0
        engine.initialize()
        assert len(engine.registry) == len(RecordType.indexed())

    def test_incompatible_server_aborts(self, make_engine, sample_config, es_client):
        es_client.info.return_value = {"version": {"number": "6.8.0"}}
        with pytest.raises(IncompatibleServerError) as exc_info:
            make_engine(sample_config)
        assert exc_info.value.version == "6.8.0"
        assert _network_calls(es_client) == []

    def test_version_checked_once_within_cache_window(self, make_engine, sample_config, es_client):
        cache = VersionCheckCache(ttl=3600)
        make_engine(sample_config, version_cache=cache)
        make_engine(sample_config, version_cache=cache)
        assert es_client.info.call_count == 1


# ---------------------------------------------------------------------------
# add_document
# ---------------------------------------------------------------------------


class TestAddDocument:
    def test_missing_id_fails_without_network(self, make_engine, sample_config, es_client, mock_bulk):
        engine = make_engine(sample_config)
        with pytest.raises(MalformedDocumentError):
            engine.add_document({"name": "no id"}, "term")
        assert _network_calls(es_client) == []
        mock_bulk.assert_not_called()

    def test_null_id_fails_without_network(self, make_engine, batch_config, es_client, mock_bulk):
        engine = make_engine(batch_config)
        with pytest.raises(MalformedDocumentError):
            engine.add_document({"id": None, "name": "x"}, "term")
        assert _network_calls(es_client) == []
        assert engine.batch.pending_adds == []

    def test_id_moved_out_of_body(self, make_engine, sample_config, es_client):
        engine = make_engine(sample_config)
        body = {"id": 7, "name": "Optics"}
        engine.add_document(body, "term")
        es_client.index.assert_called_once_with(index="atom_term", id="7", document={"name": "Optics"})
        assert body == {"id": 7, "name": "Optics"}

    def test_accepts_record_type(self, make_engine, sample_config, es_client):
        make_engine(sample_config).add_document({"id": 1}, RecordType.actor)
        assert es_client.index.call_args.kwargs["index"] == "atom_actor"

    def test_unknown_index(self, make_engine, sample_config):
        with pytest.raises(UnknownIndexError):
            make_engine(sample_config).add_document({"id": 1}, "widget")

    def test_batch_mode_queues(self, make_engine, batch_config, es_client, mock_bulk):
        engine = make_engine(batch_config)
        engine.add_document({"id": 1, "name": "a"}, "term")
        es_client.index.assert_not_called()
        mock_bulk.assert_not_called()
        assert [m.id for m in engine.batch.pending_adds] == [1]

    def test_batch_mode_unknown_index_rejected_before_queueing(self, make_engine, batch_config):
        engine = make_engine(batch_config)
        with pytest.raises(UnknownIndexError):
            engine.add_document({"id": 1}, "widget")
        assert engine.batch.active_index is None

    def test_disabled_engine_ignores(self, make_engine, sample_config, es_client):
        engine = make_engine(sample_config)
        engine.disable()
        engine.add_document({"no": "id"}, "term")
        assert _network_calls(es_client) == []
        engine.enable()
        engine.add_document({"id": 1}, "term")
        es_client.index.assert_called_once()


# ---------------------------------------------------------------------------
# partial_update
# ---------------------------------------------------------------------------


class TestPartialUpdate:
    def test_existing_document_merges_only(self, make_engine, sample_config, es_client, record_store):
        engine = make_engine(sample_config, store=record_store)
        engine.partial_update(_term(1), {"name": "Optik"})
        es_client.update.assert_called_once_with(index="atom_term", id="1", doc={"name": "Optik"})
        es_client.index.assert_not_called()

    def test_missing_document_created_once(
        self, make_engine, sample_config, es_client, record_store, not_found_error
    ):
        es_client.update.side_effect = not_found_error
        engine = make_engine(sample_config, store=record_store)
        engine.partial_update(_term(1, name="Optics", scope="physics"), {"name": "Optik"})

        es_client.index.assert_called_once_with(
            index="atom_term", id="1", document={"name": "Optics", "scope": "physics"}
        )

    def test_missing_document_without_adapter_skipped(
        self, make_engine, sample_config, es_client, not_found_error
    ):
        es_client.update.side_effect = not_found_error
        engine = make_engine(sample_config)
        engine.partial_update(_term(1), {"name": "Optik"})
        es_client.index.assert_not_called()

    def test_other_errors_propagate(self, make_engine, sample_config, es_client, server_error):
        es_client.update.side_effect = server_error
        engine = make_engine(sample_config)
        with pytest.raises(ClientResponseError):
            engine.partial_update(_term(1), {"name": "x"})
        es_client.index.assert_not_called()

    def test_user_records_ignored(self, make_engine, sample_config, es_client):
        make_engine(sample_config).partial_update(_user(), {"name": "x"})
        assert _network_calls(es_client) == []

    def test_disabled(self, make_engine, sample_config, es_client):
        engine = make_engine(sample_config)
        engine.disable()
        engine.partial_update(_term(1), {"name": "x"})
        assert _network_calls(es_client) == []


class TestPartialUpdateById:
    def test_updated(self, make_engine, sample_config, es_client, seeded_store):
        engine = make_engine(sample_config, store=seeded_store)
        engine.partial_update_by_id("term", 11, {"name": "Physik"})
        es_client.update.assert_called_once_with(index="atom_term", id="11", doc={"name": "Physik"})
        es_client.index.assert_not_called()

    def test_missing_document_rederived_from_store(
        self, make_engine, sample_config, es_client, seeded_store, not_found_error
    ):
        es_client.update.side_effect = not_found_error
        engine = make_engine(sample_config, store=seeded_store)
        engine.partial_update_by_id("term", 11, {"name": "Physik"})
        es_client.index.assert_called_once_with(
            index="atom_term", id="11", document={"name": "Physics", "parentId": 10}
        )

    def test_fallback_skipped_without_adapter(
        self, make_engine, sample_config, es_client, seeded_store, not_found_error
    ):
        es_client.update.side_effect = not_found_error
        adapters = {RecordType.term: RecordAdapter(seeded_store, RecordType.term)}
        engine = make_engine(sample_config, store=seeded_store, adapters=adapters)
        engine.partial_update_by_id("actor", 20, {"x": 1})
        es_client.index.assert_not_called()

    def test_fallback_skipped_when_record_missing(
        self, make_engine, sample_config, es_client, seeded_store, not_found_error
    ):
        es_client.update.side_effect = not_found_error
        engine = make_engine(sample_config, store=seeded_store)
        engine.partial_update_by_id("term", 404, {"x": 1})
        es_client.index.assert_not_called()

    def test_case_insensitive_type_name(self, make_engine, sample_config, es_client):
        make_engine(sample_config).partial_update_by_id("InformationObject", 3, {"a": 1})
        assert es_client.update.call_args.kwargs["index"] == "atom_informationobject"

    def test_user_type_ignored(self, make_engine, sample_config, es_client):
        make_engine(sample_config).partial_update_by_id("user", 3, {"a": 1})
        assert _network_calls(es_client) == []

    def test_unknown_type(self, make_engine, sample_config):
        with pytest.raises(UnknownIndexError):
            make_engine(sample_config).partial_update_by_id("widget", 3, {})


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


class TestDelete:
    def test_direct_delete(self, make_engine, sample_config, es_client):
        make_engine(sample_config).delete(_term(4))
        es_client.delete.assert_called_once_with(index="atom_term", id="4")

    def test_direct_delete_of_missing_document_succeeds(
        self, make_engine, sample_config, es_client, not_found_error
    ):
        es_client.delete.side_effect = not_found_error
        make_engine(sample_config).delete(_term(4))

    def test_direct_delete_server_error_propagates(
        self, make_engine, sample_config, es_client, server_error
    ):
        es_client.delete.side_effect = server_error
        with pytest.raises(ClientResponseError):
            make_engine(sample_config).delete(_term(4))

    def test_user_records_ignored(self, make_engine, sample_config, es_client):
        make_engine(sample_config).delete(_user())
        assert _network_calls(es_client) == []

    def test_batch_delete_queued_after_add(self, make_engine, batch_config, mock_bulk):
        engine = make_engine(batch_config)
        engine.add_document({"id": 4, "name": "x"}, "term")
        engine.delete(_term(4))
        # delete queue hasn't reached its size, nothing sent yet
        mock_bulk.assert_not_called()
        engine.flush()

        ops = [[a["_op_type"] for a in c.args[1]] for c in mock_bulk.call_args_list]
        assert ops == [["index"], ["delete"]]


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------


class TestUpdate:
    def test_dispatches_to_type_adapter(self, make_engine, sample_config):
        term_adapter = MagicMock(spec=RecordAdapter)
        engine = make_engine(sample_config, adapters={RecordType.term: term_adapter})
        record = _term(1)
        engine.update(record, UpdateOptions(update_descendants=True))
        term_adapter.update.assert_called_once_with(engine, record)

    def test_information_objects_receive_options(self, make_engine, sample_config):
        io_adapter = MagicMock()
        engine = make_engine(sample_config, adapters={RecordType.information_object: io_adapter})
        record = Record(id=30, record_type=RecordType.information_object)
        engine.update(record, {"update_descendants": True})
        io_adapter.update.assert_called_once_with(
            engine, record, UpdateOptions(update_descendants=True)
        )

    def test_missing_adapter(self, make_engine, sample_config):
        with pytest.raises(MissingAdapterError, match="No indexing adapter registered for 'term'"):
            make_engine(sample_config, adapters={}).update(_term(1))

    def test_user_records_ignored(self, make_engine, sample_config):
        adapter = MagicMock()
        engine = make_engine(sample_config, adapters={RecordType.user: adapter})
        engine.update(_user())
        adapter.update.assert_not_called()


# ---------------------------------------------------------------------------
# Shutdown
# ---------------------------------------------------------------------------


class TestClose:
    def test_close_flushes_pending(self, make_engine, batch_config, mock_bulk):
        engine = make_engine(batch_config)
        engine.add_document({"id": 1}, "term")
        engine.close()
        mock_bulk.assert_called_once()
        assert engine.batch.pending_adds == []

    def test_context_manager_flushes(self, make_engine, batch_config, mock_bulk):
        with make_engine(batch_config) as engine:
            engine.add_document({"id": 1}, "term")
        mock_bulk.assert_called_once()

    def test_disabled_engine_does_not_flush(self, make_engine, batch_config, mock_bulk):
        engine = make_engine(batch_config)
        engine.add_document({"id": 1}, "term")
        engine.disable()
        engine.close()
        mock_bulk.assert_not_called()

    def test_optimize_merges_every_index(self, make_engine, sample_config, es_client):
        make_engine(sample_config).optimize()
        assert es_client.indices.forcemerge.call_count == len(RecordType.indexed())
