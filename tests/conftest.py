"""Shared test fixtures for indexsync."""

from unittest.mock import MagicMock, patch

import pytest
from elasticsearch import ApiError
from elasticsearch import NotFoundError as ESNotFoundError

from indexsync.config.models import (
    BatchConfig,
    IndexSyncConfig,
    MappingConfig,
    VersionCheckConfig,
)
from indexsync.engine import SearchEngine
from indexsync.lifecycle.version import VersionCheckCache
from indexsync.models import Record, RecordType
from indexsync.store.sqlite_store import SQLiteRecordStore

SAMPLE_MAPPING = """\
mapping:
  contactInformation:
    _attributes: {nested_only: true}
    properties:
      email: {type: keyword}
  term:
    dynamic: strict
    properties:
      name: {type: text}
  actor:
    _attributes: {timestamp: true}
    properties:
      authorizedFormOfName: {type: text}
  repository:
    _foreign_types: {contactInformations: contactInformation}
    properties:
      identifier: {type: keyword}
  informationObject:
    properties:
      title: {type: text}
"""


@pytest.fixture
def not_found_error() -> ESNotFoundError:
    return ESNotFoundError("not_found", meta=MagicMock(status=404), body={"result": "not_found"})


@pytest.fixture
def server_error() -> ApiError:
    return ApiError("server error", meta=MagicMock(status=500), body={})


@pytest.fixture
def es_client():
    """An Elasticsearch client double reporting a compatible 8.x server."""
    client = MagicMock(name="Elasticsearch")
    client.info.return_value = {"version": {"number": "8.11.3"}}
    client.indices.exists.return_value = False
    return client


@pytest.fixture
def mock_bulk():
    """Patch the bulk helper; every item succeeds unless the test says otherwise."""
    with patch("indexsync.index.handle.bulk") as bulk:
        bulk.side_effect = lambda client, actions, **kwargs: (len(actions), [])
        yield bulk


@pytest.fixture
def mapping_dir(tmp_path):
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "mapping.yml").write_text(SAMPLE_MAPPING)
    return directory


@pytest.fixture
def sample_config(mapping_dir):
    return IndexSyncConfig(
        mappings=MappingConfig(
            search_dirs=[str(mapping_dir)],
            diacritics_dirs=[str(mapping_dir)],
        ),
        version_check=VersionCheckConfig(cache_path=None),
    )


@pytest.fixture
def batch_config(sample_config):
    return sample_config.model_copy(update={"batch": BatchConfig(enabled=True, size=2)})


@pytest.fixture
def record_store(tmp_path):
    store = SQLiteRecordStore(str(tmp_path / "records.db"))
    yield store
    store.close()


@pytest.fixture
def seeded_store(record_store):
    """A small archive: a subject hierarchy, an actor and a two-level description."""
    records = [
        Record(id=10, record_type=RecordType.term, taxonomy_id=35, data={"name": "Science"}),
        Record(id=11, record_type=RecordType.term, taxonomy_id=35, parent_id=10, data={"name": "Physics"}),
        Record(id=12, record_type=RecordType.term, taxonomy_id=35, parent_id=11, data={"name": "Optics"}),
        Record(id=20, record_type=RecordType.actor, data={"authorizedFormOfName": "Ada Lovelace"}),
        Record(id=30, record_type=RecordType.information_object, data={"title": "Fonds"}),
        Record(id=31, record_type=RecordType.information_object, parent_id=30, data={"title": "Series"}),
        Record(id=32, record_type=RecordType.information_object, parent_id=31, data={"title": "File"}),
        Record(id=40, record_type=RecordType.repository, data={"identifier": "R-1"}),
    ]
    for record in records:
        record_store.save(record)
    record_store.relate_term(20, 12)
    record_store.relate_term(30, 11)
    return record_store


@pytest.fixture
def make_engine(es_client):
    """Build engines against the client double with an isolated version cache."""

    def _make(config, store=None, **kwargs):
        kwargs.setdefault("version_cache", VersionCheckCache(ttl=3600))
        return SearchEngine(config, client=es_client, store=store, **kwargs)

    return _make
