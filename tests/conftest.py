"""Shared test fixtures for marti."""

import copy
import os
import tempfile
from datetime import date, datetime

import pytest

from marti.core.exceptions import StoreError
from marti.samples.models import Entry
from marti.samples.repository import EntryRepository
from marti.samples.schema import StoreSettings
from marti.samples.store import ServiceJob


class FakeStoreClient:
    """In-memory StoreClient. Equality filters only; anything else returns ``canned_hits``."""

    def __init__(self):
        self.collections: dict[str, dict] = {}
        self.upserts: list[tuple] = []
        self.unsets: list[tuple] = []
        self.queries: list[tuple] = []
        self.indexes: list[tuple] = []
        self.canned_hits: list[dict] | None = None
        self.fail_writes = False
        self.fail_queries = False

    def upsert(self, collection, selector, document, timestamp_key=None, unset=()):
        if self.fail_writes:
            raise StoreError("write refused")
        self.upserts.append((collection, copy.deepcopy(selector), copy.deepcopy(document), timestamp_key))
        self.unsets.append(tuple(unset))
        docs = self.collections.setdefault(collection, {})
        stored = dict(docs.get(selector["_id"], {}))
        stored.update(copy.deepcopy(document))
        for key in unset:
            stored.pop(key, None)
        stored["_id"] = selector["_id"]
        if timestamp_key:
            stored[timestamp_key] = datetime(2024, 1, 1, 12, 0, 0)
        docs[selector["_id"]] = stored

    def insert(self, collection, document):
        self.collections.setdefault(collection, {})[document["_id"]] = copy.deepcopy(document)

    def query(self, collection, filter, options=None):
        self.queries.append((collection, copy.deepcopy(filter), options))
        if self.fail_queries:
            raise StoreError("query refused")
        if self.canned_hits is not None:
            return copy.deepcopy(self.canned_hits)

        docs = list(self.collections.get(collection, {}).values())
        hits = [d for d in docs if all(d.get(k) == v for k, v in filter.items())]
        for key, direction in reversed((options or {}).get("sort", [])):
            hits.sort(key=lambda d: d.get(key) or "", reverse=direction < 0)
        return copy.deepcopy(hits)

    def ensure_index(self, collection, key, kind):
        self.indexes.append((collection, key, kind))


class FailingIndexer:
    def __init__(self):
        self.documents = []

    def index(self, job, document):
        from marti.core.exceptions import PartialIndexError

        self.documents.append(document)
        raise PartialIndexError("index unavailable")


class RecordingIndexer:
    def __init__(self):
        self.documents = []

    def index(self, job, document):
        self.documents.append(copy.deepcopy(document))


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "mongo": {
            "uri": "mongodb://db.example.org:27017",
            "database": "grassroots",
            "collection": "marti",
        },
        "marti": {"api_url": "https://marti.example.org/api/sample/"},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def fake_store():
    return FakeStoreClient()


@pytest.fixture
def settings():
    return StoreSettings(database="grassroots", collection="marti", api_url="https://marti.example.org/api/sample/")


@pytest.fixture
def recording_indexer():
    return RecordingIndexer()


@pytest.fixture
def failing_indexer():
    return FailingIndexer()


@pytest.fixture
def repository(fake_store, settings, recording_indexer):
    return EntryRepository(fake_store, settings, indexer=recording_indexer)


@pytest.fixture
def job():
    return ServiceJob()


@pytest.fixture
def sample_entry():
    entry = Entry.create(
        name="Norwich airborne 3",
        external_id="MARTi-0042",
        latitude=52.6219,
        longitude=1.2187,
        start_time=date(2024, 3, 1),
        end_time=datetime(2024, 3, 8, 12, 0, 0),
        site_name="Norwich Research Park",
        comments="Rooftop sampler, 48h run",
        taxon_ids=["2", "1224", "28211"],
    )
    assert entry is not None
    return entry
