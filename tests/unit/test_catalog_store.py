"""
Unit tests for the in-memory catalog store and data-source documents.
"""

import json

import pytest

from catalog_pipeline.core.errors import CatalogStoreError
from catalog_pipeline.core.models import PersistedCatalogState
from catalog_pipeline.warehouse import InMemoryCatalogStore, load_source_document

pytestmark = pytest.mark.unit


def test_update_creates_and_merges_state(memory_store, csv_source):
    memory_store.add(csv_source)

    memory_store.update(csv_source.id, transformed_data="[1]", record_count=1)
    memory_store.update(csv_source.id, record_count=5)

    state = memory_store.read(csv_source.id)
    assert state.transformed_data == "[1]"
    assert state.record_count == 5


def test_read_returns_copy(memory_store, csv_source):
    memory_store.add(csv_source, PersistedCatalogState(record_count=1))

    memory_store.read(csv_source.id).record_count = 99

    assert memory_store.read(csv_source.id).record_count == 1


def test_unknown_fields_rejected(memory_store):
    with pytest.raises(CatalogStoreError):
        memory_store.update("s1", transformed_rows="x")


def test_unknown_source(memory_store):
    assert memory_store.get("nope") is None
    assert memory_store.read("nope") is None


def test_from_directory(sources_dir):
    store = InMemoryCatalogStore.from_directory(sources_dir)

    assert len(store) == 4
    assert store.get("orders-api").is_api
    assert store.read("customers") is None

    mapped = store.read("mapped-contacts")
    assert json.loads(mapped.transformed_data)[0]["fullName"] == "Ada Lovelace"
    assert mapped.record_count == 4
    assert mapped.transformation_applied_at is not None


def test_from_missing_directory_is_empty(tmp_path):
    assert len(InMemoryCatalogStore.from_directory(tmp_path / "absent")) == 0


def test_invalid_document_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text('{"name": "no id"}')

    with pytest.raises(CatalogStoreError, match="broken.json"):
        load_source_document(path)
