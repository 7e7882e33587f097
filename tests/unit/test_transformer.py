"""
Unit tests for the catalog transformer.
"""

import pytest

from catalog_pipeline.core.errors import JSONSourceError
from catalog_pipeline.transform import DataTransformer, LocalBlobStore, RecordCollector, new_catalog_id

pytestmark = pytest.mark.unit


def test_catalog_ids_are_unique():
    assert new_catalog_id("catalog", "s1") != new_catalog_id("catalog", "s1")
    assert new_catalog_id("catalog", "s1").startswith("catalog_s1_")


class TestRecordCollector:
    """Test suite for RecordCollector"""

    def test_counts_beyond_cap(self):
        collector = RecordCollector(max_records=2)
        for _ in range(5):
            collector.offer(lambda index: index)

        assert collector.total == 5
        assert collector.records == [0, 1]
        assert collector.truncated

    def test_zero_cap_is_unlimited(self):
        collector = RecordCollector(max_records=0)
        for _ in range(3):
            collector.offer(lambda index: index)

        assert collector.records == [0, 1, 2]
        assert not collector.truncated


class TestFileTransform:
    """Test suite for filesystem sources"""

    def test_csv_records_and_schema(self, transformer, make_source, csv_file):
        source = make_source("filesystem", files=[csv_file(3)])

        catalog = transformer.transform(source)

        assert catalog.total_records == 3
        assert [r.record_index for r in catalog.records] == [0, 1, 2]
        assert catalog.records[0].id == "src1_people.csv_record_0"
        assert catalog.records[0].source_type == "filesystem"
        assert catalog.records[0].metadata.file_info.name == "people.csv"
        assert catalog.catalog_schema.field_names == ["id", "name", "score"]
        assert catalog.summary.record_count == 3
        assert catalog.meta is None

    def test_cap_keeps_true_total(self, transformer, make_source, csv_file):
        """Capped transforms materialize a prefix but report the full count."""
        source = make_source("filesystem", files=[csv_file(2500)])

        catalog = transformer.transform(source, max_records=1000)

        assert catalog.total_records == 2500
        assert len(catalog.records) == 1000
        assert catalog.records[-1].record_index == 999
        assert catalog.meta == {"truncated": True, "returnedRecords": 1000}
        assert catalog.summary.sample_size == 1000

    def test_record_index_is_global_across_files(self, transformer, make_source, csv_file, json_file):
        source = make_source(
            "filesystem",
            files=[csv_file(2, name="a.csv"), json_file([{"x": 1}, {"x": 2}], name="b.json")],
        )

        catalog = transformer.transform(source)

        assert [r.record_index for r in catalog.records] == [0, 1, 2, 3]
        assert catalog.records[2].id == "src1_b.json_record_2"
        assert catalog.records[2].source_type == "json"
        assert len({r.id for r in catalog.records}) == 4

    def test_file_without_content_skipped(self, transformer, make_source, csv_file):
        source = make_source(
            "filesystem",
            files=[{"name": "missing.csv", "type": "text/csv", "storageKey": "nowhere.csv"}, csv_file(2)],
        )

        catalog = transformer.transform(source)

        assert catalog.total_records == 2

    def test_storage_key_resolved_through_blob_store(self, tmp_path, make_source):
        (tmp_path / "src1").mkdir()
        (tmp_path / "src1" / "data.csv").write_text("a,b\n1,2\n3,4\n")
        source = make_source(
            "filesystem",
            files=[{"name": "data.csv", "type": "text/csv", "storageKey": "src1/data.csv"}],
        )

        catalog = DataTransformer(content_store=LocalBlobStore(tmp_path)).transform(source)

        assert catalog.total_records == 2
        assert catalog.records[1].data == {"a": 3, "b": 4}

    def test_blob_store_rejects_escaping_keys(self, tmp_path):
        (tmp_path / "secret.txt").write_text("x")
        store = LocalBlobStore(tmp_path / "root")

        assert store.load("../secret.txt") is None


class TestDatabaseAndApiTransform:
    """Test suite for database and API sources"""

    def test_database_rows(self, transformer, make_source):
        source = make_source("database", data=[{"id": 1}, {"id": 2}])

        catalog = transformer.transform(source)

        assert catalog.total_records == 2
        assert catalog.records[1].id == "src1_record_1"
        assert catalog.records[0].metadata.processing_info.method == "database_import"

    def test_relational_import_warning(self, transformer, make_source):
        source = make_source(
            "database",
            data=[{"id": 1, "orders": [{"id": 9}]}],
            metadata={"relationalImport": True, "primaryTable": "customers"},
        )

        record = transformer.transform(source).records[0]

        assert record.metadata.original_format == "database_relational"
        assert "customers" in record.metadata.processing_info.warnings[0]

    def test_database_without_rows_yields_metadata_record(self, transformer, make_source):
        source = make_source("database", recordCount=40)

        catalog = transformer.transform(source)

        assert catalog.total_records == 1
        assert catalog.records[0].id == "src1_database_metadata"
        assert catalog.records[0].data["recordCount"] == 40

    def test_api_config_data(self, transformer, api_source):
        catalog = transformer.transform(api_source)

        assert catalog.total_records == 3
        assert catalog.records[0].id == "api1_api_record_0"
        status = next(f for f in catalog.catalog_schema.fields if f.name == "status")
        assert status.nullable

    def test_api_data_from_first_file(self, transformer, make_source, json_file):
        source = make_source("api", files=[json_file({"id": 7})])

        catalog = transformer.transform(source)

        assert catalog.total_records == 1
        assert catalog.records[0].data == {"id": 7}

    def test_api_without_data_yields_metadata_record(self, transformer, make_source):
        catalog = transformer.transform(make_source("api"))

        assert catalog.records[0].id == "src1_api_metadata"
        assert catalog.records[0].metadata.processing_info.confidence == 0.7

    def test_unknown_source_type_is_empty(self, transformer, make_source):
        catalog = transformer.transform(make_source("s3"))

        assert catalog.total_records == 0
        assert catalog.records == []


class TestJsonOnlyTransform:
    """Test suite for JSON-only sources"""

    def test_is_json_only(self, transformer, make_source, json_file, csv_file):
        assert transformer.is_json_only(make_source("filesystem", files=[json_file([])]))
        assert not transformer.is_json_only(make_source("api", files=[json_file([])]))
        assert not transformer.is_json_only(make_source("filesystem", files=[json_file([]), csv_file(1)]))

    def test_array_fully_materialized(self, transformer, make_source, json_file):
        items = [{"n": i} for i in range(1500)]
        source = make_source("filesystem", files=[json_file(items)])

        catalog = transformer.transform_json_only(source)

        assert catalog.total_records == 1500
        assert len(catalog.records) == 1500
        assert catalog.metadata["source"] == "json_raw"

    def test_single_object_is_one_record(self, transformer, make_source, json_file):
        source = make_source("filesystem", files=[json_file({"n": 1})])

        assert transformer.transform_json_only(source).total_records == 1

    def test_invalid_json_raises(self, transformer, make_source):
        source = make_source("filesystem", files=[{"name": "x.json", "type": "application/json", "content": "{oops"}])

        with pytest.raises(JSONSourceError):
            transformer.transform_json_only(source)
