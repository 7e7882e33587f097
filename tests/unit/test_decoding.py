"""
Unit tests for persisted-state decoding.
"""

import json

import pytest

from catalog_pipeline.core.models import UnifiedDataCatalog
from catalog_pipeline.service import FieldMappedArray, FullCatalog, Unrecognized, decode_persisted

pytestmark = pytest.mark.unit


def _catalog_json(**overrides) -> str:
    catalog = UnifiedDataCatalog(catalog_id="c1", source_id="s1", source_name="S", total_records=0)
    return json.dumps({**catalog.to_wire(), **overrides})


def test_full_catalog():
    decoded = decode_persisted(_catalog_json())

    assert isinstance(decoded, FullCatalog)
    assert decoded.catalog.catalog_id == "c1"


def test_field_mapped_array():
    decoded = decode_persisted(json.dumps([{"email": "a@x.io"}, {"email": "b@x.io"}]))

    assert isinstance(decoded, FieldMappedArray)
    assert len(decoded.items) == 2


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[]",
        '{"records": []}',
        '"just a string"',
        "42",
    ],
)
def test_unrecognized(raw):
    decoded = decode_persisted(raw)

    assert isinstance(decoded, Unrecognized)
    assert decoded.reason


def test_catalog_shape_failing_validation_is_unrecognized():
    """A catalog claiming fewer total records than it holds is not trusted."""
    record = {
        "id": "r0",
        "sourceId": "s1",
        "sourceName": "S",
        "sourceType": "database",
        "recordIndex": 0,
        "data": {},
        "metadata": {"originalFormat": "database"},
    }

    decoded = decode_persisted(_catalog_json(records=[record], totalRecords=0))

    assert isinstance(decoded, Unrecognized)
