"""
End-to-end tests for the transform API.

Serves the fixture data sources through the full application: settings,
lifespan wiring, in-memory store seeded from documents, blob storage.
"""

import pytest
from fastapi.testclient import TestClient

from catalog_pipeline.api import create_app
from catalog_pipeline.config import Settings


@pytest.fixture
def e2e_client(test_data_dir, sources_dir):
    settings = Settings(
        store_backend="memory",
        sources_dir=sources_dir,
        blob_root=f"{test_data_dir}/blobs",
        log_format="text",
    )
    with TestClient(create_app(settings)) as client:
        yield client


@pytest.mark.e2e
def test_csv_source_transformed_then_reused(e2e_client):
    """Fresh transform, then the persisted snapshot answers with the same catalog."""
    first = e2e_client.get("/data-sources/customers/transform")
    body = first.json()

    assert first.status_code == 200
    assert body["totalRecords"] == 8
    assert [r["data"]["customer_id"] for r in body["records"]][:3] == ["C001", "C002", "C003"]

    fields = {f["name"]: f for f in body["schema"]["fields"]}
    assert fields["email"]["nullable"] is True
    assert fields["lifetime_value"]["type"] == "number"
    assert fields["active"]["type"] == "boolean"
    assert body["records"][0]["data"]["signup_date"] == "2024-01-15T00:00:00.000Z"

    second = e2e_client.get("/data-sources/customers/transform")
    assert second.json()["catalogId"] == body["catalogId"]

    cached = e2e_client.get(
        "/data-sources/customers/transform",
        headers={"If-None-Match": second.headers["etag"]},
    )
    assert cached.status_code == 304


@pytest.mark.e2e
def test_api_source_is_fresh_every_time(e2e_client):
    first = e2e_client.get("/data-sources/orders-api/transform").json()
    second = e2e_client.get("/data-sources/orders-api/transform")

    assert second.json()["catalogId"] != first["catalogId"]
    assert "max-age=0" in second.headers["cache-control"]
    assert second.json()["totalRecords"] == 3


@pytest.mark.e2e
def test_field_mapped_source(e2e_client):
    body = e2e_client.get("/data-sources/mapped-contacts/transform").json()

    fields = {f["name"]: f for f in body["schema"]["fields"]}
    assert body["totalRecords"] == 4
    assert body["records"][2]["data"]["fullName"] == "Grace Hopper"
    assert fields["tier"]["type"] == "mixed"
    assert fields["emailAddress"]["nullable"] is True


@pytest.mark.e2e
def test_json_only_source(e2e_client):
    body = e2e_client.get("/data-sources/inventory/transform", params={"pageSize": "2"}).json()

    assert body["totalRecords"] == 3
    assert len(body["records"]) == 2
    assert body["metadata"]["source"] == "json_raw"
    assert body["meta"]["pagination"]["totalPages"] == 2


@pytest.mark.e2e
def test_download_and_missing_source(e2e_client):
    download = e2e_client.get("/data-sources/customers/transform/download")

    assert download.status_code == 200
    assert len(download.json()["records"]) == 8
    assert e2e_client.get("/data-sources/nope/transform").status_code == 404
