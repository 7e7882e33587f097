"""
Unit tests for the command-line interface.
"""

import json
import os

import pytest

from catalog_pipeline.cli.main import main

pytestmark = pytest.mark.unit


def test_no_command_prints_help():
    assert main([]) == 1


def test_transform_missing_document(tmp_path):
    assert main(["transform", "--source", str(tmp_path / "absent.json")]) == 1


def test_transform_writes_page(test_data_dir, sources_dir, tmp_path):
    output = tmp_path / "catalog.json"

    exit_code = main([
        "transform",
        "--source", os.path.join(sources_dir, "customers.json"),
        "--blob-root", os.path.join(test_data_dir, "blobs"),
        "--page-size", "3",
        "--output", str(output),
    ])

    body = json.loads(output.read_text())
    assert exit_code == 0
    assert body["totalRecords"] == 8
    assert len(body["records"]) == 3
    assert body["meta"]["pagination"]["totalPages"] == 3


def test_transform_field_mapped_document(sources_dir, tmp_path):
    output = tmp_path / "catalog.json"

    main([
        "transform",
        "--source", os.path.join(sources_dir, "mapped_contacts.json"),
        "--skip-pagination",
        "--output", str(output),
    ])

    body = json.loads(output.read_text())
    assert len(body["records"]) == 4
    assert body["records"][0]["metadata"]["originalFormat"] == "field_mapped"
