"""
Pytest configuration and fixtures for catalog-pipeline tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import json
import os
from typing import Any, Callable, Generator

import psycopg
import pytest
from testcontainers.postgres import PostgresContainer

from catalog_pipeline.core.models import DataSourceRef
from catalog_pipeline.service import CatalogService
from catalog_pipeline.transform import DataTransformer
from catalog_pipeline.warehouse import DatabaseConnectionPool, InMemoryCatalogStore


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that exercise the full request flow"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance with initialized database
    """
    container = PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_catalog",
        password="test_password",
        dbname="test_catalog",
        driver=None,
    )
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Docker not available for PostgreSQL container: {e}")

    try:
        init_sql_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "docker",
            "init-db.sql"
        )

        with open(init_sql_path, 'r') as f:
            init_sql = f.read()

        with psycopg.connect(container.get_connection_url()) as conn:
            with conn.cursor() as cur:
                cur.execute(init_sql)
            conn.commit()

        yield container
    finally:
        container.stop()


@pytest.fixture(scope="function")
def db_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Open connection pool against the test container

    Yields:
        Open DatabaseConnectionPool
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_catalog",
        user="test_catalog",
        password="test_password",
        max_size=4,
    )
    pool.open()
    yield pool
    pool.close()


@pytest.fixture(scope="function")
def clean_db(db_pool) -> DatabaseConnectionPool:
    """
    Provide a clean database by truncating all tables before each test

    Args:
        db_pool: Database connection pool fixture

    Returns:
        DatabaseConnectionPool over an empty data_source_entity table
    """
    db_pool.execute_command("TRUNCATE TABLE data_source_entity")
    return db_pool


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory

    Returns:
        Path to tests/fixtures directory
    """
    return os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture(scope="session")
def sources_dir(test_data_dir) -> str:
    """Directory of data-source documents used to seed in-memory stores"""
    return os.path.join(test_data_dir, "sources")


# =======================
# DATA SOURCE FIXTURES
# =======================

@pytest.fixture
def make_source() -> Callable[..., DataSourceRef]:
    """
    Factory for data sources

    Usage:
        source = make_source("filesystem", files=[...])
        source = make_source("database", data=[{"id": 1}])
    """
    def _make(
        source_type: str = "filesystem",
        files: list[dict[str, Any]] | None = None,
        data: list[Any] | None = None,
        source_id: str = "src1",
        **extra: Any,
    ) -> DataSourceRef:
        configuration: dict[str, Any] = {"files": files or []}
        if data is not None:
            configuration["data"] = data
        return DataSourceRef.model_validate({
            "id": source_id,
            "name": f"{source_type} source",
            "type": source_type,
            "configuration": configuration,
            **extra,
        })

    return _make


def _csv_file(rows: int, name: str = "people.csv") -> dict[str, Any]:
    """Inline CSV file descriptor with a header and `rows` data rows"""
    lines = ["id,name,score"] + [f"{i},person{i},{i * 1.5}" for i in range(rows)]
    return {"name": name, "type": "text/csv", "content": "\n".join(lines)}


def _json_file(items: Any, name: str = "items.json") -> dict[str, Any]:
    """Inline JSON file descriptor"""
    return {"name": name, "type": "application/json", "content": json.dumps(items)}


@pytest.fixture
def csv_file() -> Callable[..., dict[str, Any]]:
    return _csv_file


@pytest.fixture
def json_file() -> Callable[..., dict[str, Any]]:
    return _json_file


@pytest.fixture
def csv_source(make_source) -> DataSourceRef:
    """Filesystem source with one 250-row CSV file"""
    return make_source("filesystem", files=[_csv_file(250)], source_id="csv1")


@pytest.fixture
def api_source(make_source) -> DataSourceRef:
    """API source with three pre-fetched records"""
    return make_source(
        "api",
        data=[{"id": 1, "status": "open"}, {"id": 2, "status": "closed"}, {"id": 3, "status": None}],
        source_id="api1",
    )


# =======================
# SERVICE FIXTURES
# =======================

@pytest.fixture
def memory_store() -> InMemoryCatalogStore:
    """Empty in-memory store"""
    return InMemoryCatalogStore()


@pytest.fixture
def transformer() -> DataTransformer:
    return DataTransformer()


@pytest.fixture
def service(memory_store, transformer) -> CatalogService:
    """Catalog service over an in-memory store"""
    return CatalogService(sources=memory_store, store=memory_store, transformer=transformer)


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture
def clean_env(monkeypatch):
    """
    Remove catalog settings from the environment for a single test
    """
    for name in (
        "APP_ENV", "DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD",
        "STORE_BACKEND", "BLOB_ROOT", "SOURCES_DIR", "LOG_LEVEL", "LOG_FORMAT",
        "TRANSFORM_CACHE_MAX_AGE", "API_HOST", "API_PORT", "CATALOG_CONFIG",
    ):
        # setenv first so values loaded from .env files are undone too
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch
