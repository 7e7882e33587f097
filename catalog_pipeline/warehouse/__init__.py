"""
Storage backends for data sources and persisted catalogs.
"""

from .catalog_store import (
    CatalogStateStore,
    DataSourceRepository,
    InMemoryCatalogStore,
    PostgresCatalogStore,
    load_source_document,
)
from .connection import DatabaseConnectionPool

__all__ = [
    "CatalogStateStore",
    "DataSourceRepository",
    "DatabaseConnectionPool",
    "InMemoryCatalogStore",
    "PostgresCatalogStore",
    "load_source_document",
]
