"""
Core data models for the catalog pipeline.

All models use Pydantic for runtime validation and camelCase wire names.
"""

from .catalog import (
    LARGE_DATASET_THRESHOLD,
    CatalogSchema,
    CatalogSummary,
    FieldDescriptor,
    FileInfo,
    ProcessingInfo,
    RecordMetadata,
    UnifiedDataCatalog,
    UnifiedDataRecord,
    utcnow,
)
from .data_source import DataSourceRef, FileDescriptor, SourceConfiguration
from .persisted_state import PersistedCatalogState

__all__ = [
    "LARGE_DATASET_THRESHOLD",
    "CatalogSchema",
    "CatalogSummary",
    "DataSourceRef",
    "FieldDescriptor",
    "FileDescriptor",
    "FileInfo",
    "PersistedCatalogState",
    "ProcessingInfo",
    "RecordMetadata",
    "SourceConfiguration",
    "UnifiedDataCatalog",
    "UnifiedDataRecord",
    "utcnow",
]
