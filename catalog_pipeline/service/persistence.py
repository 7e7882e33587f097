"""
Persistence rules for freshly produced catalogs.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from catalog_pipeline.core.models import (
    LARGE_DATASET_THRESHOLD,
    DataSourceRef,
    PersistedCatalogState,
    UnifiedDataCatalog,
    utcnow,
)

ELIDED_REASON = "Large dataset - records excluded from storage to prevent memory issues"


class PersistReason(str, Enum):
    FIRST_TRANSFORM_OR_API = "first_transform_or_api"
    FIELD_MAPPING_SEED = "field_mapping_seed"


def persistence_reasons(
    source: DataSourceRef,
    state: PersistedCatalogState | None,
    catalog: UnifiedDataCatalog,
) -> list[PersistReason]:
    """
    Decide which writes a produced catalog triggers.

    Both rules look at the state read at request start, so one request can
    trigger both writes.

    Args:
        source: Data source the catalog was produced for
        state: Persisted state read at request start
        catalog: Produced catalog

    Returns:
        Zero, one or both reasons, in write order
    """
    state = state or PersistedCatalogState()
    has_data = state.has_transformed_data
    reasons = []

    first_transform = not has_data and state.transformation_applied_at is None
    if catalog.total_records > 0 and (first_transform or source.is_api):
        reasons.append(PersistReason.FIRST_TRANSFORM_OR_API)

    if not has_data:
        reasons.append(PersistReason.FIELD_MAPPING_SEED)

    return reasons


def prepare_for_storage(catalog: UnifiedDataCatalog) -> UnifiedDataCatalog:
    """
    Return the catalog as it should be stored.

    Catalogs above LARGE_DATASET_THRESHOLD records are stored without their
    records; the logical total is kept in savedRecordCount.
    """
    if catalog.total_records <= LARGE_DATASET_THRESHOLD:
        return catalog

    metadata = {
        **(catalog.metadata or {}),
        "recordsNotStored": True,
        "reason": ELIDED_REASON,
        "savedRecordCount": catalog.total_records,
    }
    return catalog.model_copy(
        update={
            "records": [],
            "metadata": metadata,
            "saved_record_count": catalog.total_records,
        }
    )


def storage_update(
    source: DataSourceRef,
    stored: UnifiedDataCatalog,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Fields written to the persisted-catalog store for a stored catalog."""
    now = now or utcnow()
    fields: dict[str, Any] = {
        "transformed_data": stored.to_json(),
        "transformed_at": now,
        "record_count": stored.total_records,
    }
    if source.is_api:
        fields["transformation_applied_at"] = now
    return fields
