"""
Freshness planning: decides per request whether a persisted catalog can be
reused or the source must be (re)transformed, and how many records to
materialize.

Decision order:
1. API sources are always transformed fresh
2. Persisted data is decoded:
   - full catalog with records   -> reuse
   - full catalog, records elided -> re-transform, override total
   - field-mapped array          -> convert
   - unrecognized                -> fresh transform
3. Nothing persisted             -> fresh transform
"""

from enum import Enum

from pydantic import BaseModel

from catalog_pipeline.core.models import DataSourceRef, PersistedCatalogState
from catalog_pipeline.observability.logger import get_logger

from .decoding import FieldMappedArray, FullCatalog, PersistedCatalog, decode_persisted
from .pagination import PageRequest

logger = get_logger(__name__)

# Materialization caps
FRESH_TRANSFORM_CAP = 1000
SMALL_DATASET_THRESHOLD = 1000
UNRECOGNIZED_STATE_MARGIN = 100


class TransformStrategy(str, Enum):
    REUSE_CACHED = "reuse_cached"
    RETRANSFORM_ELIDED = "retransform_elided"
    FIELD_MAPPED = "field_mapped"
    FRESH = "fresh"


class TransformPlan(BaseModel):
    """
    Outcome of freshness planning.

    Attributes:
        strategy: How to obtain the catalog
        max_records: Materialization cap for transforms (None for unlimited)
        decoded: Decoded persisted state backing the plan, if any
        reason: Short machine-readable explanation, logged and counted
    """

    strategy: TransformStrategy
    max_records: int | None = None
    decoded: PersistedCatalog | None = None
    reason: str


def fresh_transform_cap(request: PageRequest) -> int | None:
    return None if request.skip_pagination else FRESH_TRANSFORM_CAP


def unrecognized_state_cap(request: PageRequest) -> int | None:
    if request.skip_pagination:
        return None
    return min(FRESH_TRANSFORM_CAP, request.records_needed + UNRECOGNIZED_STATE_MARGIN)


def elided_catalog_cap(authoritative_total: int, request: PageRequest) -> int | None:
    """Small datasets are re-materialized whole; large ones only up to the requested page."""
    if request.skip_pagination or authoritative_total < SMALL_DATASET_THRESHOLD:
        return None
    return max(request.page_size, request.records_needed)


def plan_transform(
    source: DataSourceRef,
    state: PersistedCatalogState | None,
    request: PageRequest,
) -> TransformPlan:
    """
    Decide how to serve a catalog request.

    Args:
        source: Resolved data source
        state: Persisted state read at request start (None if no row)
        request: Requested page

    Returns:
        TransformPlan
    """
    if source.is_api:
        plan = TransformPlan(
            strategy=TransformStrategy.FRESH,
            max_records=fresh_transform_cap(request),
            reason="api_source",
        )
    elif state is not None and state.has_transformed_data:
        plan = _plan_from_persisted(decode_persisted(state.transformed_data), request)
    else:
        plan = TransformPlan(
            strategy=TransformStrategy.FRESH,
            max_records=fresh_transform_cap(request),
            reason="not_persisted",
        )

    logger.info(
        "Transform plan selected",
        extra={
            "source_id": source.id,
            "source_type": source.type,
            "strategy": plan.strategy.value,
            "reason": plan.reason,
            "max_records": plan.max_records or "unlimited",
        },
    )
    return plan


def _plan_from_persisted(decoded: PersistedCatalog, request: PageRequest) -> TransformPlan:
    if isinstance(decoded, FullCatalog):
        catalog = decoded.catalog
        if not catalog.records_elided:
            return TransformPlan(
                strategy=TransformStrategy.REUSE_CACHED,
                decoded=decoded,
                reason="persisted_catalog",
            )
        return TransformPlan(
            strategy=TransformStrategy.RETRANSFORM_ELIDED,
            max_records=elided_catalog_cap(catalog.authoritative_total, request),
            decoded=decoded,
            reason="records_not_stored",
        )

    if isinstance(decoded, FieldMappedArray):
        return TransformPlan(
            strategy=TransformStrategy.FIELD_MAPPED,
            decoded=decoded,
            reason="field_mapped_array",
        )

    logger.warning("Persisted state not recognized", extra={"decode_reason": decoded.reason})
    return TransformPlan(
        strategy=TransformStrategy.FRESH,
        max_records=unrecognized_state_cap(request),
        decoded=decoded,
        reason="unrecognized_persisted_state",
    )
