"""
Catalog service: serves paginated catalogs for data sources, reusing
persisted snapshots where possible and persisting fresh results.

Request flow:
1. Resolve the data source (404 when missing)
2. JSON-only sources: transform directly, no persistence
3. Otherwise plan (freshness), execute the plan, persist where required
4. Paginate and build the response body with its cache policy
"""

from typing import Any

from pydantic import BaseModel, ValidationError

from catalog_pipeline.core.errors import DataSourceNotFoundError, JSONSourceError
from catalog_pipeline.core.models import (
    DataSourceRef,
    PersistedCatalogState,
    ProcessingInfo,
    RecordMetadata,
    UnifiedDataCatalog,
    UnifiedDataRecord,
)
from catalog_pipeline.core.schema import compare_schemas
from catalog_pipeline.observability import metrics
from catalog_pipeline.observability.logger import get_logger, log_operation
from catalog_pipeline.transform import DataTransformer, new_catalog_id
from catalog_pipeline.warehouse.catalog_store import CatalogStateStore, DataSourceRepository

from .decoding import FieldMappedArray, FullCatalog, decode_persisted
from .freshness import (
    TransformPlan,
    TransformStrategy,
    plan_transform,
    unrecognized_state_cap,
)
from .pagination import PageRequest, build_response_meta, paginate
from .persistence import persistence_reasons, prepare_for_storage, storage_update

logger = get_logger(__name__)

DEFAULT_CACHE_MAX_AGE = 300
FIELD_MAPPED_SAMPLE_SIZE = 10


class CachePolicy(BaseModel):
    """HTTP caching directives for a transform response."""

    max_age: int = DEFAULT_CACHE_MAX_AGE
    private: bool = True
    must_revalidate: bool = True
    etag: bool = True

    @property
    def no_cache(self) -> bool:
        return self.max_age == 0


class TransformResponse(BaseModel):
    """Response body of a transform request plus how it may be cached."""

    body: dict[str, Any]
    cache_policy: CachePolicy
    strategy: str


class CatalogService:
    """
    Serves catalogs for data sources.

    Collaborators are injected explicitly: a data-source repository, a
    persisted-catalog store and a transformer.
    """

    def __init__(
        self,
        sources: DataSourceRepository,
        store: CatalogStateStore,
        transformer: DataTransformer,
        cache_max_age: int = DEFAULT_CACHE_MAX_AGE,
    ):
        self.sources = sources
        self.store = store
        self.transformer = transformer
        self.cache_max_age = cache_max_age

    def _resolve_source(self, source_id: str) -> DataSourceRef:
        source = self.sources.get(source_id)
        if source is None:
            logger.warning("Data source not found", extra={"source_id": source_id})
            raise DataSourceNotFoundError(source_id)
        return source

    # =======================
    # TRANSFORM REQUEST
    # =======================

    def get_transformed_page(self, source_id: str, request: PageRequest) -> TransformResponse:
        """
        Serve one page of a data source's catalog.

        Args:
            source_id: Data source id
            request: Requested page

        Returns:
            TransformResponse

        Raises:
            DataSourceNotFoundError: If the source does not resolve
        """
        with metrics.track_duration(metrics.request_duration_seconds, endpoint="transform"):
            source = self._resolve_source(source_id)

            with log_operation(
                "Serving transformed catalog",
                logger,
                source_id=source.id,
                source_type=source.type,
                page=request.page,
                page_size=request.page_size,
                skip_pagination=request.skip_pagination,
            ):
                catalog = self._try_json_only(source)
                if catalog is not None:
                    strategy = "json_direct"
                else:
                    state = self.store.read(source.id)
                    plan = plan_transform(source, state, request)
                    catalog = self.execute_plan(source, state, plan, request)
                    self._persist(source, state, catalog)
                    strategy = plan.strategy.value

                metrics.increment_counter(
                    metrics.transform_requests_total, source_type=source.type, strategy=strategy
                )

                page = paginate(catalog, request)
                body = catalog.to_wire(include_records=False)
                body["records"] = [record.model_dump(mode="json", by_alias=True) for record in page.records]
                body["meta"] = build_response_meta(catalog, page, request)

        return TransformResponse(
            body=body,
            cache_policy=self.cache_policy_for(source),
            strategy=strategy,
        )

    def cache_policy_for(self, source: DataSourceRef) -> CachePolicy:
        if source.is_api:
            return CachePolicy(max_age=0, etag=False)
        return CachePolicy(max_age=self.cache_max_age)

    def _try_json_only(self, source: DataSourceRef) -> UnifiedDataCatalog | None:
        if not self.transformer.is_json_only(source):
            return None
        try:
            return self.transformer.transform_json_only(source)
        except JSONSourceError as e:
            logger.error(
                "JSON-only source could not be parsed, falling back to generic transform",
                extra={"source_id": source.id, "file_name": e.file_name, "error_message": e.message},
            )
            metrics.record_error("JSONSourceError", "transformer")
            return None

    # =======================
    # PLAN EXECUTION
    # =======================

    def execute_plan(
        self,
        source: DataSourceRef,
        state: PersistedCatalogState | None,
        plan: TransformPlan,
        request: PageRequest,
    ) -> UnifiedDataCatalog:
        """
        Produce the catalog a plan calls for.

        Args:
            source: Data source
            state: Persisted state read at request start
            plan: Freshness plan
            request: Requested page (used when a conversion degrades to a transform)

        Returns:
            UnifiedDataCatalog
        """
        if plan.strategy is TransformStrategy.REUSE_CACHED and isinstance(plan.decoded, FullCatalog):
            return self._reuse_cached(source, plan.decoded.catalog)

        if plan.strategy is TransformStrategy.RETRANSFORM_ELIDED and isinstance(plan.decoded, FullCatalog):
            return self._retransform_elided(source, plan.decoded.catalog, plan.max_records)

        if plan.strategy is TransformStrategy.FIELD_MAPPED and isinstance(plan.decoded, FieldMappedArray):
            record_count = (state.record_count if state else None) or source.record_count
            try:
                return self.build_field_mapped_catalog(source, plan.decoded.items, record_count)
            except ValidationError as e:
                logger.error(
                    "Field-mapped data could not be converted, transforming source instead",
                    extra={"source_id": source.id, "error_message": str(e)},
                )
                metrics.record_error("ValidationError", "field_mapping")
                return self.transformer.transform(source, unrecognized_state_cap(request))

        return self.transformer.transform(source, plan.max_records)

    def _reuse_cached(self, source: DataSourceRef, catalog: UnifiedDataCatalog) -> UnifiedDataCatalog:
        if catalog.catalog_schema.fields or not catalog.records:
            return catalog

        schema = self.transformer.schema_inferrer.analyze(catalog.records)
        metrics.increment_counter(metrics.schema_reinference_total, source_type=source.type)
        logger.info(
            "Re-inferred schema for persisted catalog",
            extra={"source_id": source.id, "field_count": len(schema.fields)},
        )
        return catalog.model_copy(
            update={
                "catalog_schema": schema,
                "summary": catalog.summary.model_copy(update={"field_count": len(schema.fields)}),
            }
        )

    def _retransform_elided(
        self,
        source: DataSourceRef,
        persisted: UnifiedDataCatalog,
        max_records: int | None,
    ) -> UnifiedDataCatalog:
        fresh = self.transformer.transform(source, max_records)

        if persisted.catalog_schema.fields:
            drift = compare_schemas(persisted.catalog_schema, fresh.catalog_schema)
            if not drift["compatible"] or drift["added_fields"]:
                logger.warning(
                    "Schema drift since catalog was persisted",
                    extra={"source_id": source.id, **drift},
                )

        saved = persisted.saved_count
        if saved is None or saved == fresh.total_records:
            return fresh

        total = max(saved, len(fresh.records))
        logger.info(
            "Overriding total with persisted record count",
            extra={"source_id": source.id, "transformed_total": fresh.total_records, "saved_total": total},
        )
        return fresh.model_copy(
            update={
                "total_records": total,
                "summary": fresh.summary.model_copy(update={"record_count": total}),
            }
        )

    def build_field_mapped_catalog(
        self,
        source: DataSourceRef,
        items: list[Any],
        record_count: int | None = None,
    ) -> UnifiedDataCatalog:
        """
        Wrap a persisted field-mapped array as a catalog.

        Each entry becomes one record's data payload as is.

        Args:
            source: Data source the array belongs to
            items: Field-mapped entries
            record_count: Entity record count, preferred as total when positive

        Returns:
            UnifiedDataCatalog

        Raises:
            ValidationError: If the result violates catalog invariants
        """
        records = [
            UnifiedDataRecord(
                id=f"{source.id}_record_{index}",
                source_id=source.id,
                source_name=source.name,
                source_type=source.type,
                record_index=index,
                data=item,
                metadata=RecordMetadata(
                    original_format="field_mapped",
                    processing_info=ProcessingInfo(method="field_mapping_transformation", confidence=1.0),
                ),
            )
            for index, item in enumerate(items)
        ]
        total = record_count if record_count and record_count > 0 else len(items)

        inferrer = self.transformer.schema_inferrer
        schema = inferrer.analyze_payloads(items)
        summary = inferrer.summarize(schema, total, min(len(items), FIELD_MAPPED_SAMPLE_SIZE))

        logger.info(
            "Converted field-mapped data",
            extra={"source_id": source.id, "records": len(records), "total_records": total},
        )
        return UnifiedDataCatalog(
            catalog_id=new_catalog_id("field_mapped", source.id),
            source_id=source.id,
            source_name=source.name,
            total_records=total,
            catalog_schema=schema,
            records=records,
            summary=summary,
        )

    # =======================
    # PERSISTENCE
    # =======================

    def _persist(
        self,
        source: DataSourceRef,
        state: PersistedCatalogState | None,
        catalog: UnifiedDataCatalog,
    ) -> None:
        """Apply persistence rules; write failures never fail the request."""
        for reason in persistence_reasons(source, state, catalog):
            stored = prepare_for_storage(catalog)
            if stored is not catalog:
                metrics.increment_counter(metrics.elided_persists_total, source_type=source.type)
                logger.info(
                    "Persisting catalog without records",
                    extra={"source_id": source.id, "total_records": catalog.total_records},
                )
            try:
                self.store.update(source.id, **storage_update(source, stored))
            except Exception as e:
                logger.error(
                    "Failed to persist transformed catalog",
                    extra={"source_id": source.id, "persist_reason": reason.value, "error_message": str(e)},
                    exc_info=True,
                )
                metrics.increment_counter(metrics.persistence_writes_total, reason=reason.value, status="failure")
                metrics.record_error(type(e).__name__, "persistence")
                continue

            metrics.increment_counter(metrics.persistence_writes_total, reason=reason.value, status="success")
            logger.info(
                "Persisted transformed catalog",
                extra={
                    "source_id": source.id,
                    "persist_reason": reason.value,
                    "total_records": stored.total_records,
                    "stored_records": len(stored.records),
                },
            )

    # =======================
    # FULL DOWNLOAD
    # =======================

    def get_full_catalog(self, source_id: str) -> UnifiedDataCatalog:
        """
        Full catalog of a data source, without any materialization cap.

        Persisted catalogs are reused when their records are present and
        field-mapped arrays are converted; everything else is transformed
        from source content. Nothing is persisted.

        Raises:
            DataSourceNotFoundError: If the source does not resolve
        """
        with metrics.track_duration(metrics.request_duration_seconds, endpoint="download"):
            source = self._resolve_source(source_id)

            with log_operation("Building full catalog", logger, source_id=source.id, source_type=source.type):
                state = self.store.read(source.id)
                if source.is_api or state is None or not state.has_transformed_data:
                    return self.transformer.transform(source)

                decoded = decode_persisted(state.transformed_data)
                if isinstance(decoded, FullCatalog) and not decoded.catalog.records_elided:
                    return self._reuse_cached(source, decoded.catalog)
                if isinstance(decoded, FieldMappedArray):
                    try:
                        return self.build_field_mapped_catalog(
                            source, decoded.items, state.record_count or source.record_count
                        )
                    except ValidationError as e:
                        logger.error(
                            "Field-mapped data could not be converted, transforming source instead",
                            extra={"source_id": source.id, "error_message": str(e)},
                        )
                return self.transformer.transform(source)
