"""
Catalog transformer: converts a data source's raw content into a UnifiedDataCatalog.

Two entry points:
- transform_json_only: sources made only of JSON files, parsed directly
- transform: the generic per-source-type routine (files, database rows, API payloads)
"""

import json
import time
import uuid
from collections.abc import Callable
from typing import Any

from catalog_pipeline.core.errors import JSONSourceError
from catalog_pipeline.core.models import (
    CatalogSchema,
    DataSourceRef,
    FileDescriptor,
    FileInfo,
    ProcessingInfo,
    RecordMetadata,
    UnifiedDataCatalog,
    UnifiedDataRecord,
)
from catalog_pipeline.core.schema import SchemaInferrer
from catalog_pipeline.observability import metrics
from catalog_pipeline.observability.logger import get_logger

from .content_store import SourceContentStore, resolve_content
from .readers import ExtractedPayload, FileReader

logger = get_logger(__name__)

FILE_SOURCE_TYPES = ("filesystem", "json_transformed")


def new_catalog_id(prefix: str, source_id: str) -> str:
    """Catalog ids are unique per run: timestamp plus a random suffix."""
    return f"{prefix}_{source_id}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class RecordCollector:
    """
    Counts every offered record while keeping at most max_records of them.

    Record indexes are absolute positions in the full logical record set.
    """

    def __init__(self, max_records: int | None = None):
        self.max_records = max_records if max_records and max_records > 0 else None
        self.records: list[UnifiedDataRecord] = []
        self.total = 0

    @property
    def is_full(self) -> bool:
        return self.max_records is not None and len(self.records) >= self.max_records

    def offer(self, build: Callable[[int], UnifiedDataRecord]) -> None:
        index = self.total
        self.total += 1
        if not self.is_full:
            self.records.append(build(index))

    @property
    def truncated(self) -> bool:
        return len(self.records) < self.total


class DataTransformer:
    """
    Transforms data sources into unified catalogs.

    Flow:
    1. Resolve file content (inline or through the content store)
    2. Extract payloads with the format readers
    3. Wrap payloads into UnifiedDataRecords with absolute indexes
    4. Infer schema over the materialized records
    5. Assemble summary counts
    """

    def __init__(
        self,
        content_store: SourceContentStore | None = None,
        schema_inferrer: SchemaInferrer | None = None,
        file_reader: FileReader | None = None,
    ):
        """
        Initialize transformer.

        Args:
            content_store: Store resolving file storage keys (optional)
            schema_inferrer: Schema inference engine
            file_reader: Format reader dispatcher
        """
        self.content_store = content_store
        self.schema_inferrer = schema_inferrer or SchemaInferrer()
        self.file_reader = file_reader or FileReader()

    # =======================
    # JSON-ONLY PATH
    # =======================

    def is_json_only(self, source: DataSourceRef) -> bool:
        """True for non-API sources whose files are all JSON."""
        return source.has_only_json_files() and not source.is_api

    def transform_json_only(self, source: DataSourceRef) -> UnifiedDataCatalog:
        """
        Parse the first JSON file of a JSON-only source directly.

        Args:
            source: JSON-only data source

        Returns:
            Catalog holding every element of the parsed array (or the single value)

        Raises:
            JSONSourceError: If the file has no content or is not valid JSON
        """
        json_file = source.files[0]
        content = resolve_content(json_file, self.content_store)
        if content is None:
            raise JSONSourceError(json_file.name, "no content available")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise JSONSourceError(json_file.name, f"invalid JSON: {e}") from e

        items = parsed if isinstance(parsed, list) else [parsed]

        with metrics.track_duration(metrics.transform_duration_seconds, source_type=source.type):
            collector = RecordCollector()
            for item in items:
                payload = ExtractedPayload(item, "json", "json_direct")
                collector.offer(lambda index, p=payload: self._wrap_file_record(source, json_file, p, index, "json"))

            catalog = self._assemble(
                source,
                collector,
                metadata={
                    "source": "json_raw",
                    "mappedFields": 0,
                    "totalSourceFields": 0,
                    "unmappedFields": [],
                    "validationErrors": [],
                },
            )

        metrics.increment_counter(metrics.transforms_executed_total, source_type=source.type, mode="json_only")
        logger.debug(
            "JSON-only source transformed",
            extra={"source_id": source.id, "file_name": json_file.name, "total_records": catalog.total_records},
        )
        return catalog

    # =======================
    # GENERIC PATH
    # =======================

    def transform(self, source: DataSourceRef, max_records: int | None = None) -> UnifiedDataCatalog:
        """
        Transform a data source according to its type.

        Args:
            source: Data source to transform
            max_records: Maximum records to materialize (None or 0 for unlimited);
                total_records still reflects the full logical count

        Returns:
            UnifiedDataCatalog
        """
        logger.debug(
            "Starting transformation",
            extra={
                "source_id": source.id,
                "source_type": source.type,
                "max_records": max_records or "unlimited",
            },
        )

        collector = RecordCollector(max_records)

        with metrics.track_duration(metrics.transform_duration_seconds, source_type=source.type):
            if source.type in FILE_SOURCE_TYPES and source.files:
                self._collect_files(source, collector)
            elif source.type == "database":
                self._collect_database(source, collector)
            elif source.is_api:
                self._collect_api(source, collector)
            else:
                logger.warning(
                    "No transformable content for source",
                    extra={"source_id": source.id, "source_type": source.type},
                )

            catalog = self._assemble(source, collector)

        metrics.increment_counter(metrics.transforms_executed_total, source_type=source.type, mode="generic")
        metrics.observe_histogram(metrics.records_materialized, len(catalog.records), source_type=source.type)

        logger.debug(
            "Transformation complete",
            extra={
                "catalog_id": catalog.catalog_id,
                "total_records": catalog.total_records,
                "returned_records": len(catalog.records),
                "field_count": len(catalog.catalog_schema.fields),
                "truncated": collector.truncated,
            },
        )
        return catalog

    def _collect_files(self, source: DataSourceRef, collector: RecordCollector) -> None:
        for file in source.files:
            content = resolve_content(file, self.content_store)
            if content is None:
                logger.warning(
                    f"Skipping file {file.name} - no content available",
                    extra={"source_id": source.id, "file_name": file.name},
                )
                continue

            before = collector.total
            record_type = "json" if file.is_json else source.type
            for payload in self.file_reader.read(file, content):
                collector.offer(
                    lambda index, p=payload: self._wrap_file_record(source, file, p, index, record_type)
                )
            logger.debug(
                f"Extracted {collector.total - before} records from {file.name}",
                extra={"source_id": source.id, "file_name": file.name},
            )

    def _collect_database(self, source: DataSourceRef, collector: RecordCollector) -> None:
        rows = source.configuration.data
        if not isinstance(rows, list):
            collector.offer(lambda index: self._metadata_record(source, "database", index))
            return

        relational = source.metadata.get("relationalImport") is True
        warnings = None
        if relational:
            warnings = [
                f"This is a relational import from {source.metadata.get('primaryTable')} "
                "with nested data from related tables"
            ]
        payload_format = "database_relational" if relational else "database"
        method = "relational_import" if relational else "database_import"

        for row in rows:
            payload = ExtractedPayload(row, payload_format, method, 1.0, warnings)
            collector.offer(
                lambda index, p=payload: self._wrap_record(
                    source, f"{source.id}_record_{index}", "database", index, p
                )
            )

    def _collect_api(self, source: DataSourceRef, collector: RecordCollector) -> None:
        api_data: list[Any] = []
        origin = "none"

        if isinstance(source.configuration.data, list):
            api_data = source.configuration.data
            origin = "config.data"
        else:
            for file in source.files:
                content = resolve_content(file, self.content_store)
                if content is None:
                    continue
                origin = "config.files"
                try:
                    parsed = json.loads(content)
                    api_data = parsed if isinstance(parsed, list) else [parsed]
                except json.JSONDecodeError as e:
                    logger.warning(
                        f"Failed to parse API JSON content: {e}",
                        extra={"source_id": source.id, "file_name": file.name},
                    )
                break

        logger.info(
            "API data extracted",
            extra={"source_id": source.id, "records_found": len(api_data), "origin": origin},
        )

        if not api_data:
            collector.offer(lambda index: self._metadata_record(source, "api", index))
            return

        for item in api_data:
            payload = ExtractedPayload(item, "api", "api_data_extraction")
            collector.offer(
                lambda index, p=payload: self._wrap_record(
                    source, f"{source.id}_api_record_{index}", "api", index, p
                )
            )

    # =======================
    # RECORD WRAPPING
    # =======================

    def _wrap_file_record(
        self,
        source: DataSourceRef,
        file: FileDescriptor,
        payload: ExtractedPayload,
        index: int,
        record_type: str,
    ) -> UnifiedDataRecord:
        size = file.size or len(json.dumps(payload.data, default=str))
        return self._wrap_record(
            source,
            f"{source.id}_{file.name}_record_{index}",
            record_type,
            index,
            payload,
            file_info=FileInfo(name=file.name, size=size, type=file.type),
        )

    def _wrap_record(
        self,
        source: DataSourceRef,
        record_id: str,
        record_type: str,
        index: int,
        payload: ExtractedPayload,
        file_info: FileInfo | None = None,
    ) -> UnifiedDataRecord:
        return UnifiedDataRecord(
            id=record_id,
            source_id=source.id,
            source_name=source.name,
            source_type=record_type,
            record_index=index,
            data=payload.data,
            metadata=RecordMetadata(
                original_format=payload.original_format,
                file_info=file_info,
                processing_info=ProcessingInfo(
                    method=payload.method,
                    confidence=payload.confidence,
                    warnings=payload.warnings,
                ),
            ),
        )

    def _metadata_record(self, source: DataSourceRef, kind: str, index: int) -> UnifiedDataRecord:
        """Single record describing a source that carries no materialized data."""
        payload = ExtractedPayload(
            data={
                f"{kind}Type": kind,
                "configuration": source.configuration.model_dump(mode="json", by_alias=True, exclude_none=True),
                "metadata": source.metadata,
                "recordCount": source.record_count or 0,
            },
            original_format=kind,
            method="metadata_extraction",
            confidence=0.7,
            warnings=["No data available - showing metadata only" if kind == "database" else "No API data found in configuration"],
        )
        return self._wrap_record(source, f"{source.id}_{kind}_metadata", source.type, index, payload)

    # =======================
    # CATALOG ASSEMBLY
    # =======================

    def _assemble(
        self,
        source: DataSourceRef,
        collector: RecordCollector,
        metadata: dict[str, Any] | None = None,
    ) -> UnifiedDataCatalog:
        schema: CatalogSchema = self.schema_inferrer.analyze(collector.records)
        summary = self.schema_inferrer.summarize(schema, collector.total, len(collector.records))

        meta = None
        if collector.truncated:
            meta = {"truncated": True, "returnedRecords": len(collector.records)}

        return UnifiedDataCatalog(
            catalog_id=new_catalog_id("catalog", source.id),
            source_id=source.id,
            source_name=source.name,
            total_records=collector.total,
            catalog_schema=schema,
            records=collector.records,
            summary=summary,
            meta=meta,
            metadata=metadata,
        )
