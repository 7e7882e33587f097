"""
UnifiedDataCatalog and its parts: the flat, typed, paginated record set
produced for a data source.
"""

import json
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Catalogs above this many records are persisted without their records
LARGE_DATASET_THRESHOLD = 10000


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileInfo(_CamelModel):
    name: str
    size: int = 0
    type: str = ""


class ProcessingInfo(_CamelModel):
    method: str
    confidence: float | None = None
    warnings: list[str] | None = None


class RecordMetadata(_CamelModel):
    """
    Provenance of one record.

    Attributes:
        original_format: "json", "csv", "text", "pdf", "database", "api", "field_mapped", ...
        extracted_at: When the record was extracted
        file_info: Originating file, for file-backed records
        processing_info: Extraction method, confidence and warnings
    """

    original_format: str
    extracted_at: datetime = Field(default_factory=utcnow)
    file_info: FileInfo | None = None
    processing_info: ProcessingInfo | None = None


class UnifiedDataRecord(_CamelModel):
    """
    One record of a catalog.

    Attributes:
        id: Deterministic id derived from source id, file name and absolute index
        source_id: Originating data source
        source_name: Originating data source display name
        source_type: "json", "csv", source type, ...
        record_index: Absolute position in the logical (uncapped) record set
        data: Record payload, opaque to the transformer
        metadata: Record provenance
    """

    id: str
    source_id: str
    source_name: str
    source_type: str
    record_index: int = Field(..., ge=0)
    data: Any = None
    metadata: RecordMetadata


class FieldDescriptor(_CamelModel):
    name: str
    type: str
    nullable: bool = False
    examples: list[Any] = Field(default_factory=list, max_length=3)


class CatalogSchema(_CamelModel):
    fields: list[FieldDescriptor] = Field(default_factory=list)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


class CatalogSummary(_CamelModel):
    data_types: list[str] = Field(default_factory=list)
    record_count: int = 0
    field_count: int = 0
    sample_size: int = 0


class UnifiedDataCatalog(_CamelModel):
    """
    Unified representation of a data source's records.

    total_records is the logical record count of the source and may exceed
    len(records) when records were capped or elided.

    Attributes:
        catalog_id: Fresh per transformation run
        source_id: Originating data source
        source_name: Originating data source display name
        created_at: When this transformation ran
        total_records: Logical total record count
        catalog_schema: Inferred schema (wire name "schema")
        records: Materialized records, possibly empty
        summary: Derived counts
        meta: Response-level hints (truncated, returnedRecords, ...)
        metadata: Transformation provenance (recordsNotStored, savedRecordCount, ...)
        saved_record_count: Authoritative total kept when records were elided
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "catalogId": "catalog_3f1c9a_1760659200000_a1b2c3d4",
                "sourceId": "3f1c9a",
                "sourceName": "Customer export",
                "createdAt": "2025-10-17T00:00:00Z",
                "totalRecords": 2,
                "schema": {"fields": [{"name": "email", "type": "string", "nullable": False, "examples": ["a@x.io"]}]},
                "records": [],
                "summary": {"dataTypes": ["string"], "recordCount": 2, "fieldCount": 1, "sampleSize": 0},
            }
        },
    )

    catalog_id: str
    source_id: str
    source_name: str
    created_at: datetime = Field(default_factory=utcnow)
    total_records: int = Field(..., ge=0)
    catalog_schema: CatalogSchema = Field(default_factory=CatalogSchema, alias="schema")
    records: list[UnifiedDataRecord] = Field(default_factory=list)
    summary: CatalogSummary = Field(default_factory=CatalogSummary)
    meta: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    saved_record_count: int | None = None

    @model_validator(mode="after")
    def check_record_count(self) -> "UnifiedDataCatalog":
        """Materialized records can never outnumber the logical total."""
        if len(self.records) > self.total_records:
            raise ValueError(
                f"catalog holds {len(self.records)} records but totalRecords is {self.total_records}"
            )
        return self

    @property
    def records_elided(self) -> bool:
        """True when the records were not stored with this snapshot."""
        return bool((self.metadata or {}).get("recordsNotStored")) or not self.records

    @property
    def saved_count(self) -> int | None:
        """savedRecordCount stored with an elided snapshot, top-level first."""
        if self.saved_record_count:
            return self.saved_record_count
        saved = (self.metadata or {}).get("savedRecordCount")
        if isinstance(saved, int) and not isinstance(saved, bool) and saved > 0:
            return saved
        return None

    @property
    def authoritative_total(self) -> int:
        """savedRecordCount when present, otherwise total_records."""
        saved = self.saved_count
        return saved if saved is not None else self.total_records

    def to_wire(self, include_records: bool = True) -> dict[str, Any]:
        """JSON-ready dict using camelCase keys; unset optional sections are omitted."""
        body = self.model_dump(mode="json", by_alias=True, exclude=None if include_records else {"records"})
        for key in ("meta", "metadata", "savedRecordCount"):
            if body.get(key) is None:
                body.pop(key, None)
        return body

    def to_json(self) -> str:
        """Serialized snapshot for the persisted-catalog store."""
        return json.dumps(self.to_wire())
