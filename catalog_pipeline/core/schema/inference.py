"""
Schema inference over catalog records.

Derives per-field type, nullability and example values from record payloads
in a single pass over the keys each record actually carries.
"""

from collections.abc import Iterable
from typing import Any

from catalog_pipeline.core.models import (
    CatalogSchema,
    CatalogSummary,
    FieldDescriptor,
    UnifiedDataRecord,
)
from catalog_pipeline.observability.logger import get_logger

logger = get_logger(__name__)

MIXED_TYPE = "mixed"
MAX_EXAMPLES = 3


def value_type_name(value: Any) -> str:
    """
    Runtime type name of a JSON value.

    bool is checked before int since bool subclasses int.
    """
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (dict, list, tuple)):
        return "object"
    return type(value).__name__


class _FieldStats:
    __slots__ = ("types", "examples", "has_null")

    def __init__(self) -> None:
        self.types: list[str] = []
        self.examples: list[Any] = []
        self.has_null = False

    def observe(self, value: Any) -> None:
        if value is None:
            self.has_null = True
            return
        type_name = value_type_name(value)
        if type_name not in self.types:
            self.types.append(type_name)
        if len(self.examples) < MAX_EXAMPLES and not self._has_example(type_name, value):
            self.examples.append(value)

    def _has_example(self, type_name: str, value: Any) -> bool:
        # True == 1 in Python; keep booleans and numbers apart
        return any(value_type_name(seen) == type_name and seen == value for seen in self.examples)

    def to_descriptor(self, name: str) -> FieldDescriptor:
        return FieldDescriptor(
            name=name,
            type=self.types[0] if len(self.types) == 1 else MIXED_TYPE,
            nullable=self.has_null,
            examples=list(self.examples),
        )


class SchemaInferrer:
    """
    Infers a catalog schema from record payloads.

    A field's type is the single runtime type observed across records, or
    "mixed" when zero or several types were seen. None values mark the field
    nullable instead of contributing a type.
    """

    def analyze(self, records: Iterable[UnifiedDataRecord]) -> CatalogSchema:
        """
        Infer schema from wrapped records.

        Args:
            records: Catalog records whose data payloads are analyzed

        Returns:
            Inferred CatalogSchema
        """
        return self.analyze_payloads(record.data for record in records)

    def analyze_payloads(self, payloads: Iterable[Any]) -> CatalogSchema:
        """
        Infer schema from raw payloads.

        Non-dict payloads contribute no fields.

        Args:
            payloads: Record payloads

        Returns:
            Inferred CatalogSchema, fields in order of first appearance
        """
        stats: dict[str, _FieldStats] = {}
        analyzed = 0

        for payload in payloads:
            analyzed += 1
            if not isinstance(payload, dict):
                continue
            for key, value in payload.items():
                field = stats.get(key)
                if field is None:
                    field = stats[key] = _FieldStats()
                field.observe(value)

        schema = CatalogSchema(fields=[field.to_descriptor(name) for name, field in stats.items()])
        logger.debug(
            "Schema inferred",
            extra={"records_analyzed": analyzed, "field_count": len(schema.fields)},
        )
        return schema

    def summarize(self, schema: CatalogSchema, record_count: int, sample_size: int) -> CatalogSummary:
        """
        Build catalog summary counts from an inferred schema.

        Args:
            schema: Inferred schema
            record_count: Logical total record count
            sample_size: Number of records materialized

        Returns:
            CatalogSummary with deduplicated field types
        """
        data_types: list[str] = []
        for field in schema.fields:
            if field.type not in data_types:
                data_types.append(field.type)

        return CatalogSummary(
            data_types=data_types,
            record_count=record_count,
            field_count=len(schema.fields),
            sample_size=sample_size,
        )

    def schema_to_dict(self, schema: CatalogSchema) -> dict[str, Any]:
        """
        Convert schema to a plain dictionary (name, type, nullable per field).

        Args:
            schema: Catalog schema

        Returns:
            Dictionary representation of schema
        """
        return {
            "fields": [
                {"name": field.name, "type": field.type, "nullable": field.nullable}
                for field in schema.fields
            ]
        }


def compare_schemas(old: CatalogSchema, new: CatalogSchema) -> dict[str, Any]:
    """
    Compare two schemas and identify differences.

    Args:
        old: Previously persisted schema
        new: Freshly inferred schema

    Returns:
        Dictionary with:
        - added_fields: Fields in new but not old
        - removed_fields: Fields in old but not new
        - type_changes: Fields whose inferred type changed
        - compatible: True when nothing was removed or retyped and added fields are nullable
    """
    old_fields = {f.name: f for f in old.fields}
    new_fields = {f.name: f for f in new.fields}

    added_fields = [name for name in new_fields if name not in old_fields]
    removed_fields = [name for name in old_fields if name not in new_fields]

    type_changes = [
        {"field": name, "old_type": old_fields[name].type, "new_type": new_fields[name].type}
        for name in old_fields
        if name in new_fields and old_fields[name].type != new_fields[name].type
    ]

    added_non_nullable = [name for name in added_fields if not new_fields[name].nullable]

    return {
        "added_fields": added_fields,
        "removed_fields": removed_fields,
        "type_changes": type_changes,
        "compatible": not removed_fields and not type_changes and not added_non_nullable,
    }
