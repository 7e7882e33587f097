"""
Decoding of persisted catalog state into a closed set of known shapes.

Persisted transformed data is one of:
- FullCatalog: a serialized UnifiedDataCatalog
- FieldMappedArray: a plain non-empty array written by the field-mapping feature
- Unrecognized: anything else, including invalid JSON
"""

import json
from typing import Any, Literal, Union

from pydantic import BaseModel, ValidationError

from catalog_pipeline.core.models import UnifiedDataCatalog
from catalog_pipeline.observability.logger import get_logger

logger = get_logger(__name__)

FULL_CATALOG_KEYS = ("catalogId", "schema", "records")


class FullCatalog(BaseModel):
    kind: Literal["full_catalog"] = "full_catalog"
    catalog: UnifiedDataCatalog


class FieldMappedArray(BaseModel):
    kind: Literal["field_mapped_array"] = "field_mapped_array"
    items: list[Any]


class Unrecognized(BaseModel):
    kind: Literal["unrecognized"] = "unrecognized"
    reason: str


PersistedCatalog = Union[FullCatalog, FieldMappedArray, Unrecognized]


def _decode_full_catalog(parsed: Any) -> PersistedCatalog | None:
    if not isinstance(parsed, dict) or not all(key in parsed for key in FULL_CATALOG_KEYS):
        return None
    try:
        return FullCatalog(catalog=UnifiedDataCatalog.model_validate(parsed))
    except ValidationError as e:
        return Unrecognized(reason=f"catalog failed validation: {e.error_count()} errors")


def _decode_field_mapped(parsed: Any) -> PersistedCatalog | None:
    if isinstance(parsed, list) and parsed:
        return FieldMappedArray(items=parsed)
    return None


DECODERS = (_decode_full_catalog, _decode_field_mapped)


def decode_persisted(raw: str) -> PersistedCatalog:
    """
    Decode persisted transformed data.

    Variants are tried in priority order; the first match wins. Never raises.

    Args:
        raw: JSON text from the persisted-catalog store

    Returns:
        FullCatalog, FieldMappedArray or Unrecognized
    """
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        return Unrecognized(reason=f"invalid JSON: {e.msg}")

    for decoder in DECODERS:
        decoded = decoder(parsed)
        if decoded is not None:
            logger.debug("Persisted state decoded", extra={"kind": decoded.kind})
            return decoded

    return Unrecognized(reason=f"unrecognized {type(parsed).__name__} payload")
