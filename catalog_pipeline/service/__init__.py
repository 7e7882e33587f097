"""
Catalog serving: persisted-state decoding, freshness planning, persistence
rules, pagination and the service tying them together.
"""

from .catalog_service import CachePolicy, CatalogService, TransformResponse
from .decoding import FieldMappedArray, FullCatalog, Unrecognized, decode_persisted
from .freshness import TransformPlan, TransformStrategy, plan_transform
from .pagination import PageRequest, PageResult, PaginationInfo, download_url, paginate
from .persistence import PersistReason, persistence_reasons, prepare_for_storage

__all__ = [
    "CachePolicy",
    "CatalogService",
    "FieldMappedArray",
    "FullCatalog",
    "PageRequest",
    "PageResult",
    "PaginationInfo",
    "PersistReason",
    "TransformPlan",
    "TransformResponse",
    "TransformStrategy",
    "Unrecognized",
    "decode_persisted",
    "download_url",
    "paginate",
    "persistence_reasons",
    "plan_transform",
    "prepare_for_storage",
]
