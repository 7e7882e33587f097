"""
Catalog transformation: source content readers and the data transformer.
"""

from .content_store import LocalBlobStore, SourceContentStore, resolve_content
from .transformer import DataTransformer, RecordCollector, new_catalog_id

__all__ = [
    "DataTransformer",
    "LocalBlobStore",
    "RecordCollector",
    "SourceContentStore",
    "new_catalog_id",
    "resolve_content",
]
