"""
Source content stores resolving file bodies kept outside the data source record.
"""

from pathlib import Path
from typing import Protocol

from catalog_pipeline.core.models import FileDescriptor
from catalog_pipeline.observability.logger import get_logger

logger = get_logger(__name__)


class SourceContentStore(Protocol):
    """Loads file content by storage key."""

    def load(self, storage_key: str) -> str | None:
        ...


class LocalBlobStore:
    """
    Blob store backed by a local directory.

    Storage keys are paths relative to the root; keys escaping the root
    are rejected.
    """

    def __init__(self, root: str | Path, encoding: str = "utf-8"):
        """
        Initialize local blob store.

        Args:
            root: Directory holding stored files
            encoding: Text encoding of stored files
        """
        self.root = Path(root).resolve()
        self.encoding = encoding

    def load(self, storage_key: str) -> str | None:
        """
        Read a stored file as text.

        Args:
            storage_key: Path relative to the store root

        Returns:
            File content, or None if the key does not resolve to a file
        """
        path = (self.root / storage_key).resolve()
        if not path.is_relative_to(self.root):
            logger.warning("Rejected storage key outside blob root", extra={"storage_key": storage_key})
            return None
        if not path.is_file():
            logger.warning("Storage key not found", extra={"storage_key": storage_key})
            return None
        return path.read_text(encoding=self.encoding, errors="replace")


def resolve_content(file: FileDescriptor, store: SourceContentStore | None) -> str | None:
    """
    Inline content of a file, or its content loaded through the store.

    Args:
        file: File descriptor
        store: Content store for storage-key handles (optional)

    Returns:
        File content, or None when neither inline content nor a resolvable key exists
    """
    if file.content is not None:
        return file.content
    if file.storage_key and store is not None:
        return store.load(file.storage_key)
    return None
