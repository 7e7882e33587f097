"""
Shared types for source content readers.
"""

from collections.abc import Iterator
from typing import Any, NamedTuple

from catalog_pipeline.core.models import FileDescriptor


class ExtractedPayload(NamedTuple):
    """One raw record pulled out of a file, before catalog wrapping."""

    data: Any
    original_format: str
    method: str
    confidence: float = 1.0
    warnings: list[str] | None = None


class ContentReader:
    """
    Base class for readers turning file content into record payloads.

    Readers are lazy: they yield payloads so callers can count every record
    while materializing only as many as they need.
    """

    original_format = "text"

    def read(self, file: FileDescriptor, content: str) -> Iterator[ExtractedPayload]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(format={self.original_format})"
