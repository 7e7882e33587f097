"""
JSON reader preserving the original structure of each record.
"""

import json
from collections.abc import Iterator

from catalog_pipeline.core.models import FileDescriptor
from catalog_pipeline.observability.logger import get_logger

from .base import ContentReader, ExtractedPayload

logger = get_logger(__name__)

# Keys of a wrapping object whose array value holds the actual records
RECORD_ARRAY_KEYS = ("records", "data", "items")


class JSONReader(ContentReader):
    """
    Reads JSON content.

    An array yields one payload per element; an object wrapping a
    records/data/items array yields that array's elements; any other value
    is a single payload. Unparseable content yields nothing.
    """

    original_format = "json"

    def read(self, file: FileDescriptor, content: str) -> Iterator[ExtractedPayload]:
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(
                f"Failed to parse JSON file {file.name}: {e}",
                extra={"file_name": file.name},
            )
            return

        if isinstance(parsed, list):
            for item in parsed:
                yield ExtractedPayload(item, self.original_format, "json_array_extraction")
            return

        if isinstance(parsed, dict):
            for key in RECORD_ARRAY_KEYS:
                if isinstance(parsed.get(key), list):
                    for item in parsed[key]:
                        yield ExtractedPayload(item, self.original_format, "json_passthrough")
                    return

        yield ExtractedPayload(parsed, self.original_format, "json_object_extraction")
