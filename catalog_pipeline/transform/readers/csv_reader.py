"""
CSV reader mapping header columns onto record keys.
"""

import csv
import io
import re
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any

from catalog_pipeline.core.models import FileDescriptor
from catalog_pipeline.observability.logger import get_logger

from .base import ContentReader, ExtractedPayload

logger = get_logger(__name__)

NUMBER_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")
DATE_PREFIX_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")


def parse_csv_value(value: str) -> Any:
    """
    Coerce a CSV cell to a JSON value.

    Empty cells become None; numbers, booleans and ISO-like dates are
    recognized, anything else stays a string.
    """
    if value is None or value == "":
        return None

    if NUMBER_PATTERN.match(value):
        return float(value) if "." in value else int(value)

    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if DATE_PREFIX_PATTERN.match(value):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    return value


class CSVReader(ContentReader):
    """
    Reads CSV content using the first row as headers.

    Blank lines are ignored and rows whose column count differs from the
    header are skipped.
    """

    original_format = "csv"

    def __init__(self, delimiter: str = ","):
        """
        Initialize CSV reader.

        Args:
            delimiter: Field delimiter
        """
        self.delimiter = delimiter

    def read(self, file: FileDescriptor, content: str) -> Iterator[ExtractedPayload]:
        """
        Yield one payload per well-formed data row.

        Args:
            file: File descriptor (for logging)
            content: CSV text

        Yields:
            ExtractedPayload with header-keyed data
        """
        rows = csv.reader(io.StringIO(content), delimiter=self.delimiter, skipinitialspace=True)
        headers: list[str] | None = None
        skipped = 0

        for line_number, row in enumerate(rows, start=1):
            cells = [cell.strip() for cell in row]
            if not any(cells):
                continue

            if headers is None:
                headers = cells
                continue

            if len(cells) != len(headers):
                skipped += 1
                logger.debug(
                    "Skipping CSV row with mismatched column count",
                    extra={"file_name": file.name, "line": line_number, "columns": len(cells), "headers": len(headers)},
                )
                continue

            yield ExtractedPayload(
                data={header: parse_csv_value(cell) for header, cell in zip(headers, cells)},
                original_format=self.original_format,
                method="csv_header_mapping",
            )

        if skipped:
            logger.warning(
                f"Skipped {skipped} malformed rows in {file.name}",
                extra={"file_name": file.name, "skipped_rows": skipped},
            )
