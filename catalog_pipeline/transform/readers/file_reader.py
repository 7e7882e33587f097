"""
Generic file reader dispatching on MIME type (CSV, JSON, documents, text).
"""

from collections.abc import Iterator

from catalog_pipeline.core.models import FileDescriptor

from .base import ContentReader, ExtractedPayload
from .csv_reader import CSVReader
from .json_reader import JSONReader
from .text_reader import DOCX_MIME_TYPE, PDF_MIME_TYPE, DocumentReader, TextReader


class FileReader:
    """
    Generic file reader supporting multiple formats.
    """

    def __init__(self):
        self.csv_reader = CSVReader()
        self.json_reader = JSONReader()
        self.document_reader = DocumentReader()
        self.text_reader = TextReader()

    def reader_for(self, file: FileDescriptor) -> ContentReader:
        """
        Pick the reader for a file.

        Args:
            file: File descriptor

        Returns:
            Reader matching the declared MIME type, falling back to the extension
        """
        name = file.name.lower()
        if file.type == "text/csv" or (not file.type and name.endswith(".csv")):
            return self.csv_reader
        if file.is_json:
            return self.json_reader
        if file.type in (PDF_MIME_TYPE, DOCX_MIME_TYPE):
            return self.document_reader
        return self.text_reader

    def read(self, file: FileDescriptor, content: str) -> Iterator[ExtractedPayload]:
        """
        Read file content into record payloads.

        Args:
            file: File descriptor
            content: File content

        Yields:
            ExtractedPayload per record
        """
        yield from self.reader_for(file).read(file, content)
