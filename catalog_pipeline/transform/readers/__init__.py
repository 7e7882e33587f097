"""
Source content readers.
"""

from .base import ContentReader, ExtractedPayload
from .csv_reader import CSVReader, parse_csv_value
from .file_reader import FileReader
from .json_reader import JSONReader
from .text_reader import DocumentReader, TextReader

__all__ = [
    "CSVReader",
    "ContentReader",
    "DocumentReader",
    "ExtractedPayload",
    "FileReader",
    "JSONReader",
    "TextReader",
    "parse_csv_value",
]
