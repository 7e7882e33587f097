"""
Exception hierarchy for the catalog pipeline.
"""


class CatalogPipelineError(Exception):
    """Base class for all catalog pipeline errors."""


class ConfigurationError(CatalogPipelineError):
    """Raised when settings are missing or invalid."""


class DataSourceNotFoundError(CatalogPipelineError):
    """Raised when a data source id does not resolve."""

    def __init__(self, source_id: str):
        self.source_id = source_id
        super().__init__(f"Data source not found: {source_id}")


class JSONSourceError(CatalogPipelineError):
    """Raised when inline JSON content of a JSON-only source cannot be used."""

    def __init__(self, file_name: str, message: str):
        self.file_name = file_name
        self.message = message
        super().__init__(f"{file_name}: {message}")


class PaginationError(CatalogPipelineError):
    """Raised when a page slice is inconsistent with the requested page size."""


class CatalogStoreError(CatalogPipelineError):
    """Raised when the persisted-catalog store cannot be read or written."""
