"""
Pagination over catalog records.
"""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from catalog_pipeline.core.errors import PaginationError
from catalog_pipeline.core.models import UnifiedDataCatalog, UnifiedDataRecord
from catalog_pipeline.observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000
DOWNLOAD_HINT_THRESHOLD = 100


def _parse_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


class PageRequest(BaseModel):
    """
    Requested page of a catalog.

    page is 1-based and at least 1; page_size is clamped to [1, MAX_PAGE_SIZE]
    whatever the client asked for.
    """

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    skip_pagination: bool = False

    @field_validator("page")
    @classmethod
    def clamp_page(cls, v: int) -> int:
        return max(v, 1)

    @field_validator("page_size")
    @classmethod
    def clamp_page_size(cls, v: int) -> int:
        return min(max(v, 1), MAX_PAGE_SIZE)

    @classmethod
    def from_query(
        cls,
        page: str | None = None,
        page_size: str | None = None,
        skip_pagination: str | None = None,
    ) -> "PageRequest":
        """
        Build from raw query-string values.

        Unparseable integers fall back to defaults; skip_pagination is only
        enabled by the literal "true".
        """
        return cls(
            page=_parse_int(page, DEFAULT_PAGE),
            page_size=_parse_int(page_size, DEFAULT_PAGE_SIZE),
            skip_pagination=skip_pagination == "true",
        )

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def end_index(self) -> int:
        return self.start_index + self.page_size

    @property
    def records_needed(self) -> int:
        """Records that must be materialized to serve this page."""
        return self.page * self.page_size


class PaginationInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    page_size: int
    total_pages: int
    total_records: int
    has_next_page: bool
    has_previous_page: bool
    start_index: int
    end_index: int


class PageResult(BaseModel):
    """Records of one page plus pagination metadata (None when pagination is skipped)."""

    records: list[UnifiedDataRecord]
    pagination: PaginationInfo | None = None


def paginate(catalog: UnifiedDataCatalog, request: PageRequest) -> PageResult:
    """
    Slice a catalog's records for the requested page.

    Args:
        catalog: Catalog whose records start at absolute index 0
        request: Page request

    Returns:
        PageResult

    Raises:
        PaginationError: If the slice holds more records than totalRecords leaves for the page
    """
    if request.skip_pagination:
        return PageResult(records=list(catalog.records))

    start_index = request.start_index
    end_index = request.end_index
    page_records = catalog.records[start_index:end_index]
    total_records = catalog.total_records

    # model_copy skips validation, so records can outrun an overridden total
    if len(page_records) > max(0, total_records - start_index):
        logger.error(
            "Page slice extends past totalRecords",
            extra={"total_records": total_records, "start_index": start_index, "returning": len(page_records)},
        )
        raise PaginationError(
            f"page slice holds {len(page_records)} records but only "
            f"{max(0, total_records - start_index)} remain of totalRecords {total_records}"
        )

    total_pages = math.ceil(total_records / request.page_size)

    logger.debug(
        "Pagination applied",
        extra={
            "original_records": len(catalog.records),
            "paginated_records": len(page_records),
            "page": request.page,
            "page_size": request.page_size,
            "start_index": start_index,
            "end_index": end_index,
        },
    )

    return PageResult(
        records=page_records,
        pagination=PaginationInfo(
            page=request.page,
            page_size=request.page_size,
            total_pages=total_pages,
            total_records=total_records,
            has_next_page=request.page < total_pages,
            has_previous_page=request.page > 1,
            start_index=start_index,
            end_index=min(end_index, total_records),
        ),
    )


def download_url(source_id: str, total_records: int) -> str | None:
    """Bulk-download hint for catalogs too large to browse comfortably page by page."""
    if total_records > DOWNLOAD_HINT_THRESHOLD:
        return f"/data-sources/{source_id}/transform/download"
    return None


def build_response_meta(
    catalog: UnifiedDataCatalog,
    page: PageResult,
    request: PageRequest,
) -> dict[str, Any]:
    """
    Response meta block: prior catalog meta plus counts, truncation flag,
    download hint and pagination (omitted when pagination is skipped).
    """
    meta: dict[str, Any] = {
        **(catalog.meta or {}),
        "totalRecords": catalog.total_records,
        "returnedRecords": len(page.records),
        "truncated": not request.skip_pagination and catalog.total_records > request.page_size,
        "downloadUrl": download_url(catalog.source_id, catalog.total_records),
    }
    if page.pagination is not None:
        meta["pagination"] = page.pagination.model_dump(by_alias=True)
    else:
        meta.pop("pagination", None)
    return meta
