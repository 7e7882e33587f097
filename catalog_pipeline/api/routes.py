"""API routes: paginated catalog transform, full download, metrics and health."""

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from catalog_pipeline.config import Settings
from catalog_pipeline.core.errors import DataSourceNotFoundError
from catalog_pipeline.observability import metrics
from catalog_pipeline.observability.logger import get_logger
from catalog_pipeline.service import CatalogService, PageRequest

from .caching import NOT_MODIFIED_CACHE_CONTROL, build_cache_control, etag_matches, generate_etag

logger = get_logger(__name__)

router = APIRouter(tags=["catalog"])

NOT_FOUND_BODY = {"error": "Data source not found"}


def get_service(request: Request) -> CatalogService:
    return request.app.state.service


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _internal_error(exc: Exception, message: str, settings: Settings, source_id: str) -> JSONResponse:
    logger.error(
        message,
        extra={"source_id": source_id, "error_type": type(exc).__name__, "error_message": str(exc)},
        exc_info=True,
    )
    metrics.record_error(type(exc).__name__, "api")
    body = {"error": message}
    if not settings.is_production:
        body["details"] = f"{type(exc).__name__}: {exc}"
    return JSONResponse(status_code=500, content=body)


@router.get("/data-sources/{source_id}/transform")
def transform_data_source(
    source_id: str,
    request: Request,
    page: str | None = Query(None, description="1-based page number; invalid values fall back to 1."),
    page_size: str | None = Query(None, alias="pageSize", description="Records per page, clamped to [1, 1000]."),
    skip_pagination: str | None = Query(None, alias="skipPagination", description='"true" returns every record.'),
    service: CatalogService = Depends(get_service),
    settings: Settings = Depends(get_settings),
):
    """Return one page of the data source's unified catalog."""
    page_request = PageRequest.from_query(page, page_size, skip_pagination)
    try:
        result = service.get_transformed_page(source_id, page_request)
    except DataSourceNotFoundError:
        return JSONResponse(status_code=404, content=NOT_FOUND_BODY)
    except Exception as e:
        return _internal_error(e, "Failed to transform data source", settings, source_id)

    policy = result.cache_policy
    headers = {"Cache-Control": build_cache_control(policy)}
    if policy.etag:
        etag = generate_etag(result.body)
        headers["ETag"] = etag
        if not policy.no_cache and etag_matches(request.headers.get("if-none-match"), etag):
            return Response(
                status_code=304,
                headers={"ETag": etag, "Cache-Control": NOT_MODIFIED_CACHE_CONTROL},
            )

    return JSONResponse(content=result.body, headers=headers)


@router.get("/data-sources/{source_id}/transform/download")
def download_data_source(
    source_id: str,
    service: CatalogService = Depends(get_service),
    settings: Settings = Depends(get_settings),
):
    """Return the complete catalog without pagination or truncation."""
    try:
        catalog = service.get_full_catalog(source_id)
    except DataSourceNotFoundError:
        return JSONResponse(status_code=404, content=NOT_FOUND_BODY)
    except Exception as e:
        return _internal_error(e, "Failed to download full dataset", settings, source_id)

    file_name = f"{catalog.source_id}_catalog.json"
    return JSONResponse(
        content=catalog.to_wire(),
        headers={
            "Content-Disposition": f'attachment; filename="{file_name}"',
            "Cache-Control": "no-cache, must-revalidate",
        },
    )


@router.get("/metrics")
def prometheus_metrics():
    """Prometheus exposition of the service's metrics."""
    return Response(content=metrics.generate_metrics(), media_type=metrics.get_content_type())


@router.get("/health")
def health(settings: Settings = Depends(get_settings)):
    return {"status": "ok", "environment": settings.app_env, "storeBackend": settings.store_backend}
