"""FastAPI app factory: wires settings, stores and the catalog service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from catalog_pipeline import __version__
from catalog_pipeline.config import Settings, load_settings
from catalog_pipeline.observability.logger import configure_logging, get_logger
from catalog_pipeline.service import CatalogService
from catalog_pipeline.transform import DataTransformer, LocalBlobStore
from catalog_pipeline.warehouse import (
    DatabaseConnectionPool,
    InMemoryCatalogStore,
    PostgresCatalogStore,
)

from .routes import router

logger = get_logger(__name__)


def build_service(settings: Settings) -> tuple[CatalogService, DatabaseConnectionPool | None]:
    """
    Build the catalog service for the configured store backend.

    Returns:
        The service and, for the postgres backend, the pool to close on shutdown
    """
    content_store = LocalBlobStore(settings.blob_root) if settings.blob_root else None
    transformer = DataTransformer(content_store=content_store)

    pool = None
    if settings.store_backend == "postgres":
        pool = DatabaseConnectionPool(
            host=settings.db_host,
            port=settings.db_port,
            database=settings.db_name,
            user=settings.db_user,
            password=settings.db_password,
        )
        pool.open()
        store = PostgresCatalogStore(pool)
    elif settings.sources_dir:
        store = InMemoryCatalogStore.from_directory(settings.sources_dir)
    else:
        store = InMemoryCatalogStore()

    service = CatalogService(
        sources=store,
        store=store,
        transformer=transformer,
        cache_max_age=settings.transform_cache_max_age,
    )
    return service, pool


def create_app(settings: Settings | None = None, service: CatalogService | None = None) -> FastAPI:
    """
    Create the HTTP application.

    Args:
        settings: Settings (loaded from the environment when omitted)
        service: Prebuilt service; when given no stores are opened

    Returns:
        FastAPI application
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, settings.log_format)
        pool = None
        if service is None:
            app.state.service, pool = build_service(settings)
        logger.info(
            "Catalog service started",
            extra={"environment": settings.app_env, "store_backend": settings.store_backend},
        )
        yield
        if pool is not None:
            pool.close()

    app = FastAPI(title="Unified Data Catalog API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.service = service
    app.include_router(router)
    return app
