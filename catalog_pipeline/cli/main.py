"""
Command-line interface for the catalog service.

Usage:
    catalog-pipeline serve [--host HOST] [--port PORT] [--config FILE]
    catalog-pipeline transform --source <document.json> [options]
    catalog-pipeline inspect --source-id <id> [--config FILE]
"""

import argparse
import json
import sys
from pathlib import Path

from catalog_pipeline.config import load_settings
from catalog_pipeline.core.errors import CatalogPipelineError
from catalog_pipeline.observability.logger import configure_logging, get_logger
from catalog_pipeline.service import (
    CatalogService,
    FieldMappedArray,
    FullCatalog,
    PageRequest,
    decode_persisted,
)
from catalog_pipeline.transform import DataTransformer, LocalBlobStore
from catalog_pipeline.warehouse import InMemoryCatalogStore, load_source_document

logger = get_logger(__name__)


def serve_command(args) -> int:
    """Run the HTTP API under uvicorn."""
    import uvicorn

    from catalog_pipeline.api import create_app

    settings = load_settings(args.config)
    configure_logging(settings.log_level, settings.log_format)

    host = args.host or settings.api_host
    port = args.port or settings.api_port
    logger.info(f"Starting catalog API on {host}:{port}", extra={"store_backend": settings.store_backend})
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
    return 0


def transform_command(args) -> int:
    """
    Transform a data-source document and print the resulting page.

    The document may carry persisted state (transformedData, ...), in which
    case the same reuse rules as the API apply.
    """
    source_path = Path(args.source)
    if not source_path.exists():
        logger.error(f"Source document not found: {args.source}")
        return 1

    source, state = load_source_document(source_path)
    store = InMemoryCatalogStore()
    store.add(source, state)

    blob_root = args.blob_root or str(source_path.parent)
    service = CatalogService(
        sources=store,
        store=store,
        transformer=DataTransformer(content_store=LocalBlobStore(blob_root)),
    )
    request = PageRequest(page=args.page, page_size=args.page_size, skip_pagination=args.skip_pagination)
    result = service.get_transformed_page(source.id, request)

    output = json.dumps(result.body, indent=2)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        logger.info(f"Catalog written to {args.output}", extra={"strategy": result.strategy})
    else:
        print(output)
    return 0


def inspect_command(args) -> int:
    """Print a summary of a data source's persisted catalog state."""
    from catalog_pipeline.api import build_service

    settings = load_settings(args.config)
    configure_logging(settings.log_level, settings.log_format)
    service, pool = build_service(settings)

    try:
        source = service.sources.get(args.source_id)
        if source is None:
            logger.error(f"Data source not found: {args.source_id}")
            return 1

        state = service.store.read(source.id)
        summary = {
            "sourceId": source.id,
            "sourceName": source.name,
            "sourceType": source.type,
            "recordCount": source.record_count,
            "persisted": "none",
        }
        if state is not None and state.has_transformed_data:
            decoded = decode_persisted(state.transformed_data)
            summary["persisted"] = decoded.kind
            summary["transformedAt"] = state.transformed_at.isoformat() if state.transformed_at else None
            if isinstance(decoded, FullCatalog):
                catalog = decoded.catalog
                summary["totalRecords"] = catalog.authoritative_total
                summary["storedRecords"] = len(catalog.records)
                summary["recordsElided"] = catalog.records_elided
                summary["fields"] = catalog.catalog_schema.field_names
            elif isinstance(decoded, FieldMappedArray):
                summary["storedRecords"] = len(decoded.items)
            else:
                summary["decodeReason"] = decoded.reason

        print(json.dumps(summary, indent=2))
        return 0
    finally:
        if pool is not None:
            pool.close()


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="catalog-pipeline",
        description="Unified data catalog service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve the API with settings from the environment
  catalog-pipeline serve --port 8080

  # Transform a data-source document, second page of 50
  catalog-pipeline transform --source sources/customers.json --page 2 --page-size 50

  # Show what is persisted for a source
  catalog-pipeline inspect --source-id 3f1c9a --config config/catalog.yaml
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: API_HOST)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: API_PORT)")
    serve_parser.add_argument("--config", default=None, help="YAML settings overlay")

    transform_parser = subparsers.add_parser("transform", help="Transform a data-source document")
    transform_parser.add_argument("--source", required=True, help="Path to data-source JSON document")
    transform_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    transform_parser.add_argument("--page-size", type=int, default=100, help="Records per page (default: 100)")
    transform_parser.add_argument(
        "--skip-pagination",
        action="store_true",
        help="Return every record instead of one page",
    )
    transform_parser.add_argument(
        "--blob-root",
        default=None,
        help="Directory resolving file storage keys (default: document directory)",
    )
    transform_parser.add_argument("--output", default=None, help="Write catalog JSON to this file")

    inspect_parser = subparsers.add_parser("inspect", help="Show persisted catalog state of a source")
    inspect_parser.add_argument("--source-id", required=True, help="Data source ID")
    inspect_parser.add_argument("--config", default=None, help="YAML settings overlay")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "serve": serve_command,
        "transform": transform_command,
        "inspect": inspect_command,
    }
    try:
        return commands[args.command](args)
    except CatalogPipelineError as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
