"""
Data-source lookup and persisted-catalog storage.

Two backends implement both protocols:
- PostgresCatalogStore: table data_source_entity (see docker/init-db.sql)
- InMemoryCatalogStore: process-local, seedable from a directory of JSON documents
"""

import json
import threading
from pathlib import Path
from typing import Any, Protocol

from psycopg import sql
from psycopg.types.json import Jsonb

from catalog_pipeline.core.errors import CatalogStoreError
from catalog_pipeline.core.models import DataSourceRef, PersistedCatalogState
from catalog_pipeline.observability.logger import get_logger

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

STATE_FIELDS = frozenset(PersistedCatalogState.model_fields)


class DataSourceRepository(Protocol):
    def get(self, source_id: str) -> DataSourceRef | None:
        ...


class CatalogStateStore(Protocol):
    def read(self, source_id: str) -> PersistedCatalogState | None:
        ...

    def update(self, source_id: str, **fields: Any) -> None:
        ...


def _check_fields(fields: dict[str, Any]) -> None:
    unknown = set(fields) - STATE_FIELDS
    if unknown:
        raise CatalogStoreError(f"Unknown persisted state fields: {sorted(unknown)}")


class PostgresCatalogStore:
    """
    Data sources and persisted catalogs in PostgreSQL.

    Persisted state lives on the data source row itself, so updates for an
    unknown source affect nothing.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize store.

        Args:
            pool: Open database connection pool
        """
        self.pool = pool

    def get(self, source_id: str) -> DataSourceRef | None:
        rows = self.pool.execute_query(
            """
            SELECT id, name, type, configuration, metadata, record_count
            FROM data_source_entity
            WHERE id = %s
            """,
            (source_id,),
        )
        if not rows:
            return None

        row = rows[0]
        return DataSourceRef(
            id=row["id"],
            name=row["name"],
            type=row["type"],
            configuration=row["configuration"] or {},
            metadata=row["metadata"] or {},
            record_count=row["record_count"],
        )

    def read(self, source_id: str) -> PersistedCatalogState | None:
        rows = self.pool.execute_query(
            """
            SELECT transformed_data, transformed_at, record_count, transformation_applied_at
            FROM data_source_entity
            WHERE id = %s
            """,
            (source_id,),
        )
        if not rows:
            return None
        return PersistedCatalogState(**rows[0])

    def update(self, source_id: str, **fields: Any) -> None:
        """
        Update persisted state columns of a data source.

        Raises:
            CatalogStoreError: If a field is not a persisted state column
        """
        if not fields:
            return
        _check_fields(fields)

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(name)) for name in fields
        )
        command = sql.SQL("UPDATE data_source_entity SET {}, updated_at = NOW() WHERE id = %s").format(
            assignments
        )
        rowcount = self.pool.execute_command(command, (*fields.values(), source_id))
        logger.debug(
            "Persisted state updated",
            extra={"source_id": source_id, "columns": sorted(fields), "rows_affected": rowcount},
        )

    def save_source(self, source: DataSourceRef) -> None:
        """Insert or update a data source definition (persisted state untouched)."""
        self.pool.execute_command(
            """
            INSERT INTO data_source_entity (id, name, type, configuration, metadata, record_count)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET
                name = EXCLUDED.name,
                type = EXCLUDED.type,
                configuration = EXCLUDED.configuration,
                metadata = EXCLUDED.metadata,
                record_count = EXCLUDED.record_count,
                updated_at = NOW()
            """,
            (
                source.id,
                source.name,
                source.type,
                Jsonb(source.configuration.model_dump(mode="json", by_alias=True, exclude_none=True)),
                Jsonb(source.metadata),
                source.record_count,
            ),
        )


class InMemoryCatalogStore:
    """
    Process-local data sources and persisted catalogs.

    Used for local runs and tests. Updating a source with no state row
    creates one.
    """

    def __init__(self):
        self._sources: dict[str, DataSourceRef] = {}
        self._states: dict[str, PersistedCatalogState] = {}
        self._lock = threading.Lock()

    def add(self, source: DataSourceRef, state: PersistedCatalogState | None = None) -> None:
        with self._lock:
            self._sources[source.id] = source
            if state is not None:
                self._states[source.id] = state

    def get(self, source_id: str) -> DataSourceRef | None:
        return self._sources.get(source_id)

    def read(self, source_id: str) -> PersistedCatalogState | None:
        with self._lock:
            state = self._states.get(source_id)
            return state.model_copy() if state is not None else None

    def update(self, source_id: str, **fields: Any) -> None:
        _check_fields(fields)
        with self._lock:
            current = self._states.get(source_id) or PersistedCatalogState()
            self._states[source_id] = current.model_copy(update=fields)

    def save_source(self, source: DataSourceRef) -> None:
        self.add(source)

    def __len__(self) -> int:
        return len(self._sources)

    @classmethod
    def from_directory(cls, directory: str | Path) -> "InMemoryCatalogStore":
        """
        Seed a store from *.json data-source documents.

        Each document is a data source in wire form; persisted state keys
        (transformedData, transformedAt, ...) found on it seed the state row.

        Args:
            directory: Directory holding the documents

        Returns:
            Seeded InMemoryCatalogStore

        Raises:
            CatalogStoreError: If a document is not a valid data source
        """
        store = cls()
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning("Sources directory not found", extra={"directory": str(directory)})
            return store

        for path in sorted(directory.glob("*.json")):
            store.add(*load_source_document(path))

        logger.info("Loaded data sources", extra={"directory": str(directory), "source_count": len(store)})
        return store


def load_source_document(path: str | Path) -> tuple[DataSourceRef, PersistedCatalogState | None]:
    """
    Read one data-source JSON document.

    Returns:
        The data source and its seeded persisted state, if the document carries one

    Raises:
        CatalogStoreError: If the document cannot be parsed
    """
    path = Path(path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
        source = DataSourceRef.model_validate(document)
        state_keys = {"transformedData", "transformedAt", "transformationAppliedAt"}
        state = None
        if state_keys & set(document):
            transformed = document.get("transformedData")
            if transformed is not None and not isinstance(transformed, str):
                document = {**document, "transformedData": json.dumps(transformed)}
            state = PersistedCatalogState.model_validate(document)
    except (OSError, ValueError) as e:
        raise CatalogStoreError(f"Invalid data source document {path.name}: {e}") from e
    return source, state
