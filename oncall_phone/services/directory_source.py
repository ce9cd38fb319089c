# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Directory sources, each returning a bulk snapshot of the phone directory.

Two backends behind one interface, chosen once at startup:
  DatabaseDirectorySource  single SELECT over the pooled engine
  FileDirectorySource      delimited file, falling back to the database
                           when the file is missing or unreadable

Refresh failures fail open: they are logged and yield an empty snapshot
instead of propagating past the cache.
"""

import csv
import io
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import anyio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from oncall_phone.core.config import Settings
from oncall_phone.core.database import (
    create_directory_engine,
    describe_connection,
    quote_table_name,
)
from oncall_phone.core.logging import get_logger
from oncall_phone.metrics.prometheus import DIRECTORY_FETCH_FAILURES
from oncall_phone.models.domain import FILE_COLUMNS, SQL_COLUMNS, DirectoryRecord

logger = get_logger(__name__)

DIRECTORY_QUERY = """
    SELECT
        FullName AS fullName,
        Ext AS extension,
        CellPhone AS cellPhone,
        PrimaryResponsibility AS primaryResponsibility,
        [Backup] AS backup,
        EmailAddress AS email
    FROM {table}
"""

HEALTH_QUERY = "SELECT 1 AS health_check"


class DirectorySource(ABC):
    """Fetches the full directory snapshot from one backend."""

    backend: str = "unknown"

    @abstractmethod
    async def fetch_records(self, trace_id: Optional[str] = None) -> list[DirectoryRecord]:
        """Return every directory row; an empty list when the backend fails."""

    @abstractmethod
    async def probe(self, trace_id: Optional[str] = None) -> bool:
        """Cheap reachability check, never raises."""

    async def close(self) -> None:
        return None

    def describe(self) -> dict[str, Any]:
        return {"backend": self.backend}


class DatabaseDirectorySource(DirectorySource):
    """Relational backend over a lazily created, shared connection pool."""

    backend = "database"

    def __init__(
        self,
        config: Settings,
        engine_factory: Callable[[Settings], AsyncEngine] = create_directory_engine,
    ) -> None:
        self._config = config
        self._engine_factory = engine_factory
        self._engine: Optional[AsyncEngine] = None
        self._query = text(DIRECTORY_QUERY.format(table=quote_table_name(config.SQL_TABLE)))

    def _get_engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = self._engine_factory(self._config)
        return self._engine

    async def fetch_records(self, trace_id: Optional[str] = None) -> list[DirectoryRecord]:
        if not self._config.sql_configured:
            logger.error(
                "Directory database configuration is incomplete",
                extra={"trace_id": trace_id, "backend": self.backend},
            )
            DIRECTORY_FETCH_FAILURES.labels(backend=self.backend).inc()
            return []

        try:
            async with self._get_engine().connect() as conn:
                result = await conn.execute(self._query)
                rows = result.mappings().all()
        except Exception:
            logger.exception(
                "Error fetching phone directory from database",
                extra={"trace_id": trace_id, "backend": self.backend},
            )
            DIRECTORY_FETCH_FAILURES.labels(backend=self.backend).inc()
            return []

        records = [DirectoryRecord.from_row(dict(row), SQL_COLUMNS) for row in rows]
        logger.info(
            "Retrieved %d phone directory records from database", len(records),
            extra={"trace_id": trace_id, "backend": self.backend},
        )
        return records

    async def probe(self, trace_id: Optional[str] = None) -> bool:
        if not self._config.sql_configured:
            logger.warning(
                "Directory database configuration incomplete, cannot check health",
                extra={"trace_id": trace_id, "backend": self.backend},
            )
            return False
        try:
            async with self._get_engine().connect() as conn:
                await conn.execute(text(HEALTH_QUERY))
            return True
        except Exception:
            logger.exception(
                "Directory database health check failed",
                extra={"trace_id": trace_id, "backend": self.backend},
            )
            return False

    async def close(self) -> None:
        if self._engine is not None:
            logger.info("Closing directory connection pool", extra={"backend": self.backend})
            await self._engine.dispose()
            self._engine = None

    def describe(self) -> dict[str, Any]:
        return {"backend": self.backend, **describe_connection(self._config)}


def parse_directory_csv(content: str) -> list[DirectoryRecord]:
    """Header-named CSV → records. Blank rows are skipped, cells trimmed."""
    reader = csv.DictReader(io.StringIO(content))
    if not reader.fieldnames:
        return []
    reader.fieldnames = [name.strip() for name in reader.fieldnames]

    records: list[DirectoryRecord] = []
    for row in reader:
        row.pop(None, None)  # surplus cells on a ragged line
        if not any((value or "").strip() for value in row.values()):
            continue
        records.append(DirectoryRecord.from_row(row, FILE_COLUMNS))
    return records


class FileDirectorySource(DirectorySource):
    """Flat-file backend for transitional or offline operation."""

    backend = "file"

    def __init__(self, path: str, fallback: Optional[DirectorySource] = None) -> None:
        self._path = path
        self._fallback = fallback

    async def fetch_records(self, trace_id: Optional[str] = None) -> list[DirectoryRecord]:
        path = anyio.Path(self._path)
        if not await path.exists():
            logger.warning(
                "Directory file not found at path: %s", self._path,
                extra={"trace_id": trace_id, "backend": self.backend},
            )
            return await self._fall_back(trace_id)

        try:
            content = await path.read_text(encoding="utf-8-sig")
            records = parse_directory_csv(content)
        except (OSError, UnicodeDecodeError, csv.Error):
            logger.exception(
                "Failed to read directory file %s", self._path,
                extra={"trace_id": trace_id, "backend": self.backend},
            )
            return await self._fall_back(trace_id)

        logger.info(
            "Parsed %d phone directory records from %s", len(records), self._path,
            extra={"trace_id": trace_id, "backend": self.backend},
        )
        return records

    async def _fall_back(self, trace_id: Optional[str]) -> list[DirectoryRecord]:
        DIRECTORY_FETCH_FAILURES.labels(backend=self.backend).inc()
        if self._fallback is None:
            logger.error(
                "No database fallback configured; directory snapshot is empty",
                extra={"trace_id": trace_id, "backend": self.backend},
            )
            return []
        logger.info(
            "Falling back to the directory database",
            extra={"trace_id": trace_id, "backend": self.backend},
        )
        return await self._fallback.fetch_records(trace_id)

    async def probe(self, trace_id: Optional[str] = None) -> bool:
        exists = await anyio.Path(self._path).exists()
        if not exists:
            logger.warning(
                "Directory file does not exist: %s", self._path,
                extra={"trace_id": trace_id, "backend": self.backend},
            )
        return exists

    async def close(self) -> None:
        if self._fallback is not None:
            await self._fallback.close()

    def describe(self) -> dict[str, Any]:
        info: dict[str, Any] = {"backend": self.backend, "path": self._path}
        if self._fallback is not None:
            info["fallback"] = self._fallback.describe()
        return info


def build_directory_source(
    config: Settings,
    engine_factory: Callable[[Settings], AsyncEngine] = create_directory_engine,
) -> DirectorySource:
    """Pick the backend once from configuration."""
    if config.DIRECTORY_BACKEND == "file":
        fallback = (
            DatabaseDirectorySource(config, engine_factory)
            if config.sql_configured
            else None
        )
        logger.warning(
            "Using directory file %s (database fallback %s)",
            config.TEMP_FILE, "enabled" if fallback else "disabled",
            extra={"backend": "file"},
        )
        return FileDirectorySource(config.TEMP_FILE, fallback=fallback)

    logger.info("Using directory database", extra={"backend": "database"})
    return DatabaseDirectorySource(config, engine_factory)
