# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Directory lookups by email over the cached snapshot.
"""

from typing import Optional

from oncall_phone.core.logging import get_logger
from oncall_phone.metrics.prometheus import DIRECTORY_RECORDS
from oncall_phone.models.domain import DirectoryRecord
from oncall_phone.repositories.cache_slot import CacheSlot
from oncall_phone.services.directory_source import DirectorySource

logger = get_logger(__name__)


class DirectoryService:
    """Finds a directory record by email over the cached snapshot."""

    def __init__(self, source: DirectorySource, cache: CacheSlot[DirectoryRecord]) -> None:
        self._source = source
        self._cache = cache

    async def records(self, trace_id: Optional[str] = None) -> tuple[DirectoryRecord, ...]:
        async def load() -> list[DirectoryRecord]:
            logger.info(
                "Directory cache expired or empty, fetching fresh data",
                extra={"trace_id": trace_id, "backend": self._source.backend},
            )
            records = await self._source.fetch_records(trace_id)
            DIRECTORY_RECORDS.set(len(records))
            return records

        return await self._cache.get_or_refresh(load)

    async def find_by_email(
        self, email: str, trace_id: Optional[str] = None
    ) -> Optional[DirectoryRecord]:
        """First record whose email matches case-insensitively, else None."""
        records = await self.records(trace_id)
        if not records:
            logger.warning("Phone directory snapshot is empty", extra={"trace_id": trace_id})
            return None

        wanted = email.strip().lower()
        for record in records:
            if record.email and record.email.lower() == wanted:
                logger.info(
                    "Found directory record for %s (has_phone=%s, has_extension=%s)",
                    email, record.has_phone, record.has_extension,
                    extra={"trace_id": trace_id},
                )
                return record

        logger.warning(
            "No directory record for %s among %d records", email, len(records),
            extra={"trace_id": trace_id},
        )
        return None

    def invalidate(self) -> None:
        """Next read bypasses freshness and refetches."""
        self._cache.invalidate()
