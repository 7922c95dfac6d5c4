"""No-op record store used when the real store failed to initialize.

Writes are dropped and reads come back empty, so persistence degrades to
nothing without touching the coaching path.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from writing_coach.adapters.store.base import AbstractRecordStore, Record

logger = logging.getLogger(__name__)


class NullRecordStore(AbstractRecordStore):
    available = False

    async def create(self, container: str, partition_key: str, record: Record) -> Record:
        logger.debug("store.null_write", extra={"container": container})
        return record

    async def create_batch(self, container: str, partition_key: str, records: Sequence[Record]) -> None:
        logger.debug("store.null_write", extra={"container": container, "count": len(records)})

    async def read(self, container: str, partition_key: str, record_id: str) -> Record | None:
        return None

    async def query(
        self,
        container: str,
        partition_key: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Record]:
        return []

    async def replace(self, container: str, partition_key: str, record: Record) -> Record | None:
        return None

    async def delete(self, container: str, partition_key: str, record_id: str) -> bool:
        return False
