"""In-memory record store.

Notes:
- Per-process only and lost on restart; suitable for development, tests and
  single-instance deployments that can afford to lose history.
- Thread-safe: uses a lock around shared state.
- Records are deep-copied in and out so callers never share mutable state
  with the store.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Mapping, Sequence

from writing_coach.adapters.store.base import AbstractRecordStore, Record
from writing_coach.core.errors import RecordConflictError, ValidationAppError

logger = logging.getLogger(__name__)


class InMemoryRecordStore(AbstractRecordStore):
    """Dict-backed partitioned store."""

    def __init__(self, containers: Sequence[str] = ("sessions", "phrases")) -> None:
        self._containers = set(containers)
        self._lock = threading.RLock()
        self._data: dict[tuple[str, str], dict[str, Record]] = {}

    def _partition(self, container: str, partition_key: str) -> dict[str, Record]:
        if container not in self._containers:
            raise ValidationAppError(
                code="unknown_container",
                message=f"Unknown container: '{container}'",
            )
        return self._data.setdefault((container, partition_key), {})

    @staticmethod
    def _record_id(record: Mapping[str, Any]) -> str:
        record_id = record.get("id")
        if not record_id:
            raise ValidationAppError(code="record_missing_id", message="Record has no id")
        return str(record_id)

    def _conflict(self, container: str, partition_key: str, record_id: str) -> RecordConflictError:
        return RecordConflictError(
            code="record_conflict",
            message=f"Record '{record_id}' already exists in '{container}'",
            details={"context": {"container": container, "partition_key": partition_key}},
        )

    async def create(self, container: str, partition_key: str, record: Record) -> Record:
        record_id = self._record_id(record)
        with self._lock:
            partition = self._partition(container, partition_key)
            if record_id in partition:
                raise self._conflict(container, partition_key, record_id)
            partition[record_id] = copy.deepcopy(record)
        return copy.deepcopy(record)

    async def create_batch(
        self,
        container: str,
        partition_key: str,
        records: Sequence[Record],
    ) -> None:
        ids = [self._record_id(record) for record in records]
        with self._lock:
            partition = self._partition(container, partition_key)
            seen: set[str] = set()
            for record_id in ids:
                if record_id in partition or record_id in seen:
                    raise self._conflict(container, partition_key, record_id)
                seen.add(record_id)
            for record_id, record in zip(ids, records):
                partition[record_id] = copy.deepcopy(record)

    async def read(self, container: str, partition_key: str, record_id: str) -> Record | None:
        with self._lock:
            record = self._partition(container, partition_key).get(record_id)
            return copy.deepcopy(record) if record is not None else None

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
        with self._lock:
            records = [
                copy.deepcopy(record)
                for record in self._partition(container, partition_key).values()
                if all(record.get(field) == value for field, value in (filters or {}).items())
            ]

        if order_by:
            records.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by)), reverse=descending)
        if limit is not None:
            records = records[: max(0, limit)]
        return records

    async def replace(self, container: str, partition_key: str, record: Record) -> Record | None:
        record_id = self._record_id(record)
        with self._lock:
            partition = self._partition(container, partition_key)
            if record_id not in partition:
                return None
            partition[record_id] = copy.deepcopy(record)
        return copy.deepcopy(record)

    async def delete(self, container: str, partition_key: str, record_id: str) -> bool:
        with self._lock:
            return self._partition(container, partition_key).pop(record_id, None) is not None
