"""Record store interface.

Records are plain JSON-compatible dicts carrying an ``id`` and a partition
field. Nothing here promises transactions across partitions; a batch is only
grouped within one partition.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

Record = dict[str, Any]


class AbstractRecordStore(ABC):
    """Partitioned document store used by the repositories."""

    #: False for stores that silently drop writes.
    available: bool = True

    async def initialize(self) -> None:
        """Create containers or open connections. Called once at startup.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """

    @abstractmethod
    async def create(self, container: str, partition_key: str, record: Record) -> Record:
        """Insert a new record.

        Raises:
            RecordConflictError: If the id already exists in the partition.
        """
        raise NotImplementedError

    @abstractmethod
    async def create_batch(
        self,
        container: str,
        partition_key: str,
        records: Sequence[Record],
    ) -> None:
        """Insert several records of one partition as a single grouped write.

        Either all records are written or none are.

        Raises:
            RecordConflictError: If any id already exists (nothing is written).
        """
        raise NotImplementedError

    @abstractmethod
    async def read(self, container: str, partition_key: str, record_id: str) -> Record | None:
        """Point read; None when the record does not exist."""
        raise NotImplementedError

    @abstractmethod
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
        """Return records of a partition whose fields equal ``filters``."""
        raise NotImplementedError

    @abstractmethod
    async def replace(self, container: str, partition_key: str, record: Record) -> Record | None:
        """Overwrite an existing record; None when it does not exist."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, container: str, partition_key: str, record_id: str) -> bool:
        """Delete by partition and id; False when it did not exist."""
        raise NotImplementedError
