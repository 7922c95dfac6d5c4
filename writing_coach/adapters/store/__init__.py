"""Record store adapters.

Repositories talk to an ``AbstractRecordStore``: a partitioned document
store with create, point read, filtered query, replace and delete. The
bundled engine keeps records in memory; ``NullRecordStore`` stands in when
the real store could not be initialized.
"""

from writing_coach.adapters.store.base import AbstractRecordStore
from writing_coach.adapters.store.in_memory import InMemoryRecordStore
from writing_coach.adapters.store.null import NullRecordStore

__all__ = [
    "AbstractRecordStore",
    "InMemoryRecordStore",
    "NullRecordStore",
]
