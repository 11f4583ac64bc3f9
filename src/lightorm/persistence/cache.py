"""Identity cache keyed by (table, id).

Each entry keeps the content hash computed when the row was last written
or read, next to a private copy of the record. A hit is only trusted after
the repository compares that hash with the one stored in the table.

Records go in and come out as shallow copies with their relationship slots
cleared, so callers can mutate what they get back without touching the
cache, and cached records never pin related graphs in memory.
"""

import copy
import dataclasses
import threading
from dataclasses import dataclass
from typing import Any

from lightorm.metadata.record import RELATIONSHIP_KEY

CacheKey = tuple[str, int]


@dataclass(frozen=True)
class CacheEntry:
    content_hash: str
    record: Any


def _detached(record: Any) -> Any:
    clone = copy.copy(record)
    if dataclasses.is_dataclass(clone):
        for f in dataclasses.fields(clone):
            if RELATIONSHIP_KEY in f.metadata:
                setattr(clone, f.name, None)
    return clone


class IdentityCache:
    """Mutex-guarded map from (table, id) to the last known row.

    One instance is shared by every repository in a process; all methods
    are safe to call from multiple threads.
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get_entry(self, table: str, id: int) -> CacheEntry | None:
        """Entry for a key, with a copy of the cached record."""
        with self._lock:
            entry = self._entries.get((table, id))
        if entry is None:
            return None
        return CacheEntry(entry.content_hash, _detached(entry.record))

    def get(self, table: str, id: int) -> Any | None:
        entry = self.get_entry(table, id)
        return entry.record if entry else None

    def put(self, table: str, id: int, content_hash: str, record: Any) -> None:
        entry = CacheEntry(content_hash, _detached(record))
        with self._lock:
            self._entries[(table, id)] = entry

    def invalidate(self, table: str, id: int) -> None:
        with self._lock:
            self._entries.pop((table, id), None)

    def invalidate_table(self, table: str) -> None:
        """Drop every entry of one table."""
        with self._lock:
            for key in [k for k in self._entries if k[0] == table]:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
