"""In-memory storage backends for development and testing."""

import asyncio
import base64
import math
import time
from collections.abc import Callable
from datetime import datetime, timezone

from waitlist.core.exceptions import StorageError
from waitlist.storage.base import CounterStore, ListPage, ObjectStore, StoredObject


class InMemoryCounterStore(CounterStore):
    """In-memory counter store.

    Only suitable for a single process; multiple workers each get their own
    counters.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._counters: dict[str, tuple[int, float | None]] = {}
        self._lock = asyncio.Lock()

    def _live(self, key: str) -> tuple[int, float | None] | None:
        entry = self._counters.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._counters[key]
            return None
        return entry

    async def incr(self, key: str) -> int:
        async with self._lock:
            entry = self._live(key)
            count, expires_at = entry if entry else (0, None)
            count += 1
            self._counters[key] = (count, expires_at)
            return count

    async def expire(self, key: str, seconds: int) -> None:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return
            self._counters[key] = (entry[0], self._clock() + seconds)

    async def ttl(self, key: str) -> int:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return -2
            _, expires_at = entry
            if expires_at is None:
                return -1
            return max(0, math.ceil(expires_at - self._clock()))

    async def health_check(self) -> bool:
        return True


class InMemoryObjectStore(ObjectStore):
    """In-memory object store.

    Listing is lexical by key; the cursor encodes the last key returned.
    """

    def __init__(self) -> None:
        self._objects: dict[str, tuple[bytes, datetime]] = {}

    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        self._objects[key] = (data, datetime.now(timezone.utc))

    async def list(self, prefix: str, limit: int, cursor: str | None = None) -> ListPage:
        keys = sorted(k for k in self._objects if k.startswith(prefix))

        if cursor:
            after = _decode_cursor(cursor)
            keys = [k for k in keys if k > after]

        page_keys = keys[:limit]
        has_more = len(keys) > limit
        objects = [
            StoredObject(key=k, uploaded_at=self._objects[k][1], size=len(self._objects[k][0]))
            for k in page_keys
        ]
        next_cursor = _encode_cursor(page_keys[-1]) if has_more and page_keys else None
        return ListPage(objects=objects, cursor=next_cursor, has_more=has_more)

    async def get(self, key: str) -> bytes:
        try:
            return self._objects[key][0]
        except KeyError:
            raise StorageError(f"Object not found: {key}", operation="get")

    async def health_check(self) -> bool:
        return True

    # ==================== Development Helpers ====================

    # Quoted: inside this class body ``list`` is the method above
    def keys(self) -> "list[str]":
        return sorted(self._objects)


def _encode_cursor(key: str) -> str:
    return base64.urlsafe_b64encode(key.encode("utf-8")).decode("ascii")


def _decode_cursor(cursor: str) -> str:
    try:
        return base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
    except (ValueError, UnicodeError):
        raise StorageError("Malformed listing cursor", operation="list")
