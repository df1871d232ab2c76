"""Abstract base classes for storage backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class StoredObject:
    """Reference to an object returned by a listing."""

    key: str
    uploaded_at: datetime
    size: int = 0


@dataclass
class ListPage:
    """One page of a prefix listing."""

    objects: list[StoredObject] = field(default_factory=list)
    cursor: str | None = None
    has_more: bool = False


class CounterStore(ABC):
    """Atomic counters with expiry, shared by every handler instance."""

    @abstractmethod
    async def incr(self, key: str) -> int:
        """Atomically increment a counter and return the new value."""
        ...

    @abstractmethod
    async def expire(self, key: str, seconds: int) -> None:
        """Set a counter's time-to-live."""
        ...

    @abstractmethod
    async def ttl(self, key: str) -> int:
        """Remaining time-to-live in seconds.

        Returns -1 when the key has no expiry and -2 when it does not exist.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the counter store is reachable."""
        ...


class ObjectStore(ABC):
    """Blob storage with prefix listing and opaque pagination cursors."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        """Write an object under a key."""
        ...

    @abstractmethod
    async def list(self, prefix: str, limit: int, cursor: str | None = None) -> ListPage:
        """List objects under a prefix, one page at a time."""
        ...

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Fetch an object's content by key."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the object store is reachable."""
        ...
