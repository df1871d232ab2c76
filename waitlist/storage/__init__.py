"""Storage layer - counter and object stores."""

from waitlist.storage.base import CounterStore, ListPage, ObjectStore, StoredObject
from waitlist.storage.memory import InMemoryCounterStore, InMemoryObjectStore

__all__ = [
    "CounterStore",
    "ObjectStore",
    "ListPage",
    "StoredObject",
    "InMemoryCounterStore",
    "InMemoryObjectStore",
]
