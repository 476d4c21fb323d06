"""Bundled persistence adapters."""

from kvbus.backends.json_file import JSONFilePersistenceAdapter
from kvbus.backends.memory import MemoryPersistenceAdapter
from kvbus.backends.sqlite import SQLitePersistenceAdapter

__all__ = [
    "JSONFilePersistenceAdapter",
    "MemoryPersistenceAdapter",
    "SQLitePersistenceAdapter",
]
