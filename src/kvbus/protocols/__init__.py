"""Protocol interfaces for pluggable backends."""

from kvbus.protocols.persistence import EntryPairs, PersistenceAdapter

__all__ = [
    "EntryPairs",
    "PersistenceAdapter",
]
