"""In-memory persistence adapter."""

from typing import Any

from kvbus.entry import WrappedValue
from kvbus.protocols import EntryPairs


class MemoryPersistenceAdapter:
    """Keeps the last persisted entry sequence in process memory.

    Suitable for development and testing. Data is lost on restart.
    Sharing one instance between stores lets a fresh store restore what
    another persisted.
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize memory adapter.

        Args:
            **kwargs: Ignored (for compatibility with other backends)
        """
        self._entries: list[tuple[str, WrappedValue[Any]]] = []

    def persist(self, entries: EntryPairs) -> None:
        """Store a copy of the entry sequence, replacing the previous one."""
        self._entries = list(entries)

    def restore(self) -> list[tuple[str, WrappedValue[Any]]]:
        """Return a copy of the last persisted sequence (empty if none)."""
        return list(self._entries)

    def clear(self) -> None:
        """Forget persisted data. Useful for testing."""
        self._entries = []
