"""PersistenceAdapter protocol for durable storage of a store's entries."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from kvbus.entry import WrappedValue

EntryPairs = Sequence[tuple[str, WrappedValue[Any]]]


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Protocol for persistence backends (memory, JSON file, SQLite).

    Adapters move the whole entry collection at once. Errors raised here
    propagate unchanged to the caller of ``KVBus.persist``/``KVBus.restore``.
    """

    def persist(self, entries: EntryPairs) -> None:
        """Durably store the full ordered sequence of (key, entry) pairs."""
        ...

    def restore(self) -> list[tuple[str, WrappedValue[Any]]]:
        """Return the sequence of (key, entry) pairs last persisted."""
        ...
