"""In-process key-value store with per-key expiry and transactions.

Expired entries are removed lazily when a read discovers them and in bulk
by ``clean``. Both paths share ``validate_entry``.
"""

import threading
from typing import Any, Callable

from kvbus.entry import Clock, WrappedValue, now_ms, validate_entry
from kvbus.exceptions import (
    KeyExistsError,
    KeyExpiredError,
    KeyNotFoundError,
    NoPersistenceAdapterError,
)
from kvbus.observability import (
    StoreContext,
    Timer,
    emit_counter,
    emit_timer,
    get_logger,
)
from kvbus.protocols import PersistenceAdapter
from kvbus.sweeper import DEFAULT_CLEAN_INTERVAL_MS, PeriodicSweeper

logger = get_logger(__name__)


class KVBus:
    """Key-value store with optional per-key lifetime.

    Every public operation holds one re-entrant lock, so a transaction's
    mutation function can call back into the store while other threads
    wait for the whole batch.

    Example:
        bus = KVBus()
        bus.set("token", "abc", lifetime=30_000)
        bus.get("token")

        def move() -> None:
            bus.set("b", bus.get("a"))
            bus.delete("a")

        bus.transaction(move)
    """

    def __init__(
        self,
        persistence_adapter: PersistenceAdapter | None = None,
        clean_interval_ms: int = DEFAULT_CLEAN_INTERVAL_MS,
        name: str = "default",
        clock: Clock = now_ms,
    ) -> None:
        """Initialize store.

        Args:
            persistence_adapter: Backend used by persist/restore
            clean_interval_ms: Interval for a sweeper started via start_sweeper
            name: Store name included in log context and metric labels
            clock: Returns current time in ms; called at every validity check
        """
        self.name = name
        self.clean_interval_ms = clean_interval_ms
        self._persistence_adapter = persistence_adapter
        self._clock = clock
        self._data: dict[str, WrappedValue[Any]] = {}
        self._lock = threading.RLock()
        self._sweeper: PeriodicSweeper | None = None

    def set(
        self,
        key: str,
        value: Any,
        override: bool = False,
        lifetime: int | None = None,
    ) -> None:
        """Store a value.

        Args:
            key: Key to store under
            value: Any value
            override: Replace an existing valid entry instead of failing
            lifetime: Time-to-live in ms from now; falsy means never expires

        Raises:
            KeyExistsError: If key holds a valid entry and override is False
        """
        with self._lock:
            # has() evicts an expired entry, so stale keys never block a set
            if self.has(key) and not override:
                raise KeyExistsError(key)
            self._data[key] = WrappedValue.wrap(value, lifetime, self._clock())

    def get(self, key: str) -> Any:
        """Get the value stored under key.

        Raises:
            KeyNotFoundError: If key is absent
            KeyExpiredError: If the entry has expired; the key is evicted first
        """
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                raise KeyNotFoundError(key)

            try:
                validate_entry(key, entry, self._clock())
            except KeyExpiredError:
                self._evict(key, reason="lazy")
                raise

            return entry.value

    def has(self, key: str) -> bool:
        """Check whether key holds a valid entry, evicting it if expired."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return False

            try:
                validate_entry(key, entry, self._clock())
            except KeyExpiredError:
                self._evict(key, reason="lazy")
                return False

            return True

    def delete(self, key: str) -> None:
        """Delete a key. No-op if key doesn't exist."""
        with self._lock:
            self._data.pop(key, None)

    def clean(self) -> int:
        """Evict every entry that has expired.

        Returns number of entries evicted.
        """
        with self._lock:
            now = self._clock()
            evicted = 0
            # Iterate a snapshot; evictions mutate the live dict
            for key, entry in list(self._data.items()):
                try:
                    validate_entry(key, entry, now)
                except KeyExpiredError:
                    self._evict(key, reason="sweep")
                    evicted += 1

            if evicted:
                logger.debug("Swept expired entries", store=self.name, evicted=evicted)
            return evicted

    def transaction(self, mutate: Callable[[], None]) -> None:
        """Run mutate with all-or-nothing semantics.

        The map is shallow-copied before ``mutate`` runs. If it raises, the
        copy is reinstated, undoing every set, delete and eviction made
        inside, and the exception is re-raised unchanged.
        """
        with self._lock, StoreContext.for_transaction(self.name):
            backup = dict(self._data)
            logger.debug("Transaction started", entries=len(backup))
            try:
                mutate()
            except BaseException as e:
                self._data = backup
                emit_counter("kvbus.transactions", {"outcome": "rollback"})
                logger.warning("Transaction rolled back", error=e)
                raise
            emit_counter("kvbus.transactions", {"outcome": "commit"})
            logger.debug("Transaction committed", entries=len(self._data))

    def persist(self) -> None:
        """Hand every entry, expired or not, to the persistence adapter.

        Raises:
            NoPersistenceAdapterError: If no adapter was configured
        """
        with self._lock:
            adapter = self._require_adapter()
            entries = list(self._data.items())
            with Timer() as t:
                adapter.persist(entries)
            emit_timer("kvbus.persist", t.duration_ms, {"store_name": self.name})
            logger.info(
                "Persisted entries",
                store=self.name,
                entries=len(entries),
                duration_ms=t.duration_ms,
            )

    def restore(self) -> None:
        """Replace the whole map with the adapter's entries.

        Raises:
            NoPersistenceAdapterError: If no adapter was configured
        """
        with self._lock:
            adapter = self._require_adapter()
            with Timer() as t:
                entries = adapter.restore()
            self._data = dict(entries)
            emit_timer("kvbus.restore", t.duration_ms, {"store_name": self.name})
            logger.info(
                "Restored entries",
                store=self.name,
                entries=len(self._data),
                duration_ms=t.duration_ms,
            )

    def start_sweeper(self, interval_ms: int | None = None) -> PeriodicSweeper:
        """Start an owned periodic sweep on the running event loop.

        The sweeper is cancelled by ``dispose``. Calling this again while a
        sweeper is running returns the existing one.
        """
        with self._lock:
            if self._sweeper is None or not self._sweeper.running:
                self._sweeper = PeriodicSweeper(
                    self.clean,
                    interval_ms=interval_ms or self.clean_interval_ms,
                )
                self._sweeper.start()
            return self._sweeper

    def dispose(self) -> None:
        """Clear all entries, drop the adapter and stop the owned sweeper."""
        with self._lock:
            self._data = {}
            self._persistence_adapter = None
            if self._sweeper is not None:
                self._sweeper.stop()
                self._sweeper = None

    @property
    def size(self) -> int:
        """Number of entries held, including expired ones not yet evicted."""
        return len(self._data)

    @property
    def persistence_adapter(self) -> PersistenceAdapter | None:
        """The configured persistence adapter, if any."""
        return self._persistence_adapter

    @property
    def sweeper(self) -> PeriodicSweeper | None:
        """The owned periodic sweeper, if one was started."""
        return self._sweeper

    def __enter__(self) -> "KVBus":
        return self

    def __exit__(self, *args: Any) -> None:
        self.dispose()

    def _require_adapter(self) -> PersistenceAdapter:
        if self._persistence_adapter is None:
            raise NoPersistenceAdapterError()
        return self._persistence_adapter

    def _evict(self, key: str, reason: str) -> None:
        """Remove an expired entry (caller must hold lock)."""
        del self._data[key]
        emit_counter("kvbus.evictions", {"reason": reason, "store_name": self.name})
        logger.debug("Evicted expired key", store=self.name, key=key, reason=reason)
