"""KVBus - An in-process key-value store with expiry and transactions."""

from kvbus.backends import (
    JSONFilePersistenceAdapter,
    MemoryPersistenceAdapter,
    SQLitePersistenceAdapter,
)
from kvbus.config import Config
from kvbus.entry import WrappedValue, is_valid, now_ms, validate_entry
from kvbus.exceptions import (
    ConfigError,
    KeyExistsError,
    KeyExpiredError,
    KeyNotFoundError,
    KVBusError,
    NoPersistenceAdapterError,
)
from kvbus.factory import create_persistence_adapter, create_store
from kvbus.observability import (
    LogLevel,
    StoreContext,
    StructuredLogger,
    Timer,
    configure_logging,
    emit_counter,
    emit_metric,
    emit_timer,
    get_logger,
    register_metric_callback,
)
from kvbus.protocols import PersistenceAdapter
from kvbus.store import KVBus
from kvbus.sweeper import PeriodicSweeper

__version__ = "0.1.0"
__all__ = [
    # Core
    "KVBus",
    "WrappedValue",
    "is_valid",
    "now_ms",
    "validate_entry",
    "PeriodicSweeper",
    # Persistence
    "PersistenceAdapter",
    "JSONFilePersistenceAdapter",
    "MemoryPersistenceAdapter",
    "SQLitePersistenceAdapter",
    # Configuration
    "Config",
    "create_persistence_adapter",
    "create_store",
    # Errors
    "ConfigError",
    "KVBusError",
    "KeyExistsError",
    "KeyExpiredError",
    "KeyNotFoundError",
    "NoPersistenceAdapterError",
    # Observability
    "LogLevel",
    "StoreContext",
    "StructuredLogger",
    "Timer",
    "configure_logging",
    "emit_counter",
    "emit_metric",
    "emit_timer",
    "get_logger",
    "register_metric_callback",
]
