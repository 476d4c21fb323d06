"""Factory functions for building stores from configuration."""

import asyncio

from kvbus.config import Config, PersistenceConfig
from kvbus.exceptions import ConfigError
from kvbus.observability import configure_logging, get_logger
from kvbus.protocols import PersistenceAdapter
from kvbus.store import KVBus

logger = get_logger(__name__)


def create_persistence_adapter(config: PersistenceConfig) -> PersistenceAdapter | None:
    """Create a persistence adapter based on backend.

    Args:
        config: Persistence settings

    Returns:
        Configured adapter, or None for the "none" backend

    Raises:
        ConfigError: If backend is unknown
    """
    if config.backend == "none":
        return None

    elif config.backend == "memory":
        from kvbus.backends.memory import MemoryPersistenceAdapter

        return MemoryPersistenceAdapter()

    elif config.backend == "file":
        from kvbus.backends.json_file import JSONFilePersistenceAdapter

        return JSONFilePersistenceAdapter(path=config.path, indent=config.indent)

    elif config.backend == "sqlite":
        from kvbus.backends.sqlite import SQLitePersistenceAdapter

        return SQLitePersistenceAdapter(path=config.path, table=config.table)

    else:
        raise ConfigError(
            f"Unknown persistence backend: {config.backend}. "
            "Use 'none', 'memory', 'file' or 'sqlite'."
        )


def create_store(config: Config | None = None, setup_logging: bool = False) -> KVBus:
    """Create a store from configuration.

    With ``config.auto_clean`` the store starts its own sweeper when called
    inside a running event loop. Without a loop a warning is logged and the
    host is left to call ``start_sweeper()`` or ``clean()`` itself.

    Args:
        config: Store configuration (defaults apply if None)
        setup_logging: Also apply ``config.logging`` to the kvbus logger

    Returns:
        Configured store
    """
    config = config or Config()
    if setup_logging:
        configure_logging(config.logging.level, config.logging.format)

    store = KVBus(
        persistence_adapter=create_persistence_adapter(config.persistence),
        clean_interval_ms=config.clean_interval_ms,
        name=config.name,
    )
    logger.debug(
        "Store created", store=config.name, persistence=config.persistence.backend
    )

    if config.auto_clean:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "auto_clean requested without a running event loop; sweeper not started",
                store=config.name,
            )
        else:
            store.start_sweeper()

    return store
