"""KVBus exceptions."""


class KVBusError(Exception):
    """Base exception for kvbus."""

    pass


class ConfigError(KVBusError):
    """Configuration error."""

    pass


class KeyExistsError(KVBusError):
    """Key is already present and valid, and override was not requested."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Key {key} already exists")
        self.key = key


class KeyNotFoundError(KVBusError, KeyError):
    """Key is not present in the store."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Key {key} does not exist")
        self.key = key

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class KeyExpiredError(KVBusError):
    """Key was present but its entry has expired."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Key {key} has expired")
        self.key = key


class NoPersistenceAdapterError(KVBusError):
    """persist/restore called on a store without a persistence adapter."""

    def __init__(self) -> None:
        super().__init__("No persistence adapter provided")
