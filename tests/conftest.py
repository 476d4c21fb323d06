"""Pytest configuration and fixtures."""

import pytest

from kvbus.observability import register_metric_callback, unregister_metric_callback
from kvbus.store import KVBus


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    """A fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def store(clock):
    """A store driven by the fake clock."""
    bus = KVBus(name="test-store", clock=clock)
    yield bus
    bus.dispose()


@pytest.fixture
def metrics():
    """Collect emitted metrics as (name, value, labels) tuples."""
    collected: list[tuple[str, float, dict]] = []

    def callback(name: str, value: float, labels: dict) -> None:
        collected.append((name, value, labels))

    register_metric_callback(callback)
    yield collected
    unregister_metric_callback(callback)


@pytest.fixture
def sample_config_dict(tmp_path):
    """Sample configuration dictionary for testing."""
    return {
        "name": "test-store",
        "clean_interval_ms": 5000,
        "auto_clean": True,
        "persistence": {
            "backend": "file",
            "path": str(tmp_path / "store.json"),
            "indent": 2,
        },
        "logging": {"level": "DEBUG", "format": "text"},
    }
