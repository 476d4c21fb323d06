"""Tests for SQLite persistence adapter."""

import pytest

from kvbus.backends.sqlite import SQLitePersistenceAdapter
from kvbus.entry import WrappedValue
from kvbus.store import KVBus


@pytest.fixture
def adapter():
    """Create an in-memory SQLite adapter."""
    backend = SQLitePersistenceAdapter(path=":memory:")
    yield backend
    backend.close()


class TestSQLitePersistenceAdapter:
    """Tests for SQLitePersistenceAdapter."""

    def test_restore_empty(self, adapter):
        """Test restoring from an empty table."""
        assert adapter.restore() == []

    def test_persist_and_restore(self, adapter):
        """Test that entries come back in persisted order."""
        entries = [
            ("b", WrappedValue([1, "two"], expiry_time=1_700_000_000_500)),
            ("a", WrappedValue(None)),
            ("c", WrappedValue({"k": True})),
        ]
        adapter.persist(entries)
        assert adapter.restore() == entries

    def test_persist_replaces_rows(self, adapter):
        """Test that persisting again replaces the table contents."""
        adapter.persist([("a", WrappedValue(1)), ("b", WrappedValue(2))])
        adapter.persist([("c", WrappedValue(3))])
        assert adapter.restore() == [("c", WrappedValue(3))]

    def test_failed_persist_rolls_back(self, adapter):
        """Test that a failing persist keeps the previous rows."""
        adapter.persist([("a", WrappedValue(1))])
        with pytest.raises(TypeError):
            adapter.persist([("bad", WrappedValue(object()))])
        assert adapter.restore() == [("a", WrappedValue(1))]

    @pytest.mark.parametrize("value", [(1, 2), {1: "x"}, [{"k": (3,)}]])
    def test_value_changed_by_json_is_rejected(self, adapter, value):
        """Test that values JSON would alter are refused and rows are kept."""
        adapter.persist([("a", WrappedValue(1))])
        with pytest.raises(TypeError, match="does not survive a JSON round trip"):
            adapter.persist([("t", WrappedValue(value))])
        assert adapter.restore() == [("a", WrappedValue(1))]

    def test_store_with_int_keyed_dict_fails_to_persist(self, adapter, clock):
        """Test that a store holding an int-keyed dict cannot persist it."""
        store = KVBus(persistence_adapter=adapter, clock=clock)
        store.set("d", {1: "x"})
        with pytest.raises(TypeError):
            store.persist()
        assert adapter.restore() == []

    def test_invalid_table_name(self):
        """Test that table names must be identifiers."""
        with pytest.raises(ValueError, match="Invalid table name"):
            SQLitePersistenceAdapter(path=":memory:", table="x; DROP TABLE y")

    def test_file_database(self, tmp_path):
        """Test persisting to a file and reading with a new connection."""
        path = str(tmp_path / "db" / "store.db")
        writer = SQLitePersistenceAdapter(path=path)
        writer.persist([("a", WrappedValue("x", expiry_time=5))])
        writer.close()

        reader = SQLitePersistenceAdapter(path=path)
        assert reader.restore() == [("a", WrappedValue("x", expiry_time=5))]
        reader.close()

    def test_round_trip_through_store(self, adapter, clock):
        """Test persisting one store and restoring into another."""
        source = KVBus(persistence_adapter=adapter, clock=clock)
        source.set("a", {"x": 1}, lifetime=50)
        source.set("b", "forever")
        source.persist()

        target = KVBus(persistence_adapter=adapter, clock=clock)
        target.restore()

        assert target.get("a") == {"x": 1}
        assert target.get("b") == "forever"
