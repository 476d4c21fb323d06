"""SQLite persistence adapter."""

import sqlite3
from pathlib import Path
from typing import Any

from kvbus.backends.encoding import decode_value, encode_value
from kvbus.entry import WrappedValue
from kvbus.protocols import EntryPairs

_CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS {table} (
        position INTEGER PRIMARY KEY,
        key TEXT NOT NULL,
        value TEXT NOT NULL,
        expiry_time INTEGER
    )
"""


class SQLitePersistenceAdapter:
    """Persists entries as rows of a SQLite table.

    Suitable for development and single-host deployments. Values are
    stored JSON-encoded and must survive a JSON round trip unchanged. Each
    ``persist`` replaces the table contents inside one SQL transaction.
    """

    def __init__(
        self,
        path: str | None = None,
        table: str = "kvbus_entries",
        **kwargs: Any,
    ) -> None:
        """Initialize SQLite adapter.

        Args:
            path: Path to SQLite database file. Defaults to ./data/kvbus.db
                  Use ":memory:" for an in-memory database.
            table: Table holding the entries
            **kwargs: Ignored (for compatibility with other backends)
        """
        if path == ":memory:":
            self.path: str | Path = ":memory:"
        else:
            self.path = Path(path) if path else Path("./data/kvbus.db")
            self.path.parent.mkdir(parents=True, exist_ok=True)

        if not table.isidentifier():
            raise ValueError(f"Invalid table name: {table}")
        self.table = table
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.path), check_same_thread=False)
            self._conn.execute(_CREATE_TABLE.format(table=self.table))
            self._conn.commit()
        return self._conn

    def persist(self, entries: EntryPairs) -> None:
        """Replace all stored rows with the given entries."""
        rows = [
            (position, key, encode_value(key, entry.value), entry.expiry_time)
            for position, (key, entry) in enumerate(entries)
        ]
        conn = self._get_connection()
        # Connection as context manager commits, or rolls back on error
        with conn:
            conn.execute(f"DELETE FROM {self.table}")
            conn.executemany(
                f"INSERT INTO {self.table} (position, key, value, expiry_time) "
                "VALUES (?, ?, ?, ?)",
                rows,
            )

    def restore(self) -> list[tuple[str, WrappedValue[Any]]]:
        """Read entries back in the order they were persisted."""
        cursor = self._get_connection().execute(
            f"SELECT key, value, expiry_time FROM {self.table} ORDER BY position"
        )
        return [
            (key, WrappedValue(value=decode_value(value), expiry_time=expiry_time))
            for key, value, expiry_time in cursor.fetchall()
        ]

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
