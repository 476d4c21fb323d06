"""JSON file persistence adapter."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from kvbus.backends.encoding import encode_value
from kvbus.entry import WrappedValue
from kvbus.protocols import EntryPairs


class JSONFilePersistenceAdapter:
    """Persists entries as a single JSON document on the local filesystem.

    The document is a list of ``{"key", "value", "expiry_time"}`` objects
    in map order. Values must survive a JSON round trip unchanged (no
    tuples or non-str dict keys); others raise ``TypeError`` before the
    file is touched. Writes go to a temp file in the same directory which
    then replaces the target, so a reader never sees a half-written
    document.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        indent: int | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize JSON file adapter.

        Args:
            path: Target file. Defaults to ./data/kvbus.json
            indent: Optional JSON indentation for human-readable output
            **kwargs: Ignored (for compatibility with other backends)
        """
        self.path = Path(path) if path else Path("./data/kvbus.json")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.indent = indent

    def persist(self, entries: EntryPairs) -> None:
        """Write every entry to the file, replacing its previous contents."""
        for key, entry in entries:
            encode_value(key, entry.value)
        document = [{"key": key, **entry.to_dict()} for key, entry in entries]
        payload = json.dumps(document, indent=self.indent)

        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def restore(self) -> list[tuple[str, WrappedValue[Any]]]:
        """Read entries back in file order. A missing file restores nothing."""
        if not self.path.exists():
            return []

        with self.path.open(encoding="utf-8") as f:
            document = json.load(f)

        if not isinstance(document, list):
            raise ValueError(f"Invalid persistence file {self.path}: expected a list")

        return [(item["key"], WrappedValue.from_dict(item)) for item in document]
