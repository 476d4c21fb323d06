"""JSON encoding of stored values for the file and SQLite backends."""

import json
from typing import Any


def encode_value(key: str, value: Any) -> str:
    """Serialize a value, refusing anything JSON would not give back as-is.

    ``json.dumps`` turns tuples into lists and non-string dict keys into
    strings without complaint, so a value is only accepted if decoding its
    encoding compares equal to it.

    Raises:
        TypeError: If the value is not JSON-serializable or would restore
            as a different value
    """
    try:
        encoded = json.dumps(value)
    except (TypeError, ValueError) as e:
        raise TypeError(f"Value for key {key} is not JSON-serializable: {e}") from e

    if json.loads(encoded) != value:
        raise TypeError(
            f"Value for key {key} does not survive a JSON round trip "
            "(tuples, non-str dict keys and NaN are not supported)"
        )
    return encoded


def decode_value(encoded: str) -> Any:
    """Inverse of ``encode_value``."""
    return json.loads(encoded)
