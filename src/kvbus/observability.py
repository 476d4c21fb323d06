"""Structured logging and metric hooks for kvbus.

Log lines are single JSON objects. Store operations pass their details
(``key``, ``reason``, ``entries``...) as keyword fields, which land at the
top level of the line next to the ``store`` and ``transaction`` of the
current ``StoreContext``.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

store_name_var: ContextVar[str | None] = ContextVar("store_name", default=None)
transaction_id_var: ContextVar[str | None] = ContextVar("transaction_id", default=None)

# Attribute on LogRecord carrying the keyword fields of a StructuredLogger call
FIELDS_ATTR = "kvbus_fields"


class LogLevel(str, Enum):
    """Log levels matching Python's logging module."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StructuredFormatter(logging.Formatter):
    """Renders a record as one JSON object.

    Fixed keys are ``level``, ``message``, ``timestamp`` and ``logger``,
    then ``store``/``transaction`` from the context variables, then the
    call's fields. ``error`` and ``duration_ms`` are added when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "logger": record.name,
        }

        store_name = store_name_var.get()
        if store_name:
            data["store"] = store_name
        transaction_id = transaction_id_var.get()
        if transaction_id:
            data["transaction"] = transaction_id

        fields = getattr(record, FIELDS_ATTR, None)
        if fields:
            # Fixed keys win over a field of the same name
            data.update({k: v for k, v in fields.items() if k not in data})

        duration_ms = getattr(record, "duration_ms", None)
        if duration_ms is not None:
            data["duration_ms"] = round(duration_ms, 3)

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, _ = record.exc_info
            data["error"] = {"type": exc_type.__name__, "message": str(exc)}

        return json.dumps(data, default=str)


class StructuredLogger:
    """Logger taking structured fields as keyword arguments.

    Handlers live on the ``kvbus`` logger (see ``configure_logging``);
    module loggers only propagate to it.

    Example:
        logger = get_logger("kvbus.store")
        logger.debug("Evicted expired key", key="a", reason="sweep")
        logger.warning("Transaction rolled back", error=exc)
    """

    def __init__(self, name: str, level: LogLevel | None = None) -> None:
        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(level.value)

    def _log(
        self,
        level: int,
        message: str,
        fields: dict[str, Any],
        error: BaseException | None = None,
        duration_ms: float | None = None,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra: dict[str, Any] = {FIELDS_ATTR: fields}
        if duration_ms is not None:
            extra["duration_ms"] = duration_ms
        exc_info = (type(error), error, error.__traceback__) if error is not None else None
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **fields: Any) -> None:
        """Log at DEBUG level."""
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, duration_ms: float | None = None, **fields: Any) -> None:
        """Log at INFO level."""
        self._log(logging.INFO, message, fields, duration_ms=duration_ms)

    def warning(
        self, message: str, error: BaseException | None = None, **fields: Any
    ) -> None:
        """Log at WARNING level."""
        self._log(logging.WARNING, message, fields, error)

    def error(
        self, message: str, error: BaseException | None = None, **fields: Any
    ) -> None:
        """Log at ERROR level."""
        self._log(logging.ERROR, message, fields, error)


class StoreContext:
    """Binds a store name and transaction id to logs and metrics in a block.

    Nested contexts override only the values they set.

    Example:
        with StoreContext(store_name="sessions", transaction_id="tx-1"):
            logger.info("Committing")
    """

    def __init__(
        self,
        store_name: str | None = None,
        transaction_id: str | None = None,
    ) -> None:
        self.store_name = store_name
        self.transaction_id = transaction_id
        self._tokens: list[tuple[ContextVar, Any]] = []

    @classmethod
    def for_transaction(cls, store_name: str | None) -> "StoreContext":
        """Build a context with a freshly generated transaction id."""
        return cls(store_name=store_name, transaction_id=uuid.uuid4().hex[:12])

    def __enter__(self) -> "StoreContext":
        for var, value in (
            (store_name_var, self.store_name),
            (transaction_id_var, self.transaction_id),
        ):
            if value:
                self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, *args: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


class Timer:
    """Measures the wall time of a block in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self.duration_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.duration_ms = (time.perf_counter() - self._start) * 1000


# Receives (name, value, labels)
MetricCallback = Callable[[str, float, dict[str, Any]], None]

_metric_callbacks: list[MetricCallback] = []


def register_metric_callback(callback: MetricCallback) -> None:
    """Register a callback to receive every emitted metric."""
    _metric_callbacks.append(callback)


def unregister_metric_callback(callback: MetricCallback) -> None:
    """Remove a previously registered callback. No-op if not registered."""
    if callback in _metric_callbacks:
        _metric_callbacks.remove(callback)


def emit_metric(name: str, value: float, labels: dict[str, Any] | None = None) -> None:
    """Send a metric to all registered callbacks.

    The current store name is added as the ``store_name`` label unless the
    caller already set one. A failing callback never reaches the caller.
    """
    labels = dict(labels or {})
    store_name = store_name_var.get()
    if store_name:
        labels.setdefault("store_name", store_name)

    for callback in list(_metric_callbacks):
        try:
            callback(name, value, labels)
        except Exception:
            pass  # Don't let metric errors affect store operations


def emit_counter(name: str, labels: dict[str, Any] | None = None) -> None:
    """Emit a counter metric (increment by 1)."""
    emit_metric(name, 1.0, labels)


def emit_timer(name: str, duration_ms: float, labels: dict[str, Any] | None = None) -> None:
    """Emit a timer metric."""
    emit_metric(name, duration_ms, labels)


def configure_logging(level: LogLevel | str = LogLevel.INFO, format: str = "json") -> None:
    """Install a single stdout handler on the ``kvbus`` logger.

    Args:
        level: Minimum log level
        format: "json" for StructuredFormatter, "text" for plain lines
    """
    if format not in ("json", "text"):
        raise ValueError(f"Unknown log format: {format}. Use 'json' or 'text'.")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        StructuredFormatter()
        if format == "json"
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )

    kvbus_logger = logging.getLogger("kvbus")
    kvbus_logger.handlers.clear()
    kvbus_logger.addHandler(handler)
    kvbus_logger.setLevel(LogLevel(level).value)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module (typically ``__name__``)."""
    return StructuredLogger(name)
