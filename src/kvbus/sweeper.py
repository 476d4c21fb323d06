"""Periodic sweep scheduling on the asyncio event loop."""

import asyncio
from typing import Any, Callable

from kvbus.observability import emit_counter, get_logger

logger = get_logger(__name__)

DEFAULT_CLEAN_INTERVAL_MS = 60_000


class PeriodicSweeper:
    """Calls a sweep function every ``interval_ms`` on the running loop.

    The store never needs one; hosts without their own scheduler can let
    ``KVBus.start_sweeper`` own it so ``dispose`` cancels it.

    Example:
        sweeper = PeriodicSweeper(store.clean, interval_ms=30_000)
        sweeper.start()  # inside a running event loop
        ...
        sweeper.stop()
    """

    def __init__(
        self,
        sweep: Callable[[], Any],
        interval_ms: int = DEFAULT_CLEAN_INTERVAL_MS,
    ) -> None:
        """Initialize sweeper.

        Args:
            sweep: Zero-argument callable run on every tick
            interval_ms: Delay between ticks in milliseconds
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.sweep = sweep
        self.interval_ms = interval_ms
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Whether the sweep task is scheduled and not finished."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop. Must be called with a running event loop."""
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())

    def stop(self) -> None:
        """Cancel the sweep loop. No-op if not running.

        Safe to call from any thread: off the loop's thread the cancel is
        handed to the loop instead of touching the task directly.
        """
        task, self._task = self._task, None
        if task is None or task.done():
            return

        loop = task.get_loop()
        try:
            on_loop = asyncio.get_running_loop() is loop
        except RuntimeError:
            on_loop = False

        if on_loop:
            task.cancel()
        elif not loop.is_closed():
            loop.call_soon_threadsafe(task.cancel)

    async def aclose(self) -> None:
        """Cancel the sweep loop and wait until it has finished.

        Must be awaited on the loop the sweeper was started on.
        """
        task = self._task
        self.stop()
        if task is not None:
            await asyncio.wait([task])

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_ms / 1000)
            try:
                self.sweep()
            except Exception as e:
                # Keep ticking; the next sweep retries the whole map
                emit_counter("kvbus.sweep_errors")
                logger.error("Periodic sweep failed", error=e)
