"""
Sweeper Module

Background expiration for KVStore. A sweeper wakes every `interval`
seconds and asks its store to remove expired entries.

Two runners share the same contract:
- Sweeper: a daemon thread, started by KVStore when sweep_interval > 0
- AsyncSweeper: an asyncio task, for applications that own an event loop

Both hold only a weak reference to the store, so a store that is
dropped without close() can still be collected; the runner notices and
exits. A failing sweep pass is logged and the loop keeps going.
"""

import asyncio
import logging
import threading
import weakref
from typing import Optional

logger = logging.getLogger(__name__)


def _sweep(store_ref: "weakref.ref") -> bool:
    """
    Run one sweep pass on the referenced store.

    Returns:
        False if the store is gone and the caller should stop
    """
    store = store_ref()
    if store is None:
        logger.debug("Store was collected, sweeper exiting")
        return False
    try:
        removed = store.delete_expired()
    except Exception as exc:  # Log sweep failures but keep the loop alive
        logger.exception(f"Sweep failed: {exc}")
        return True
    if removed:
        logger.debug(f"Sweep removed {removed} expired keys")
    return True


class Sweeper:
    """
    Thread-based expiration sweeper.

    Usage:
        sweeper = Sweeper(store, interval=5)
        sweeper.start()
        ...
        sweeper.stop()

    Attributes:
        interval: Seconds between sweep passes (must be positive)
    """

    def __init__(self, store, interval: float):
        """
        Initialize the sweeper.

        Args:
            store: Any object with a delete_expired() -> int method
            interval: Seconds between sweep passes

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._store_ref = weakref.ref(store)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the background thread. Calling start() twice is a no-op."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run,
            name=f"memkv-sweeper-{id(self):x}",
            daemon=True,
        )
        self._thread.start()
        logger.debug(f"Sweeper started (interval={self.interval}s)")

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            if not _sweep(self._store_ref):
                break

    def run_once(self) -> int:
        """Run a single sweep pass in the calling thread."""
        store = self._store_ref()
        if store is None:
            return 0
        return store.delete_expired()

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Signal the thread to stop and wait for it to exit.

        Safe to call more than once, and from the sweeper thread itself
        (in which case it does not join).
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            logger.debug("Sweeper stopped")

    def is_running(self) -> bool:
        """Check if the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()


class AsyncSweeper:
    """
    asyncio-based expiration sweeper.

    Each sweep pass runs in a worker thread, so waiting on the store
    lock never blocks the event loop.

    Usage:
        async with AsyncSweeper(store, interval=5):
            await serve()
    """

    def __init__(self, store, interval: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._store_ref = weakref.ref(store)
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Async sweeper started (interval={self.interval}s)")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if not await asyncio.to_thread(_sweep, self._store_ref):
                return

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            # Expected on shutdown
            pass
        logger.debug("Async sweeper stopped")

    def is_running(self) -> bool:
        """Check if the sweep task is still scheduled."""
        return self._task is not None and not self._task.done()

    async def __aenter__(self) -> "AsyncSweeper":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
