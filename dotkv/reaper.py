"""Background eviction of expired entries."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Reaper:
    """Calls a sweep function on a fixed interval from a daemon thread.

    The thread is a daemon, so a running reaper never keeps the process
    alive. A sweep that raises is logged and the next tick still runs.

    Example:
        reaper = Reaper(store.clean_expired, interval=60_000)
        reaper.start()
        ...
        reaper.stop()
    """

    def __init__(self, sweep: Callable[[], object], interval: float):
        """Create a reaper.

        Args:
            sweep: Called once per tick
            interval: Milliseconds between ticks; 0 means never start
        """
        self._sweep = sweep
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start ticking. Does nothing if disabled or already running."""
        if self.interval <= 0 or self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="dotkv-reaper", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop ticking and wait for the thread to exit. Safe to call twice."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        while not self._stop.wait(self.interval / 1000.0):
            self.tick()

    def tick(self) -> None:
        """Run one sweep now, logging any failure."""
        try:
            self._sweep()
        except Exception:
            logger.exception("Expired entry sweep failed")
