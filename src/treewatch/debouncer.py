"""Per-path debouncing of notification bursts."""

import logging
import threading
from typing import Callable, Dict

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Delays an action per path until the path has been quiet for a window.

    Each path has at most one pending timer. Scheduling a path that already
    has one cancels it and starts over with the new action, so only the last
    action of a burst ever runs. Timers for different paths are independent.
    """

    def __init__(self, window_seconds: float):
        """
        Initialize the debouncer.

        Args:
            window_seconds: Quiet window in seconds

        Raises:
            ValueError: If the window is not positive
        """
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")
        self.window_seconds = window_seconds
        self._pending: Dict[str, threading.Timer] = {}
        self._lock = threading.Lock()
        self._closed = False

    def schedule(self, path: str, action: Callable[[], None]) -> bool:
        """
        Run ``action`` once ``path`` has been quiet for the window.

        Args:
            path: Key the burst is coalesced on
            action: Zero-argument callable to run on expiry

        Returns:
            True if scheduled, False if the debouncer is closed
        """
        with self._lock:
            if self._closed:
                return False

            existing = self._pending.get(path)
            if existing is not None:
                existing.cancel()

            timer = threading.Timer(self.window_seconds, self._fire, args=(path, action))
            timer.daemon = True
            self._pending[path] = timer
            timer.start()
            return True

    def _fire(self, path: str, action: Callable[[], None]) -> None:
        timer = threading.current_thread()
        with self._lock:
            # A replaced timer can still wake up if cancel() lost the race.
            if self._pending.get(path) is not timer:
                return
            del self._pending[path]

        try:
            action()
        except Exception:
            logger.exception(f"Debounced action for {path} failed")

    def cancel(self, path: str) -> bool:
        """
        Cancel the pending timer for a path.

        Returns:
            True if a timer was pending
        """
        with self._lock:
            timer = self._pending.pop(path, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def cancel_all(self) -> int:
        """
        Cancel every pending timer.

        Returns:
            Number of timers cancelled
        """
        with self._lock:
            timers = list(self._pending.values())
            self._pending.clear()
        for timer in timers:
            timer.cancel()
        return len(timers)

    def close(self) -> int:
        """Cancel everything and ignore later schedule() calls."""
        with self._lock:
            self._closed = True
        return self.cancel_all()

    @property
    def closed(self) -> bool:
        return self._closed

    def pending_count(self) -> int:
        """Get number of paths with a timer in flight."""
        with self._lock:
            return len(self._pending)

    def __len__(self) -> int:
        return self.pending_count()

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._pending
