"""Change sources: the raw notification streams a FileWatcher consumes."""

import logging
import os
import queue
import threading
from typing import Callable, Dict, Optional, Tuple, Union

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .exceptions import RegistrationError, SourceError
from .models import Op, RawNotification

logger = logging.getLogger(__name__)

DATA = "data"
ERROR = "error"
CLOSED = "closed"

Selection = Union[Tuple[str, RawNotification], Tuple[str, BaseException], str, None]


class ChangeSource:
    """
    Base class for change sources.

    A change source accepts watch registrations and produces two streams:
    ``events`` carries RawNotification values and ``errors`` carries
    exceptions. Subclasses implement ``_add_watch``, ``_remove_watch`` and
    ``_close``; everything else is shared stream plumbing.
    """

    def __init__(self):
        self.events: "queue.Queue[RawNotification]" = queue.Queue()
        self.errors: "queue.Queue[BaseException]" = queue.Queue()
        self._ready = threading.Semaphore(0)
        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self._errors_first = False

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed.is_set()

    def add_watch(self, path: str) -> None:
        """
        Start watching a path. Adding a path that is already watched is a no-op.

        Args:
            path: Directory (or file) to watch

        Raises:
            RegistrationError: If the path cannot be watched
        """
        if self.closed:
            raise RegistrationError(path, SourceError("change source is closed"))
        self._add_watch(path)

    def remove_watch(self, path: str) -> bool:
        """
        Stop watching a path.

        Returns:
            True if the path was watched
        """
        if self.closed:
            return False
        return self._remove_watch(path)

    def emit(self, notification: RawNotification) -> bool:
        """Put a notification on the data stream. Dropped once closed."""
        if self.closed:
            return False
        self.events.put(notification)
        self._ready.release()
        return True

    def report_error(self, error: BaseException) -> bool:
        """Put an error on the error stream. Dropped once closed."""
        if self.closed:
            return False
        self.errors.put(error)
        self._ready.release()
        return True

    def select(self, timeout: Optional[float] = None) -> Selection:
        """
        Wait for the next item on either stream.

        When both streams have items they are served alternately, so
        neither can starve the other.

        Args:
            timeout: Seconds to wait, None to wait forever

        Returns:
            ``(DATA, notification)``, ``(ERROR, exception)``, ``CLOSED``
            once the source is closed, or None on timeout
        """
        if not self._ready.acquire(timeout=timeout):
            return None

        if self.closed:
            # Keep the closed state visible to every later call.
            self._ready.release()
            return CLOSED

        streams = [(DATA, self.events), (ERROR, self.errors)]
        if self._errors_first:
            streams.reverse()
        self._errors_first = not self._errors_first

        for kind, stream in streams:
            try:
                return kind, stream.get_nowait()
            except queue.Empty:
                continue
        return None

    def close(self) -> None:
        """
        Release the source's resources and end both streams. Idempotent.

        Raises:
            SourceError: If the underlying resources failed to close
        """
        with self._close_lock:
            if self.closed:
                return
            self._closed.set()
            try:
                self._close()
            finally:
                self._ready.release()

    def _add_watch(self, path: str) -> None:
        raise NotImplementedError

    def _remove_watch(self, path: str) -> bool:
        raise NotImplementedError

    def _close(self) -> None:
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class _NotificationHandler(FileSystemEventHandler):
    """Handler that converts watchdog events to RawNotification."""

    def __init__(self, source: "WatchdogChangeSource"):
        super().__init__()
        self.source = source

    def dispatch(self, event):
        try:
            super().dispatch(event)
        except Exception as e:
            self.source.report_error(SourceError(f"Failed to handle {event!r}: {e}"))

    def on_created(self, event):
        self.source._emit_path(event.src_path, Op.CREATE)

    def on_deleted(self, event):
        path = self.source._emit_path(event.src_path, Op.REMOVE)
        if event.is_directory:
            self.source._forget_tree(path)

    def on_modified(self, event):
        # Directory modifications are synthesized from changes to children.
        if event.is_directory:
            return
        self.source._emit_path(event.src_path, Op.WRITE)

    def on_moved(self, event):
        path = self.source._emit_path(event.src_path, Op.RENAME)
        self.source._emit_path(event.dest_path, Op.CREATE)
        if event.is_directory:
            self.source._forget_tree(path)


class WatchdogChangeSource(ChangeSource):
    """
    Change source backed by a watchdog observer.

    Every watched directory gets its own non-recursive schedule, so only
    explicitly registered directories report changes.
    """

    def __init__(self, observer_factory: Callable[[], Observer] = Observer):
        """
        Create and start the underlying observer.

        Args:
            observer_factory: Callable returning a watchdog observer

        Raises:
            SourceError: If the observer cannot be started
        """
        super().__init__()
        self._handler = _NotificationHandler(self)
        self._watches: Dict[str, object] = {}
        self._lock = threading.Lock()
        try:
            self._observer = observer_factory()
            self._observer.start()
        except (OSError, RuntimeError) as e:
            raise SourceError(f"Cannot start filesystem observer: {e}") from e

    def _emit_path(self, path, op: Op) -> str:
        path = os.fsdecode(path)
        self.emit(RawNotification(path, op))
        return path

    def _add_watch(self, path: str) -> None:
        # The observer lock is taken inside schedule(); never hold ours with it.
        with self._lock:
            if path in self._watches:
                return
        try:
            watch = self._observer.schedule(self._handler, path, recursive=False)
        except OSError as e:
            raise RegistrationError(path, e) from e
        with self._lock:
            self._watches.setdefault(path, watch)
        logger.debug(f"Scheduled watch: {path}")

    def _remove_watch(self, path: str) -> bool:
        with self._lock:
            watch = self._watches.pop(path, None)
        if watch is None:
            return False
        self._unschedule(path, watch)
        return True

    def _forget_tree(self, path: str) -> None:
        """Drop watches for a directory that was removed or renamed away."""
        prefix = path.rstrip(os.sep) + os.sep
        with self._lock:
            stale = [
                (watched, self._watches.pop(watched))
                for watched in list(self._watches)
                if watched == path or watched.startswith(prefix)
            ]
        for watched, watch in stale:
            self._unschedule(watched, watch)

    def _unschedule(self, path: str, watch) -> None:
        try:
            self._observer.unschedule(watch)
        except (KeyError, OSError, RuntimeError) as e:
            # The emitter may already have shut itself down with the directory.
            logger.debug(f"Unschedule of {path} failed: {e}")

    def watched_paths(self) -> list:
        """Get the list of paths with a live watch."""
        with self._lock:
            return list(self._watches)

    def _close(self) -> None:
        with self._lock:
            self._watches.clear()
        try:
            self._observer.stop()
            self._observer.join(timeout=5.0)
        except (OSError, RuntimeError) as e:
            raise SourceError(f"Cannot stop filesystem observer: {e}") from e
