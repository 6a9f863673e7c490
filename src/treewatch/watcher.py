"""FileWatcher: ties a change source, the watch set, debouncing and dispatch together."""

import logging
import threading
from functools import partial
from typing import FrozenSet, Optional

from .config import WatcherConfig
from .debouncer import Debouncer
from .dispatcher import Dispatcher, EventHandler
from .exceptions import (
    AlreadyStoppedError,
    SourceError,
    WatcherAlreadyRunningError,
    WatcherStoppedError,
)
from .models import Op, RawNotification, WatcherState
from .source import CLOSED, DATA, ChangeSource, WatchdogChangeSource
from .watch_set import WatchSetManager

logger = logging.getLogger(__name__)

# Upper bound on how long the consuming thread goes without checking for stop.
POLL_INTERVAL = 0.1


class FileWatcher:
    """
    Watches paths and reports decoded change events to a handler.

    One background thread consumes the change source. Every raw
    notification is processed on that thread: the watch set is updated
    for created and removed directories, then the notification is dispatched
    directly or handed to the debouncer. Debounced deliveries run on timer
    threads.

    Lifecycle: CREATED -> WATCHING -> STOPPED. Watches can be added in the
    first two states. Once stop() returns, the handler is never called
    again.
    """

    def __init__(
        self,
        handler: EventHandler,
        config: Optional[WatcherConfig] = None,
        source: Optional[ChangeSource] = None,
    ):
        """
        Initialize the watcher (not started yet).

        Args:
            handler: Receiver of decoded events
            config: Watcher configuration
            source: Change source to consume; a WatchdogChangeSource is
                created when omitted

        Raises:
            SourceError: If the default change source cannot be created
        """
        self.config = config or WatcherConfig()
        self.source = source if source is not None else WatchdogChangeSource()

        self._dispatcher = Dispatcher(handler)
        self._watch_set = WatchSetManager(self.source)
        self._debouncer = (
            Debouncer(self.config.debounce_seconds)
            if self.config.debounce_enabled
            else None
        )

        self._state = WatcherState.CREATED
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        # Held for every handler call; stop() takes it to change state.
        self._delivery_lock = threading.RLock()

    @property
    def handler(self) -> EventHandler:
        return self._dispatcher.handler

    @property
    def state(self) -> WatcherState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if the watcher is consuming notifications."""
        return self._state is WatcherState.WATCHING

    def watched_paths(self) -> FrozenSet[str]:
        """Get the directories currently in the watch set."""
        return self._watch_set.paths()

    def watch(self, path: str) -> int:
        """
        Add a path to watch.

        In recursive mode the whole tree under ``path`` is registered.

        Args:
            path: Directory to watch

        Returns:
            Number of paths newly added to the watch set

        Raises:
            WatcherStoppedError: If the watcher has been stopped
            WalkError: If the tree cannot be traversed
            RegistrationError: If the source refuses a path
        """
        if self._state is WatcherState.STOPPED:
            raise WatcherStoppedError("Cannot add watches to a stopped watcher")

        if self.config.recursive:
            return self._watch_set.register_tree(path)
        return int(self._watch_set.register(path))

    def start(self) -> None:
        """
        Start consuming notifications in the background.

        Raises:
            WatcherAlreadyRunningError: If already running
            WatcherStoppedError: If the watcher has been stopped
        """
        with self._lock:
            if self._state is WatcherState.WATCHING:
                raise WatcherAlreadyRunningError("Watcher is already running")
            if self._state is WatcherState.STOPPED:
                raise WatcherStoppedError("Watcher has been stopped")

            self._state = WatcherState.WATCHING
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._event_loop,
                name="FileWatcher",
                daemon=True,
            )
            self._thread.start()

        logger.info(
            f"Watcher started (recursive={self.config.recursive}, "
            f"debounce_ms={self.config.debounce_ms}, watches={len(self._watch_set)})"
        )

    def stop(self) -> bool:
        """
        Stop the watcher and release the change source.

        Pending debounced deliveries are cancelled and queued notifications
        are dropped. Calling stop() again is a no-op.

        Returns:
            True if this call stopped the watcher, False if it was already stopped
        """
        # Set before waiting on an in-flight delivery so no queued one follows it.
        self._stop_event.set()

        with self._delivery_lock, self._lock:
            if self._state is WatcherState.STOPPED:
                logger.debug(f"Ignoring stop: {AlreadyStoppedError('Watcher is already stopped')}")
                return False

            self._state = WatcherState.STOPPED
            self._stop_event.set()
            thread = self._thread
            self._thread = None

        if self._debouncer is not None:
            cancelled = self._debouncer.close()
            if cancelled:
                logger.debug(f"Cancelled {cancelled} pending debounced event(s)")

        try:
            self.source.close()
        except SourceError as e:
            logger.error(f"Error closing change source: {e}")

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5.0)

        self._watch_set.clear()
        logger.info("Watcher stopped")
        return True

    def _event_loop(self) -> None:
        """Consume data and error notifications until stopped."""
        logger.debug("Event loop started")

        while not self._stop_event.is_set():
            selected = self.source.select(timeout=POLL_INTERVAL)
            if selected is None:
                continue
            if selected == CLOSED:
                break
            if self._stop_event.is_set():
                break

            kind, item = selected
            if kind == DATA:
                self._handle_notification(item)
            else:
                logger.error(f"Watcher error: {item}")

        logger.debug("Event loop exited")

    def _handle_notification(self, notification: RawNotification) -> None:
        logger.debug(f"Notification: {notification}")

        if self.config.recursive:
            self._watch_set.on_notification(notification)
        elif notification.op & (Op.REMOVE | Op.RENAME):
            self._watch_set.forget_tree(notification.path)

        if self._debouncer is not None:
            self._debouncer.schedule(notification.path, partial(self._deliver, notification))
        else:
            self._deliver(notification)

    def _deliver(self, notification: RawNotification) -> None:
        with self._delivery_lock:
            if self._state is not WatcherState.WATCHING or self._stop_event.is_set():
                logger.debug(f"Dropping notification after stop: {notification}")
                return
            try:
                self._dispatcher.dispatch(notification)
            except Exception:
                logger.exception(f"Event handler failed for {notification}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
