"""
Tree Watcher Package

Event-driven notifications for changes under a directory tree.

Features:
- Recursive monitoring that follows directories created while watching
- Per-path debouncing of notification bursts
- Decoding of operation masks (create, write, remove, rename, chmod)
  into handler calls in a fixed order
- Pluggable change sources; a watchdog-backed one is the default
"""

from .models import (
    Op,
    CANONICAL_ORDER,
    RawNotification,
    WatcherState,
)

from .config import WatcherConfig

from .exceptions import (
    WatcherError,
    WalkError,
    RegistrationError,
    SourceError,
    WatcherAlreadyRunningError,
    WatcherStoppedError,
    AlreadyStoppedError,
)

from .source import ChangeSource, WatchdogChangeSource
from .watch_set import WatchSetManager
from .debouncer import Debouncer
from .dispatcher import (
    EventHandler,
    LoggingHandler,
    CallbackHandler,
    Dispatcher,
)
from .watcher import FileWatcher


__all__ = [
    # Models
    "Op",
    "CANONICAL_ORDER",
    "RawNotification",
    "WatcherState",
    # Config
    "WatcherConfig",
    # Exceptions
    "WatcherError",
    "WalkError",
    "RegistrationError",
    "SourceError",
    "WatcherAlreadyRunningError",
    "WatcherStoppedError",
    "AlreadyStoppedError",
    # Components
    "ChangeSource",
    "WatchdogChangeSource",
    "WatchSetManager",
    "Debouncer",
    "EventHandler",
    "LoggingHandler",
    "CallbackHandler",
    "Dispatcher",
    # Main watcher
    "FileWatcher",
]

__version__ = "0.1.0"
