"""Custom exceptions for the treewatch package."""


class WatcherError(Exception):
    """Base exception for all watcher errors."""
    pass


class WalkError(WatcherError):
    """A directory tree could not be traversed."""

    def __init__(self, path: str, cause: BaseException = None):
        message = f"Cannot walk {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.path = path
        self.cause = cause


class RegistrationError(WatcherError):
    """The change source refused to watch a path."""

    def __init__(self, path: str, cause: BaseException = None):
        message = f"Cannot watch {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.path = path
        self.cause = cause


class SourceError(WatcherError):
    """Error reported by, or raised while creating, a change source."""
    pass


class WatcherAlreadyRunningError(WatcherError):
    """Watcher is already running."""
    pass


class WatcherStoppedError(WatcherError):
    """Watcher has been stopped and cannot be used again."""
    pass


class AlreadyStoppedError(WatcherStoppedError):
    """Stop was requested on a watcher that is already stopped."""
    pass
