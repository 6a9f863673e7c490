"""Decoding of operation masks into event handler calls."""

import logging
from typing import Callable, Optional

from .models import CANONICAL_ORDER, Op, RawNotification

logger = logging.getLogger(__name__)


class EventHandler:
    """
    Base class for receivers of decoded events.

    Override the methods for the operations you care about; the defaults
    do nothing. Handlers run on the watcher's thread and should not block.
    """

    def on_create(self, path: str) -> None:
        pass

    def on_write(self, path: str) -> None:
        pass

    def on_remove(self, path: str) -> None:
        pass

    def on_rename(self, path: str) -> None:
        pass

    def on_chmod(self, path: str) -> None:
        pass


class LoggingHandler(EventHandler):
    """Handler that logs every event."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.logger = log or logger
        self.level = level

    def _log(self, op: Op, path: str) -> None:
        self.logger.log(self.level, f"[{op.name}] {path}")

    def on_create(self, path: str) -> None:
        self._log(Op.CREATE, path)

    def on_write(self, path: str) -> None:
        self._log(Op.WRITE, path)

    def on_remove(self, path: str) -> None:
        self._log(Op.REMOVE, path)

    def on_rename(self, path: str) -> None:
        self._log(Op.RENAME, path)

    def on_chmod(self, path: str) -> None:
        self._log(Op.CHMOD, path)


class CallbackHandler(EventHandler):
    """Adapts a single ``callback(op, path)`` to the handler interface."""

    def __init__(self, callback: Callable[[Op, str], None]):
        if not callable(callback):
            raise TypeError("callback must be callable")
        self.callback = callback

    def on_create(self, path: str) -> None:
        self.callback(Op.CREATE, path)

    def on_write(self, path: str) -> None:
        self.callback(Op.WRITE, path)

    def on_remove(self, path: str) -> None:
        self.callback(Op.REMOVE, path)

    def on_rename(self, path: str) -> None:
        self.callback(Op.RENAME, path)

    def on_chmod(self, path: str) -> None:
        self.callback(Op.CHMOD, path)


_METHOD_FOR_OP = {
    Op.CREATE: "on_create",
    Op.WRITE: "on_write",
    Op.REMOVE: "on_remove",
    Op.RENAME: "on_rename",
    Op.CHMOD: "on_chmod",
}


class Dispatcher:
    """Routes each operation in a notification's mask to its handler method."""

    def __init__(self, handler: EventHandler):
        self.handler = handler

    def dispatch(self, notification: RawNotification) -> int:
        """
        Invoke the handler once per operation in the mask.

        Operations are delivered in CANONICAL_ORDER, all with the
        notification's path.

        Args:
            notification: The notification to decode

        Returns:
            Number of handler calls made
        """
        calls = 0
        for op in CANONICAL_ORDER:
            if notification.op & op:
                getattr(self.handler, _METHOD_FOR_OP[op])(notification.path)
                calls += 1
        return calls
