"""Thread-safe management of the set of watched directories."""

import logging
import os
import threading
from typing import FrozenSet, Set

from .exceptions import RegistrationError, WalkError
from .models import Op, RawNotification
from .source import ChangeSource

logger = logging.getLogger(__name__)


class WatchSetManager:
    """
    Keeps a change source's registrations in step with a directory tree.

    The initial tree is registered eagerly; directories created later are
    registered as their creation notifications arrive, and directories
    that are removed or renamed away are dropped. Anything that happens
    inside a new directory before it is registered is not seen.
    """

    def __init__(self, source: ChangeSource):
        """
        Initialize the manager.

        Args:
            source: Change source that receives the registrations
        """
        self.source = source
        self._paths: Set[str] = set()
        self._lock = threading.RLock()

    def register(self, path: str) -> bool:
        """
        Watch a single path.

        The path is always handed to the source, whose own registration
        is idempotent, so a directory that was removed and recreated under
        the same name gets a fresh watch.

        Args:
            path: Path to watch

        Returns:
            True if the path is new to the watch set

        Raises:
            RegistrationError: If the source refuses the path
        """
        path = os.path.abspath(path)

        with self._lock:
            self.source.add_watch(path)
            if path in self._paths:
                return False
            self._paths.add(path)

        logger.info(f"Adding watch: {path}")
        return True

    def register_tree(self, root: str) -> int:
        """
        Watch every directory under ``root``, including ``root`` itself.

        The walk stops at the first error; directories registered before
        it stay registered. Symlinked directories are not followed. A root
        that is a regular file is watched on its own.

        Args:
            root: Top of the tree

        Returns:
            Number of directories newly added to the watch set

        Raises:
            WalkError: If part of the tree cannot be read
            RegistrationError: If the source refuses a directory
        """
        root = os.path.abspath(root)

        if os.path.isfile(root):
            return int(self.register(root))
        if not os.path.isdir(root):
            raise WalkError(root, FileNotFoundError(f"No such directory: {root}"))

        def onerror(error: OSError):
            raise WalkError(error.filename or root, error) from error

        added = 0
        for dirpath, _dirnames, _filenames in os.walk(root, onerror=onerror):
            if self.register(dirpath):
                added += 1
        return added

    def forget_tree(self, path: str) -> int:
        """
        Drop ``path`` and every watched path below it.

        The source is asked to remove each dropped watch; sources that
        already released it on their own just report nothing to remove.

        Args:
            path: Directory that was removed or renamed away

        Returns:
            Number of paths removed from the watch set
        """
        path = os.path.abspath(path)
        prefix = path.rstrip(os.sep) + os.sep

        with self._lock:
            stale = [p for p in self._paths if p == path or p.startswith(prefix)]
            for watched in stale:
                self._paths.discard(watched)
                self.source.remove_watch(watched)

        if stale:
            logger.info(f"Removed {len(stale)} watch(es) under {path}")
        return len(stale)

    def on_notification(self, notification: RawNotification) -> bool:
        """
        Keep the watch set in step with directories coming and going.

        REMOVE and RENAME notifications drop the path and its descendants
        from the set. CREATE notifications for paths that are directories
        at the time of the check add the new directory's subtree; a path
        that vanished in between is skipped. Registration failures are
        logged, not raised, so one unwatchable directory cannot stop the
        watcher.

        Args:
            notification: Raw notification from the source

        Returns:
            True if the watch set changed
        """
        changed = False
        if notification.op & (Op.REMOVE | Op.RENAME):
            changed = self.forget_tree(notification.path) > 0

        if not notification.has(Op.CREATE):
            return changed
        if not os.path.isdir(notification.path):
            return changed

        logger.info(f"Adding watch for new directory: {notification.path}")
        try:
            return self.register_tree(notification.path) > 0 or changed
        except (WalkError, RegistrationError) as e:
            logger.warning(f"Could not watch new directory {notification.path}: {e}")
            return changed

    def paths(self) -> FrozenSet[str]:
        """
        Get the current set of watched paths.

        Returns:
            Frozen set of absolute paths
        """
        with self._lock:
            return frozenset(self._paths)

    def clear(self) -> int:
        """
        Forget all paths. The source is not told.

        Returns:
            Number of paths removed
        """
        with self._lock:
            count = len(self._paths)
            self._paths.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return os.path.abspath(path) in self._paths
