"""Data models for the treewatch package."""

import os
from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Tuple, Union


class Op(IntFlag):
    """Bitset of filesystem operation kinds carried by one notification."""
    CREATE = 1
    WRITE = 2
    REMOVE = 4
    RENAME = 8
    # Never produced by WatchdogChangeSource: watchdog reports attribute
    # changes as modifications, which arrive as WRITE.
    CHMOD = 16

    def has(self, other: "Op") -> bool:
        """Return True if every bit of ``other`` is set in this mask."""
        other = Op(other)
        return bool(other) and (self & other) == other

    def __str__(self) -> str:
        names = [op.name for op in CANONICAL_ORDER if op in self]
        return "|".join(names) if names else "NONE"


# Dispatch order for decoded operations.
CANONICAL_ORDER: Tuple[Op, ...] = (
    Op.CREATE,
    Op.WRITE,
    Op.REMOVE,
    Op.RENAME,
    Op.CHMOD,
)


class WatcherState(Enum):
    """Lifecycle states of a FileWatcher."""
    CREATED = "created"
    WATCHING = "watching"
    STOPPED = "stopped"


@dataclass(frozen=True)
class RawNotification:
    """
    One undecoded change notification from a change source.
    
    Attributes:
        path: Path the notification refers to
        op: Operation mask; may carry several kinds at once
    """
    path: str
    op: Op

    def __post_init__(self):
        path = self.path
        if isinstance(path, os.PathLike):
            path = os.fspath(path)
        if not isinstance(path, str) or not path:
            raise ValueError(f"path must be a non-empty string: {self.path!r}")
        object.__setattr__(self, "path", path)
        object.__setattr__(self, "op", Op(self.op))

    def has(self, op: Union[Op, int]) -> bool:
        """Check whether the notification carries ``op``."""
        return self.op.has(op)

    def __str__(self) -> str:
        return f"{self.op} {self.path}"
