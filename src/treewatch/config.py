"""Configuration for the treewatch package."""

import os
from dataclasses import asdict, dataclass, fields
from typing import Mapping, Optional

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class WatcherConfig:
    """
    Configuration options for a FileWatcher.
    
    Attributes:
        recursive: Watch every directory under the root, including
            directories created after watching starts
        debounce_ms: Quiet window in milliseconds before a path's coalesced
            notification is delivered; 0 disables debouncing
    """
    recursive: bool = False
    debounce_ms: int = 0

    def __post_init__(self):
        if self.debounce_ms < 0:
            raise ValueError(f"debounce_ms must be >= 0, got {self.debounce_ms}")

    @property
    def debounce_enabled(self) -> bool:
        """Whether notifications are debounced."""
        return self.debounce_ms > 0

    @property
    def debounce_seconds(self) -> float:
        """Debounce window in seconds."""
        return self.debounce_ms / 1000.0

    @classmethod
    def from_env(
        cls,
        prefix: str = "TREEWATCH_",
        environ: Optional[Mapping[str, str]] = None,
        base: Optional["WatcherConfig"] = None,
        **overrides,
    ) -> "WatcherConfig":
        """
        Build a config from environment variables.
        
        Reads ``<prefix>RECURSIVE`` and ``<prefix>DEBOUNCE_MS`` on top of
        ``base``. Keyword overrides that are not None take precedence over
        the environment.
        
        Args:
            prefix: Environment variable prefix
            environ: Mapping to read instead of os.environ
            base: Config supplying values the environment does not set
            **overrides: Explicit field values
            
        Returns:
            A new WatcherConfig
            
        Raises:
            ValueError: If a variable has an unparseable value
        """
        env = os.environ if environ is None else environ
        values = asdict(base) if base is not None else {}

        recursive = env.get(f"{prefix}RECURSIVE")
        if recursive is not None:
            values["recursive"] = _parse_bool(f"{prefix}RECURSIVE", recursive)

        debounce = env.get(f"{prefix}DEBOUNCE_MS")
        if debounce is not None:
            try:
                values["debounce_ms"] = int(debounce)
            except ValueError:
                raise ValueError(f"{prefix}DEBOUNCE_MS must be an integer, got {debounce!r}")

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise TypeError(f"Unknown config field: {key}")
            if value is not None:
                values[key] = value

        return cls(**values)


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")
