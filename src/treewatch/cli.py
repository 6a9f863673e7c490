#!/usr/bin/env python3
"""
CLI for watching a directory tree and logging its changes.

Usage:
    python -m src.treewatch                       # watch the current directory
    python -m src.treewatch /path/to/folder --debounce-ms 250
    python -m src.treewatch /path/to/folder --no-recursive -v

Settings can also come from the environment (or a .env file):
    TREEWATCH_RECURSIVE, TREEWATCH_DEBOUNCE_MS
"""

import argparse
import logging
import signal
import threading
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import WatcherConfig
from .dispatcher import LoggingHandler
from .exceptions import WatcherError
from .watcher import FileWatcher

DEFAULT_DEBOUNCE_MS = 100

logger = logging.getLogger("treewatch")


class GracefulShutdown:
    """Handle graceful shutdown on SIGINT/SIGTERM."""

    def __init__(self):
        self._event = threading.Event()
        signal.signal(signal.SIGINT, self._handler)
        signal.signal(signal.SIGTERM, self._handler)

    def _handler(self, signum, frame):
        logger.info("Received shutdown signal, stopping...")
        self._event.set()

    @property
    def should_exit(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until a shutdown signal arrives."""
        return self._event.wait(timeout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treewatch",
        description="Watch a directory tree and log file system changes",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to watch (default: current directory)",
    )
    parser.add_argument(
        "--debounce-ms",
        type=int,
        default=None,
        help=f"Quiet window per path in milliseconds, 0 disables (default: {DEFAULT_DEBOUNCE_MS})",
    )
    parser.add_argument(
        "--no-recursive",
        dest="recursive",
        action="store_false",
        default=None,
        help="Only watch the top-level directory",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def build_config(args: argparse.Namespace) -> WatcherConfig:
    """Merge command-line flags over environment settings and CLI defaults."""
    return WatcherConfig.from_env(
        base=WatcherConfig(recursive=True, debounce_ms=DEFAULT_DEBOUNCE_MS),
        recursive=args.recursive,
        debounce_ms=args.debounce_ms,
    )


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = build_config(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    watch_path = Path(args.path)

    try:
        watcher = FileWatcher(LoggingHandler(), config=config)
    except WatcherError as e:
        logger.error(f"Failed to create watcher: {e}")
        return 1

    with watcher:
        try:
            watcher.watch(str(watch_path))
        except WatcherError as e:
            logger.error(f"Failed to watch path {watch_path}: {e}")
            return 1

        logger.info(f"Watching: {watch_path} (recursive: {config.recursive})")
        logger.info("Press Ctrl+C to stop...")

        shutdown = GracefulShutdown()
        watcher.start()
        shutdown.wait()

        logger.info("Shutting down...")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
