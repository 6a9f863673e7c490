"""Shared fixtures for treewatch tests."""

import threading
import time

import pytest

from src.treewatch.dispatcher import EventHandler
from src.treewatch.exceptions import RegistrationError
from src.treewatch.source import ChangeSource


class FakeChangeSource(ChangeSource):
    """In-memory change source; notifications are injected with emit()."""

    def __init__(self, refuse=()):
        super().__init__()
        self.refuse = set(refuse)
        self.add_calls = []
        self.watched = set()
        self.close_calls = 0

    def _add_watch(self, path):
        self.add_calls.append(path)
        if path in self.refuse:
            raise RegistrationError(path, PermissionError("refused"))
        self.watched.add(path)

    def _remove_watch(self, path):
        if path in self.watched:
            self.watched.discard(path)
            return True
        return False

    def _close(self):
        self.close_calls += 1


class RecordingHandler(EventHandler):
    """Handler that records (method, path) calls."""

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()
        self._cond = threading.Condition(self._lock)

    def _record(self, name, path):
        with self._cond:
            self.calls.append((name, path))
            self._cond.notify_all()

    def on_create(self, path):
        self._record("create", path)

    def on_write(self, path):
        self._record("write", path)

    def on_remove(self, path):
        self._record("remove", path)

    def on_rename(self, path):
        self._record("rename", path)

    def on_chmod(self, path):
        self._record("chmod", path)

    def wait_for(self, predicate, timeout=2.0):
        """Wait until predicate(calls) is true; return the final result."""
        deadline = time.monotonic() + timeout
        with self._cond:
            while not predicate(self.calls):
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    def snapshot(self):
        with self._lock:
            return list(self.calls)


@pytest.fixture
def fake_source():
    source = FakeChangeSource()
    yield source
    source.close()


@pytest.fixture
def make_fake_source():
    sources = []

    def factory(**kwargs):
        source = FakeChangeSource(**kwargs)
        sources.append(source)
        return source

    yield factory
    for source in sources:
        source.close()


@pytest.fixture
def recorder():
    return RecordingHandler()


def wait_until(predicate, timeout=2.0, interval=0.02):
    """Poll predicate until it returns true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
