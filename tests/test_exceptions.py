"""Tests for exceptions module."""

import pytest

from src.treewatch.exceptions import (
    AlreadyStoppedError,
    RegistrationError,
    SourceError,
    WalkError,
    WatcherAlreadyRunningError,
    WatcherError,
    WatcherStoppedError,
)


class TestHierarchy:
    """Every treewatch error can be caught as WatcherError."""

    @pytest.mark.parametrize("error_class", [
        WalkError,
        RegistrationError,
        SourceError,
        WatcherAlreadyRunningError,
        WatcherStoppedError,
        AlreadyStoppedError,
    ])
    def test_subclasses_watcher_error(self, error_class):
        assert issubclass(error_class, WatcherError)

    def test_already_stopped_is_a_stopped_error(self):
        with pytest.raises(WatcherStoppedError):
            raise AlreadyStoppedError("Watcher is already stopped")


class TestWalkError:
    def test_path_and_cause(self):
        cause = PermissionError("denied")
        error = WalkError("/data/private", cause)

        assert error.path == "/data/private"
        assert error.cause is cause
        assert str(error) == "Cannot walk /data/private: denied"

    def test_without_cause(self):
        error = WalkError("/data")

        assert error.cause is None
        assert str(error) == "Cannot walk /data"


class TestRegistrationError:
    def test_path_and_cause(self):
        cause = OSError(28, "No space left on device")
        error = RegistrationError("/data/sub", cause)

        assert error.path == "/data/sub"
        assert error.cause is cause
        assert str(error).startswith("Cannot watch /data/sub: ")
        assert "No space left on device" in str(error)

    def test_without_cause(self):
        error = RegistrationError("/data/sub")

        assert error.cause is None
        assert str(error) == "Cannot watch /data/sub"
