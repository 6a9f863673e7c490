"""Tests for dispatcher module."""

import logging

import pytest

from src.treewatch.dispatcher import CallbackHandler, Dispatcher, EventHandler, LoggingHandler
from src.treewatch.models import Op, RawNotification


class TestDispatcher:
    """Tests for Dispatcher class."""

    def test_create_and_write_in_order(self, recorder):
        dispatcher = Dispatcher(recorder)

        calls = dispatcher.dispatch(RawNotification("/tmp/t/a.txt", Op.WRITE | Op.CREATE))

        assert calls == 2
        assert recorder.calls == [("create", "/tmp/t/a.txt"), ("write", "/tmp/t/a.txt")]

    def test_all_bits_in_canonical_order(self, recorder):
        dispatcher = Dispatcher(recorder)
        mask = Op.CHMOD | Op.RENAME | Op.REMOVE | Op.WRITE | Op.CREATE

        dispatcher.dispatch(RawNotification("/a", mask))

        assert [name for name, _ in recorder.calls] == [
            "create", "write", "remove", "rename", "chmod",
        ]
        assert {path for _, path in recorder.calls} == {"/a"}

    def test_single_bit(self, recorder):
        Dispatcher(recorder).dispatch(RawNotification("/a", Op.RENAME))
        assert recorder.calls == [("rename", "/a")]

    def test_empty_mask_calls_nothing(self, recorder):
        calls = Dispatcher(recorder).dispatch(RawNotification("/a", Op(0)))
        assert calls == 0
        assert recorder.calls == []

    def test_no_deduplication(self, recorder):
        dispatcher = Dispatcher(recorder)
        notification = RawNotification("/a", Op.WRITE)

        dispatcher.dispatch(notification)
        dispatcher.dispatch(notification)

        assert recorder.calls == [("write", "/a"), ("write", "/a")]

    def test_handler_exception_propagates(self):
        class Failing(EventHandler):
            def on_write(self, path):
                raise RuntimeError("handler failed")

        with pytest.raises(RuntimeError):
            Dispatcher(Failing()).dispatch(RawNotification("/a", Op.WRITE))

    def test_base_handler_ignores_everything(self):
        mask = Op.CREATE | Op.WRITE | Op.REMOVE | Op.RENAME | Op.CHMOD
        assert Dispatcher(EventHandler()).dispatch(RawNotification("/a", mask)) == 5


class TestCallbackHandler:
    """Tests for CallbackHandler class."""

    def test_receives_single_ops(self):
        received = []
        handler = CallbackHandler(lambda op, path: received.append((op, path)))

        Dispatcher(handler).dispatch(RawNotification("/a", Op.CREATE | Op.CHMOD))

        assert received == [(Op.CREATE, "/a"), (Op.CHMOD, "/a")]

    def test_requires_callable(self):
        with pytest.raises(TypeError):
            CallbackHandler("not callable")


class TestLoggingHandler:
    """Tests for LoggingHandler class."""

    def test_logs_each_operation(self, caplog):
        caplog.set_level(logging.INFO, logger="src.treewatch.dispatcher")

        Dispatcher(LoggingHandler()).dispatch(RawNotification("/a", Op.CREATE | Op.REMOVE))

        assert "[CREATE] /a" in caplog.text
        assert "[REMOVE] /a" in caplog.text
        assert "[WRITE]" not in caplog.text

    def test_custom_logger_and_level(self, caplog):
        custom = logging.getLogger("custom.events")
        caplog.set_level(logging.DEBUG, logger="custom.events")

        LoggingHandler(custom, level=logging.DEBUG).on_chmod("/b")

        record = caplog.records[-1]
        assert record.name == "custom.events"
        assert record.levelno == logging.DEBUG
        assert record.getMessage() == "[CHMOD] /b"
