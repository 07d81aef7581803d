"""
Unit tests for listener exception handling.

Tests verify that exceptions raised inside listeners propagate by default, and
that each built-in handler policy (stop, continue, silent, collecting) behaves
as documented once installed with set_listener_exception_handler().
"""

import logging

import pytest

from emitter import Emitter
from emitter import handlers


def test_default_exception_propagates() -> None:
    """Test that without a handler the first failing listener stops the emit."""
    emitter = Emitter()
    calls: list[str] = []

    def failing_listener() -> None:
        calls.append("failing")
        raise ValueError("Test exception")

    def should_not_run() -> None:
        calls.append("should_not_run")

    emitter.on("test.event", failing_listener)
    emitter.on("test.event", should_not_run)

    with pytest.raises(ValueError, match="Test exception"):
        emitter.emit("test.event")

    assert calls == ["failing"]


def test_stop_and_log_handler(caplog) -> None:
    """Test that the stop handler logs and skips the remaining listeners."""
    emitter = Emitter()
    emitter.set_listener_exception_handler(handlers.stop_and_log_listener_exception)
    calls: list[str] = []

    def failing_listener() -> None:
        calls.append("failing")
        raise ValueError("Test exception")

    def should_not_run() -> None:
        calls.append("should_not_run")

    emitter.on("test.event", failing_listener)
    emitter.on("test.event", should_not_run)

    with caplog.at_level(logging.ERROR, logger="emitter.handlers"):
        emitter.emit("test.event")

    assert calls == ["failing"]
    assert "failing_listener" in caplog.text
    assert "ValueError: Test exception" in caplog.text


def test_log_and_continue_handler(caplog) -> None:
    """Test that the continue handler logs a warning and keeps dispatching."""
    emitter = Emitter()
    emitter.set_listener_exception_handler(
        handlers.log_and_continue_listener_exception
    )
    calls: list[str] = []

    def failing_listener() -> None:
        raise ValueError("Test exception")

    emitter.on("test.event", failing_listener)
    emitter.on("test.event", lambda: calls.append("succeeding"))

    with caplog.at_level(logging.WARNING, logger="emitter.handlers"):
        emitter.emit("test.event")

    assert calls == ["succeeding"]
    assert "Listener error (continuing)" in caplog.text


def test_silent_handler_continues() -> None:
    """Test that the silent handler continues to the next listener."""
    emitter = Emitter()
    emitter.set_listener_exception_handler(handlers.silent_listener_exception)
    calls: list[str] = []

    def failing_listener() -> None:
        calls.append("failing")
        raise ValueError("Test exception")

    emitter.on("test.event", failing_listener)
    emitter.on(lambda: calls.append("every"))

    emitter.emit("test.event")

    assert calls == ["failing", "every"]


def test_collecting_handler() -> None:
    """Test that the collecting handler records exception details."""
    handlers.exceptions_caught.clear()
    emitter = Emitter()
    emitter.set_listener_exception_handler(handlers.collect_listener_exception)

    def failing_listener(data: str) -> None:
        raise ValueError(f"Error with {data}")

    emitter.on("test.event", failing_listener)
    emitter.emit("test.event", "payload")

    assert len(handlers.exceptions_caught) == 1
    caught = handlers.exceptions_caught[0]
    assert caught["listener"].endswith("failing_listener")
    assert caught["event"] == "test.event"
    assert caught["exception"] == "ValueError: Error with payload"
    assert caught["exc_info"][0] is ValueError

    handlers.exceptions_caught.clear()


def test_collectors_keep_emitters_apart() -> None:
    """Test that each emitter's collector only records its own failures."""
    first, second = Emitter(), Emitter()
    first_caught = handlers.ListenerExceptionCollector()
    second_caught = handlers.ListenerExceptionCollector()
    first.set_listener_exception_handler(first_caught)
    second.set_listener_exception_handler(second_caught)
    calls: list[str] = []

    def failing_listener() -> None:
        raise KeyError("missing")

    first.on("load", failing_listener)
    first.on("load", lambda: calls.append("after"))
    second.on("save", failing_listener)

    first.emit("load")
    first.emit("load")
    second.emit("save")

    assert calls == ["after", "after"]
    assert [caught["event"] for caught in first_caught.caught] == ["load", "load"]
    assert [caught["event"] for caught in second_caught.caught] == ["save"]
    assert second_caught.caught[0]["exception"] == "KeyError: 'missing'"

    first_caught.clear()

    assert first_caught.caught == []
    assert len(second_caught.caught) == 1


def test_stop_and_log_message_names_event(caplog) -> None:
    """Test that the stop handler's log names the listener and the event."""
    emitter = Emitter()
    emitter.set_listener_exception_handler(handlers.stop_and_log_listener_exception)

    def on_ready() -> None:
        raise RuntimeError("boom")

    emitter.on("ready", on_ready)

    with caplog.at_level(logging.ERROR, logger="emitter.handlers"):
        emitter.emit("ready")

    assert "on_ready raised while 'ready' was emitted" in caplog.text


def test_handler_reset_to_none_propagates() -> None:
    """Test that setting the handler back to None re-raises again."""
    emitter = Emitter()
    emitter.set_listener_exception_handler(handlers.silent_listener_exception)
    emitter.set_listener_exception_handler(None)

    def failing_listener() -> None:
        raise ValueError("Test exception")

    emitter.on("test.event", failing_listener)

    with pytest.raises(ValueError):
        emitter.emit("test.event")


def test_custom_handler_arguments() -> None:
    """Test that a handler receives the listener, event and exception."""
    emitter = Emitter()
    seen: list[tuple] = []
    error = RuntimeError("boom")

    def handler(callback, event, exception) -> bool:
        seen.append((callback, event, exception))
        return handlers.CONTINUE

    def failing_listener() -> None:
        raise error

    emitter.set_listener_exception_handler(handler)
    emitter.on("evt", failing_listener)
    emitter.emit("evt")

    assert seen == [(failing_listener, "evt", error)]


def test_handled_many_listener_still_expires() -> None:
    """Test that handled failures count against a listener's budget."""
    emitter = Emitter()
    emitter.set_listener_exception_handler(handlers.silent_listener_exception)
    calls: list[int] = []

    def failing_listener() -> None:
        calls.append(1)
        raise ValueError("Test exception")

    emitter.many("evt", 2, failing_listener)

    for _ in range(4):
        emitter.emit("evt")

    assert calls == [1, 1]


def test_get_callable_name() -> None:
    class Widget(object):
        def render(self) -> None:
            pass

    def helper() -> None:
        pass

    assert handlers.get_callable_name(Widget().render) == "Widget.render"
    assert handlers.get_callable_name(helper) == "test_get_callable_name.<locals>.helper"
    assert handlers.get_callable_name(len) == "len"
