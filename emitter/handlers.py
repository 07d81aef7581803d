"""
Exception handling utilities for the event emitter.

By default an exception raised inside a listener propagates out of emit().
Installing one of these handlers with Emitter.set_listener_exception_handler()
changes that: the handler sees the failing listener, the emitted event and
the exception, and decides whether the rest of the dispatch still runs.

Built-in policies: stop with logging (stop_and_log_listener_exception), log and
carry on (log_and_continue_listener_exception), carry on silently
(silent_listener_exception), and collect for later inspection, either per emitter
(ListenerExceptionCollector) or in one shared list (collect_listener_exception).
"""

import logging
import sys
from types import ModuleType
from typing import Any
from typing import Callable

from emitter import listener


logger = logging.getLogger(__name__)


LISTENER_EXCEPTION_HANDLER = Callable[[listener.LISTENER, object, Exception], bool]
"""
Signature for listener exception handlers.

Handlers receive the failing listener, the emitted event and the exception,
then return True to stop the dispatch or False to run the remaining listeners.
"""

STOP = True
CONTINUE = False


def get_callable_name(callable_: Callable) -> str:
    """
    Returns a readable name for a listener: Class.method for bound methods,
    __qualname__ or __name__ for functions, and str() for anything else.
    """
    owner = getattr(callable_, "__self__", None)
    # Builtin functions are bound to their module.
    if (
        owner is not None
        and not isinstance(owner, ModuleType)
        and hasattr(callable_, "__name__")
    ):
        return f"{owner.__class__.__name__}.{callable_.__name__}"
    elif hasattr(callable_, "__qualname__"):
        return callable_.__qualname__
    elif hasattr(callable_, "__name__"):
        return callable_.__name__
    else:
        return str(callable_)


def stop_and_log_listener_exception(
    callback: listener.LISTENER, event: object, exception: Exception
) -> bool:
    """Log the exception with its traceback and skip the remaining listeners."""
    logger.error(
        f"Listener {get_callable_name(callback)} raised while {event!r} was "
        f"emitted; remaining listeners for this emit are skipped.\n"
        f"  Exception: {exception.__class__.__name__}: {exception}",
        exc_info=True,
    )

    return STOP


def log_and_continue_listener_exception(
    callback: listener.LISTENER, event: object, exception: Exception
) -> bool:
    """Log listener errors but keep dispatching."""
    logger.warning(
        f"Listener error (continuing): "
        f"{get_callable_name(callback)} on {event!r}: {exception}"
    )
    return CONTINUE


def silent_listener_exception(
    _: listener.LISTENER, __: object, ___: Exception
) -> bool:
    """Ignore all exceptions."""
    return CONTINUE


def _exception_record(
    callback: listener.LISTENER, event: object, exception: Exception
) -> dict[str, Any]:
    return {
        "listener": get_callable_name(callback),
        "event": event,
        "exception": f"{exception.__class__.__name__}: {exception}",
        "exc_info": sys.exc_info(),
    }


class ListenerExceptionCollector(object):
    """
    Handler that records failures in its own `caught` list and keeps
    dispatching. Give each emitter its own collector to tell their failures
    apart.

    Example:
        collector = ListenerExceptionCollector()
        emitter.set_listener_exception_handler(collector)
        emitter.emit("ready")
        collector.caught  # [{"listener": ..., "event": "ready", ...}]
    """

    def __init__(self) -> None:
        self.caught: list[dict[str, Any]] = []

    def __call__(
        self, callback: listener.LISTENER, event: object, exception: Exception
    ) -> bool:
        self.caught.append(_exception_record(callback, event, exception))
        return CONTINUE

    def clear(self) -> None:
        self.caught.clear()


exceptions_caught: list[dict[str, Any]] = []
"""Failures recorded by collect_listener_exception, from every emitter."""


def collect_listener_exception(
    callback: listener.LISTENER, event: object, exception: Exception
) -> bool:
    """
    Record the failure in emitter.handlers.exceptions_caught and keep
    dispatching.

    The list is shared by every emitter using this handler. Clear it yourself
    between uses, or use a ListenerExceptionCollector per emitter.
    """
    exceptions_caught.append(_exception_record(callback, event, exception))
    return CONTINUE
