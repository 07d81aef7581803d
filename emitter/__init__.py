"""
# Event Emitter

Herein is the emitter class itself. Each Emitter instance owns its own listener
registry, so separate emitters never see each other's events.

Listeners are registered under an event key, or under EVERY to hear every
event, and are called synchronously, in subscription order, with whatever
positional arguments are emitted. Many-time listeners expire after a fixed
number of calls.

The emitter reports on its own registry through reserved events:
    ':on'            (event, listener) before a listener is added
    ':off'           (event, listener) after a listener is removed or expires
    ':maxListeners'  (event,) when an event first exceeds max_listeners
These only reach listeners registered to them by name, never EVERY listeners.

Emitting 'error' with nobody listening raises the emitted error.
"""

import json
import logging
from collections import Counter
from numbers import Real
from typing import Any
from typing import Callable
from typing import Iterable
from typing import Optional

from emitter import handlers
from emitter import listener
from emitter import registry
from emitter import subscription
from emitter.registry import EVERY


version_major = 1
version_minor = 0
version_patch = 0
__version__ = f"{version_major}.{version_minor}.{version_patch}"

logger = logging.getLogger(__name__)

# -----Reserved Events---------------------------------------------------------
EMITTER_ON_SUBSCRIBE = ":on"
EMITTER_ON_UNSUBSCRIBE = ":off"
EMITTER_ON_MAX_LISTENERS = ":maxListeners"

ERROR_EVENT = "error"

DEFAULT_MAX_LISTENERS = 10


# -----Exceptions--------------------------------------------------------------
class EmitterError(Exception):
    """Base class for errors raised by the emitter."""


class UnhandledErrorEvent(EmitterError):
    """Raised when 'error' is emitted with no listeners and no exception."""

    def __init__(self, payload: Any = None) -> None:
        self.payload = payload
        if payload is None:
            message = f"Unhandled '{ERROR_EVENT}' event"
        else:
            message = f"Unhandled '{ERROR_EVENT}' event: {payload!r}"
        super().__init__(message)


# -----------------------------------------------------------------------------


def listener_count(emitter_: "Emitter", event: Any) -> int:
    """
    Get the number of listeners registered to exactly this event on an
    emitter. EVERY listeners are only counted for EVERY itself.

    Args:
        emitter_ (Emitter): The emitter to inspect.
        event (Any): The event key.
    Returns:
        int: Number of listeners, 0 for an event never subscribed to.
    """
    return emitter_._registry.count(registry.normalize_key(event))


def _event_names(events: list[registry.EVENT_KEY]) -> list[str]:
    """
    Unique display names for event keys, in the same order.

    Strings are shown as they are and other keys by repr(). When two keys
    render the same, like 1 and "1", each of them falls back to repr(), with
    a numbered suffix if even that is taken.
    """
    plain = [event if isinstance(event, str) else repr(event) for event in events]
    clashing = {name for name, total in Counter(plain).items() if total > 1}
    taken = set(plain) - clashing

    names = []
    for event, name in zip(events, plain):
        if name in clashing:
            base = name = repr(event)
            suffix = 2
            while name in taken:
                name = f"{base} ({suffix})"
                suffix += 1
            taken.add(name)
        names.append(name)

    return names


class Emitter(object):
    """
    Synchronous event emitter.

    To manage listeners use on(), once(), many() and off(), or decorate with
    @emitter.subscribe(event).
    Use emit() or emit_event() to call them.

    The reserved ':on', ':off' and ':maxListeners' events only reach listeners
    registered under those exact names. EVERY listeners never receive them.
    """

    every = EVERY
    """The wildcard event key, matched by every emitted event."""

    default_max_listeners: Any = DEFAULT_MAX_LISTENERS
    """
    Threshold copied into max_listeners by every new emitter. Changing it only
    affects emitters created afterwards.
    """

    listener_count = staticmethod(listener_count)

    def __init__(self) -> None:
        self._registry = registry.Registry()

        self.max_listeners: Any = type(self).default_max_listeners
        """
        Listeners per event above which ':maxListeners' is emitted. A
        non-numeric or non-positive value disables the check.
        """

        self._listener_exception_handler: Optional[
            handlers.LISTENER_EXCEPTION_HANDLER
        ] = None

    # -----Listener Management-------------------------------------------------

    def on(self, *args: Any) -> "Emitter":
        """
        Register listeners that run on every matching emit.

        Accepts on(event, listener), on(listener) to listen to EVERY event, or
        on({event: listener, ...}).

        Raises:
            TypeError: If no callable listener is given.
        Notes:
            Emits ':on' with (event, listener) before each listener is added.
        """
        self._add(subscription.resolve("on", args))
        return self

    def once(self, *args: Any) -> "Emitter":
        """
        Register listeners that run on the next matching emit only.

        Accepts the same shapes as on().

        Raises:
            TypeError: If no callable listener is given.
        """
        subscriptions = subscription.resolve("once", args)
        self._add([sub._replace(remaining=1) for sub in subscriptions])
        return self

    def many(self, *args: Any) -> "Emitter":
        """
        Register listeners that run on the next `count` matching emits.

        Accepts many(event, count, listener), many(count, listener) to listen
        to EVERY event, or many(count, {event: listener, ...}).

        Raises:
            TypeError: If no callable listener or no integer count is given.
            ValueError: If count is below 1.
        """
        self._add(subscription.resolve("many", args, counted=True))
        return self

    def subscribe(
        self, event: Any = EVERY, times: Optional[int] = None
    ) -> Callable[[listener.LISTENER], listener.LISTENER]:
        """
        Decorator to register a function as a listener.

        Args:
            event (Any): The event to listen to. Defaults to EVERY.
            times (Optional[int]): Expire after this many calls. Defaults to
                None, never expiring.
        """

        def decorator(func: listener.LISTENER) -> listener.LISTENER:
            if times is None:
                self.on(event, func)
            else:
                self.many(event, times, func)
            return func

        return decorator

    def off(self, *args: Any) -> "Emitter":
        """
        Remove the first registration of a listener.

        Accepts off(event, listener), off(listener) for EVERY, or
        off({event: listener, ...}). Unknown listeners are ignored.

        Raises:
            TypeError: If no callable listener is given.
        Notes:
            Emits ':off' with (event, listener) for each listener removed.
        """
        for sub in subscription.resolve("off", args):
            if self._registry.remove(sub.event, sub.callback) is not None:
                self._notify(EMITTER_ON_UNSUBSCRIBE, sub.event, sub.callback)

        return self

    def clear(self, event: Any = EVERY) -> "Emitter":
        """
        Remove every listener of one event, or of all events when called with
        no argument, None or EVERY. No ':off' events are emitted.
        """
        self._registry.clear(registry.normalize_key(event))
        return self

    def set_listener_exception_handler(
        self, handler: Optional[handlers.LISTENER_EXCEPTION_HANDLER]
    ) -> None:
        """
        Set the exception handler for listener errors.

        Args:
            Optional[handlers.LISTENER_EXCEPTION_HANDLER]:
                Callable with signature (LISTENER, event, Exception) -> bool.
                Returns True to stop the dispatch, False to continue.
                Pass None to restore default behavior (re-raise exceptions).
        """
        self._listener_exception_handler = handler

    def _add(self, subscriptions: list[subscription.Subscription]) -> None:
        for sub in subscriptions:
            self._notify(EMITTER_ON_SUBSCRIBE, sub.event, sub.callback)

            count = self._registry.add(
                sub.event, listener.Listener(sub.callback, sub.remaining)
            )
            self._check_max_listeners(sub.event, count)

    def _check_max_listeners(self, event: registry.EVENT_KEY, count: int) -> None:
        """Emit ':maxListeners' the moment an event goes one past the limit."""
        limit = self.max_listeners
        if isinstance(limit, bool) or not isinstance(limit, Real) or limit <= 0:
            return

        if count != limit + 1:
            return

        logger.warning(
            f"Possible listener leak: {count} listeners registered to "
            f"{event!r}, max_listeners is {limit}"
        )
        self._notify(EMITTER_ON_MAX_LISTENERS, event)

    # -----Emitter Handling----------------------------------------------------

    def emit(self, event: Any, *args: Any) -> None:
        """
        Call every listener of the event, then every EVERY listener, with the
        given positional arguments.

        Args:
            event (Any): Event key.
            *args (Any): Arguments passed to each listener.
        Raises:
            Exception: The emitted exception, or UnhandledErrorEvent, when
                'error' is emitted with no listeners.
        Notes:
            Listeners added or removed while the emit is running do not change
            which listeners this emit calls.
        """
        self._dispatch(registry.normalize_key(event), args)

    def emit_event(self, event: Any, args: Iterable[Any] = ()) -> None:
        """Same as emit(), taking the arguments as one sequence."""
        self._dispatch(registry.normalize_key(event), tuple(args))

    def _notify(self, event: str, *args: Any) -> None:
        """Emit a reserved event to its own listeners. EVERY is skipped."""
        self._dispatch(event, args, every=False)

    def _dispatch(
        self, event: registry.EVENT_KEY, args: tuple, every: bool = True
    ) -> None:
        snapshot = self._registry.snapshot(event, every=every)

        if not snapshot:
            if event == ERROR_EVENT:
                self._raise_unhandled(args)
            return

        for key, entry in snapshot:
            # Used up by a nested emit.
            if entry.expired:
                continue

            # Charged before the call; a reentrant emit must not run it again.
            expired = entry.consume() and self._registry.discard(key, entry)

            stop = False
            try:
                entry.callback(*args)
            except Exception as e:
                if self._listener_exception_handler is None:
                    raise

                stop = self._listener_exception_handler(entry.callback, event, e)
            finally:
                if expired:
                    self._notify(EMITTER_ON_UNSUBSCRIBE, key, entry.callback)

            if stop:
                break

    @staticmethod
    def _raise_unhandled(args: tuple) -> None:
        payload = args[0] if args else None
        if isinstance(payload, BaseException):
            raise payload

        raise UnhandledErrorEvent(payload)

    # -----Introspection API---------------------------------------------------

    def listeners(self, event: Any = EVERY) -> list[listener.LISTENER]:
        """
        Get the listeners registered to exactly this event, in subscription
        order. The list is a copy.
        """
        return [
            entry.callback
            for entry in self._registry.get(registry.normalize_key(event))
        ]

    def event_types(self) -> list[registry.EVENT_KEY]:
        """Get all events with at least one listener, in subscription order."""
        return self._registry.events()

    def to_dict(self) -> dict[str, list[str]]:
        """
        Convert the registry to a dictionary of event names to listener names.

        Example:
            {
                "ready": ["on_ready", "Client.handle [remaining=2]"],
                "<every>": ["log_everything"]
            }

        Keys that would print alike, like 1 and "1", are shown by repr().
        """
        items = self._registry.items()
        names = _event_names([event for event, _ in items])

        data = {}
        for name, (_, entries) in zip(names, items):
            listeners_info = []
            for entry in entries:
                info = handlers.get_callable_name(entry.callback)
                if entry.bounded:
                    info = f"{info} [remaining={entry.remaining}]"
                listeners_info.append(info)

            data[name] = listeners_info

        return data

    def to_string(self) -> str:
        """Returns a string representation of the emitter."""
        return json.dumps(self.to_dict(), indent=4)
