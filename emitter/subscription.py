"""
Argument shape resolution for subscription calls.

The emitter's on(), once(), many() and off() accept several call shapes:

    on(event, listener)           one listener under event
    on(listener)                  one listener under EVERY
    on({event: listener, ...})    one listener per pair, in mapping order
    many(event, count, listener)  a listener that expires after count calls
    many(count, listener)         the same, under EVERY
    many(count, {event: listener, ...})

resolve() turns any of these into a list of Subscription triples, validating
everything up front so a malformed call never half-registers a mapping.
"""

from collections.abc import Mapping
from numbers import Integral
from typing import Any
from typing import NamedTuple
from typing import Optional

from emitter import listener
from emitter import registry


class Subscription(NamedTuple):
    """A canonical (event, callback, remaining) subscription request."""

    event: registry.EVENT_KEY
    callback: listener.LISTENER
    remaining: Optional[int]


def _check_callback(method: str, callback: Any) -> listener.LISTENER:
    if not callable(callback):
        raise TypeError(
            f"{method}() requires a callable listener, "
            f"got {type(callback).__name__}"
        )
    return callback


def _check_count(method: str, count: Any) -> int:
    if isinstance(count, bool) or not isinstance(count, Integral):
        raise TypeError(
            f"{method}() requires an integer listener count, "
            f"got {type(count).__name__}"
        )
    if count < 1:
        raise ValueError(f"{method}() listener count must be at least 1, got {count}")
    return int(count)


def _from_mapping(
    method: str, pairs: Mapping, remaining: Optional[int]
) -> list[Subscription]:
    return [
        Subscription(
            registry.normalize_key(event),
            _check_callback(method, callback),
            remaining,
        )
        for event, callback in pairs.items()
    ]


def _resolve_unbounded(method: str, args: tuple) -> list[Subscription]:
    if len(args) == 1:
        (target,) = args
        if isinstance(target, Mapping):
            return _from_mapping(method, target, None)
        return [Subscription(registry.EVERY, _check_callback(method, target), None)]

    if len(args) == 2:
        event, callback = args
        return [
            Subscription(
                registry.normalize_key(event),
                _check_callback(method, callback),
                None,
            )
        ]

    raise TypeError(
        f"{method}() takes a listener, an event and a listener, or a mapping "
        f"of events to listeners ({len(args)} arguments given)"
    )


def _resolve_counted(method: str, args: tuple) -> list[Subscription]:
    if len(args) == 3:
        event, count, callback = args
        count = _check_count(method, count)
        return [
            Subscription(
                registry.normalize_key(event),
                _check_callback(method, callback),
                count,
            )
        ]

    if len(args) == 2:
        count, target = args
        if isinstance(count, bool) or not isinstance(count, Integral):
            # many(event, count) with the listener missing.
            raise TypeError(f"{method}() requires a callable listener")
        count = _check_count(method, count)
        if isinstance(target, Mapping):
            return _from_mapping(method, target, count)
        return [Subscription(registry.EVERY, _check_callback(method, target), count)]

    raise TypeError(
        f"{method}() takes a count and a listener, or an event, a count and a "
        f"listener ({len(args)} arguments given)"
    )


def resolve(
    method: str, args: tuple, counted: bool = False
) -> list[Subscription]:
    """
    Normalize the positional arguments of a subscription call.

    Args:
        method (str): Public method name, used in error messages.
        args (tuple): The positional arguments the caller passed.
        counted (bool): True for the many() shapes carrying a count.
    Returns:
        list[Subscription]: One entry per listener to register or remove.
            remaining is None for unbounded shapes.
    Raises:
        TypeError: If no callable listener or no integer count is found, or
            an event key is unhashable.
        ValueError: If the count is below 1.
    """
    if counted:
        return _resolve_counted(method, args)

    return _resolve_unbounded(method, args)
