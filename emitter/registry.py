"""
Listener registry data structures for the event emitter.

Maps every event key to the ordered list of listeners registered under it.
Listeners that should receive every emitted event are grouped under the EVERY
sentinel, of which there is exactly one.

An event key exists in the registry while it has at least one listener.
"""

from collections.abc import Hashable
from typing import Optional

from emitter import listener


class _Every(object):
    """Sentinel type for the wildcard group."""

    _instance: Optional["_Every"] = None

    def __new__(cls) -> "_Every":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<every>"


EVERY = _Every()
"""Event key matched by every emitted event."""

EVENT_KEY = Hashable
"""Strings, opaque tokens, or EVERY."""


def normalize_key(event: object) -> EVENT_KEY:
    """
    Validate an event key, mapping None to EVERY.

    Raises:
        TypeError: If the key cannot be used in a dict.
    """
    if event is None:
        return EVERY

    if not isinstance(event, Hashable):
        raise TypeError(
            f"Event keys must be hashable, got {type(event).__name__}"
        )

    return event


class Registry(object):
    """Ordered listener lists keyed by event."""

    def __init__(self) -> None:
        self._entries: dict[EVENT_KEY, list[listener.Listener]] = {}

    def add(self, event: EVENT_KEY, entry: listener.Listener) -> int:
        """
        Append a listener to an event's list.

        Returns:
            int: The number of listeners under the event after the append.
        """
        entries = self._entries.setdefault(event, [])
        entries.append(entry)
        return len(entries)

    def remove(
        self, event: EVENT_KEY, callback: listener.LISTENER
    ) -> Optional[listener.Listener]:
        """
        Remove the first listener under the event wrapping the callback.

        Returns:
            Optional[listener.Listener]: The removed entry, or None if no
                entry matched.
        """
        entries = self._entries.get(event)
        if not entries:
            return None

        for index, entry in enumerate(entries):
            if entry.matches(callback):
                del entries[index]
                self._cleanup_if_empty(event)
                return entry

        return None

    def discard(self, event: EVENT_KEY, entry: listener.Listener) -> bool:
        """
        Remove this exact entry object.

        Returns:
            bool: False if the entry was no longer registered.
        """
        entries = self._entries.get(event)
        if not entries:
            return False

        for index, existing in enumerate(entries):
            if existing is entry:
                del entries[index]
                self._cleanup_if_empty(event)
                return True

        return False

    def get(self, event: EVENT_KEY) -> list[listener.Listener]:
        """Copy of the listeners registered under exactly this event."""
        return list(self._entries.get(event, []))

    def count(self, event: EVENT_KEY) -> int:
        return len(self._entries.get(event, []))

    def snapshot(
        self, event: EVENT_KEY, every: bool = True
    ) -> list[tuple[EVENT_KEY, listener.Listener]]:
        """
        Freeze the listeners an emit of this event should run.

        Exact listeners come first, then the EVERY group unless every is
        False, each in subscription order. Every entry is paired with the key
        it is registered under.
        """
        matching = [(event, entry) for entry in self._entries.get(event, [])]
        if every and event is not EVERY:
            matching.extend(
                (EVERY, entry) for entry in self._entries.get(EVERY, [])
            )

        return matching

    def clear(self, event: EVENT_KEY = EVERY) -> None:
        """Drop one event's listeners, or everything when given EVERY."""
        if event is EVERY:
            self._entries.clear()
        else:
            self._entries.pop(event, None)

    def events(self) -> list[EVENT_KEY]:
        """All keys holding listeners, in first-subscription order."""
        return list(self._entries.keys())

    def items(self) -> list[tuple[EVENT_KEY, list[listener.Listener]]]:
        return [(event, list(entries)) for event, entries in self._entries.items()]

    def _cleanup_if_empty(self, event: EVENT_KEY) -> None:
        if not self._entries.get(event):
            self._entries.pop(event, None)
