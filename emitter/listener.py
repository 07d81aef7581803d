"""
Listener data structures and type definitions for the event emitter.

Defines the Listener dataclass which wraps a callback with its remaining
invocation budget. Unbounded listeners carry a budget of None, many-time
listeners count down to zero and are then dropped by the emitter. Also defines
the LISTENER type alias used throughout the emitter for type hints.
"""

from dataclasses import dataclass
from typing import Any
from typing import Callable
from typing import Optional

LISTENER = Callable[..., Any]
"""
The callback end point that emitted arguments are forwarded to, positionally.

Return values are ignored. If you want data back, emit an event going the
opposite direction.
"""


def same_callback(a: LISTENER, b: LISTENER) -> bool:
    """
    Check if two callbacks refer to the same listener.

    Bound methods are recreated on every attribute access, so two of them match
    when they wrap the same function on the same instance. Method equality
    compares the instance by identity, never by value.
    """
    if a is b:
        return True

    if hasattr(a, "__self__") and hasattr(b, "__self__"):
        return a == b

    return False


@dataclass(eq=False)
class Listener(object):
    """A registered callback and how many more times it may run."""

    callback: LISTENER
    """What gets ran when a matching event is emitted."""

    remaining: Optional[int] = None
    """
    Invocations left before the listener expires.
    None means the listener never expires.
    """

    @property
    def bounded(self) -> bool:
        return self.remaining is not None

    @property
    def expired(self) -> bool:
        """True once a bounded listener has used its whole budget."""
        return self.remaining is not None and self.remaining <= 0

    def consume(self) -> bool:
        """
        Count one invocation against the budget.

        Returns:
            bool: True if this invocation exhausted the listener.
        """
        if self.remaining is None:
            return False

        self.remaining -= 1
        return self.remaining <= 0

    def matches(self, callback: LISTENER) -> bool:
        return same_callback(self.callback, callback)
