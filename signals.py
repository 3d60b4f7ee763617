"""Observable values that drive calendar re-rendering.

Everything here is synchronous: ``Signal.set`` calls each subscriber on the
caller's thread, in subscription order, before returning.
"""

from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


def _unchanged(new: Any, old: Any) -> bool:
    # Aware datetimes compare by instant, but the same instant in another
    # timezone can fall on another calendar day.
    return (new == old
            and type(new) is type(old)
            and getattr(new, "tzinfo", None) == getattr(old, "tzinfo", None))


class Subscription:
    """Handle returned by :meth:`Emitter.subscribe`; call :meth:`cancel` to stop."""

    __slots__ = ("_emitter", "callback", "active")

    def __init__(self, emitter: "Emitter", callback: Callable[[Any], None]) -> None:
        self._emitter = emitter
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._emitter._subscribers.remove(self)


class Emitter:
    """Plain broadcast list of callbacks."""

    def __init__(self) -> None:
        self._subscribers: list[Subscription] = []

    def subscribe(self, callback: Callable[[Any], None]) -> Subscription:
        sub = Subscription(self, callback)
        self._subscribers.append(sub)
        return sub

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def emit(self, value: Any) -> None:
        # Snapshot: callbacks may subscribe or cancel while we iterate.
        # Cancelled ones are skipped, new ones wait for the next emit.
        for sub in list(self._subscribers):
            if sub.active:
                sub.callback(value)


class Signal(Emitter, Generic[T]):
    """A value holder that notifies subscribers when it changes."""

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value

    def __repr__(self) -> str:
        return f"Signal({self._value!r})"

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """Store ``value`` and notify subscribers, unless it is unchanged."""
        if _unchanged(value, self._value):
            return
        self._value = value
        self.emit(value)

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))


def as_signal(value: "T | Signal[T]") -> Signal[T]:
    """Wrap a plain value in a signal; pass signals through unchanged."""
    if isinstance(value, Signal):
        return value
    return Signal(value)
