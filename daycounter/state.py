"""
Observable State

The counter service publishes its results through observables instead
of return values, so a presentation layer can bind to them once and
re-render whenever a value changes.

Publishing replaces the whole value; observers never see a
half-updated mapping.
"""

from typing import Callable, Generic, TypeVar

import structlog

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class Observable(Generic[T]):
    """A read-only value with change notifications."""

    def __init__(self, name: str, initial: T):
        self._name = name
        self._value = initial
        self._subscribers: list[Callable[[T], None]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """
        Register `callback` for future updates.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, value: T) -> None:
        self._value = value
        for callback in list(self._subscribers):
            try:
                callback(value)
            except Exception:
                # A broken observer must not stop the others
                logger.exception("observer_failed", observable=self._name)

    def __repr__(self) -> str:
        return f"Observable({self._name}={self._value!r})"


class MutableObservable(Observable[T]):
    """Observable the owner can publish to."""

    def publish(self, value: T) -> None:
        self._publish(value)
