from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Signal:
    """A fire-and-forget notification with explicit subscribe/notify.

    Listeners are called synchronously in subscription order. A listener that
    raises is logged and does not prevent the remaining listeners from running.
    """

    def __init__(self, name: str = "signal") -> None:
        self._name = name
        self._listeners: list[Callable[..., Any]] = []

    def subscribe(self, listener: Callable[..., Any]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: Callable[..., Any]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, *args: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener of %s failed", self._name)

    def __len__(self) -> int:
        return len(self._listeners)


class ObservableValue(Generic[T]):
    """Holds a single value and notifies subscribers when it actually changes."""

    def __init__(self, value: T) -> None:
        self._value = value
        self.changed = Signal("value-changed")

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        if value == self._value:
            return False
        old = self._value
        self._value = value
        self.changed.emit(old, value)
        return True

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        self.set(value)
