"""Listener registry for observable state."""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Observable:
    """Mixin holding change listeners.

    Listeners are called synchronously with the new value every time the
    owner calls ``_emit``. A listener that raises is logged and skipped.
    """

    def __init__(self):
        self._listeners: list[Callable[[Any], None]] = []

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, value: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception(f"Listener {listener!r} failed")
