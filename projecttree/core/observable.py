# projecttree/core/observable.py
from typing import Callable, List

from loguru import logger

Listener = Callable[[], None]


class Observable:
    """Minimal change notification for controllers (stands in for Qt signals in the core)."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        """Registers `callback` and returns a function that removes it again."""
        self._listeners.append(callback)

        def remove():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return remove

    def _notify(self):
        for callback in list(self._listeners):
            try: callback()
            except Exception as e: logger.error(f"Error in change listener {callback!r}: {e}")
