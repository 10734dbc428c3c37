"""Minimal reactive state container.

State is a flat dict replaced on every update, never mutated in place.
Listeners run synchronously after each update with (state, previous).
"""

from collections.abc import Callable
from typing import Any

State = dict[str, Any]
Listener = Callable[[State, State], None]
StateUpdate = State | Callable[[State], State]


class Store:
    """Holds one state dict and notifies subscribers of changes."""

    def __init__(self, initial_state: State):
        self._state: State = dict(initial_state)
        self._initial_state: State = dict(initial_state)
        self._listeners: list[Listener] = []

    @property
    def initial_state(self) -> State:
        return dict(self._initial_state)

    def get_state(self) -> State:
        return self._state

    def set_state(self, update: StateUpdate, replace: bool = False) -> None:
        """Apply an update and notify listeners.

        Args:
            update: Partial state, or a function of the current state
                returning one.
            replace: Replace the whole state instead of merging keys.
        """
        partial = update(self._state) if callable(update) else update
        previous = self._state
        self._state = dict(partial) if replace else {**previous, **partial}
        for listener in list(self._listeners):
            listener(self._state, previous)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
