"""Versioned migration chain for persisted store state.

Each step is a pure function registered under the version it upgrades
*from*; it receives the state as shaped at that version and returns the
state as shaped at the next one. apply() runs the steps in order from the
stored version up to the current version. A version with no registered
step is carried forward unchanged.
"""

from collections.abc import Callable, Mapping
from typing import Any

State = dict[str, Any]
Migration = Callable[[State], State]


class MigrationChain:
    """Ordered table of migrations keyed by source version."""

    def __init__(self, steps: Mapping[int, Migration] | None = None):
        self._steps: dict[int, Migration] = dict(steps or {})

    def step(self, from_version: int) -> Callable[[Migration], Migration]:
        """Decorator registering a migration from from_version to from_version + 1."""

        def register(fn: Migration) -> Migration:
            self._steps[from_version] = fn
            return fn

        return register

    @property
    def versions(self) -> list[int]:
        return sorted(self._steps)

    def apply(self, state: State, from_version: int, to_version: int) -> State:
        """Upgrade state from from_version to to_version.

        State already at (or past) to_version is returned unchanged.
        """
        migrated = dict(state)
        for version in range(from_version, to_version):
            step = self._steps.get(version)
            if step is not None:
                migrated = step(dict(migrated))
        return migrated
