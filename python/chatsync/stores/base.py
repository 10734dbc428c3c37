"""Common shape of a persisted store: a Store wired to its middleware."""

import asyncio

from chatsync.persist import PersistMiddleware, PersistOptions, State, StateBackend, Store


def merge_defaults(persisted: State, current: State) -> State:
    """Shallow merge keeping defaults for keys the persisted state lacks."""
    return {**current, **persisted}


class PersistedStore:
    """Store plus PersistMiddleware, started and closed together.

    Subclasses define the default state, the persistence options and the
    actions that mutate the state.
    """

    def __init__(
        self,
        backend: StateBackend,
        options: PersistOptions,
        initial_state: State,
        debounce_ms: int,
    ):
        self.store = Store(initial_state)
        self.persist = PersistMiddleware(self.store, backend, options, debounce_ms)

    @property
    def state(self) -> State:
        return self.store.get_state()

    def start(self) -> asyncio.Task:
        return self.persist.start()

    async def wait_hydrated(self) -> None:
        await self.persist.wait_hydrated()

    def has_hydrated(self) -> bool:
        return self.persist.has_hydrated()

    async def flush(self) -> None:
        await self.persist.flush()

    async def clear_storage(self) -> None:
        await self.persist.clear_storage()

    async def aclose(self) -> None:
        await self.persist.aclose()
