"""Persistence middleware for a reactive store.

Lifecycle per store: UNINITIALIZED -> HYDRATING -> HYDRATED.

Hydration loads the persisted state through the backend, upgrades it with
the migration chain when it was written by an older version, replaces
the in-memory state and runs the post-rehydrate callback. A load failure
is logged and the store keeps its initial state, and so is a failing
migration or post-rehydrate callback; the store is marked hydrated either
way so startup never blocks on storage.

Until the store is hydrated, mutations do not schedule writes: the
initial default state must never overwrite data that has not been loaded
yet. The state replacement done by hydration itself never schedules a
write either.

Once hydrated, every mutation arms a FlushScheduler (debounced,
single-flight, last-writer-wins). A flush persists the store state present
when the timer fires.
"""

import asyncio
import dataclasses
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from chatsync.logging import get_logger
from chatsync.persist.backends import StateBackend
from chatsync.persist.migrations import MigrationChain
from chatsync.persist.scheduler import FlushScheduler
from chatsync.persist.store import State, Store

logger = get_logger(__name__)


class HydrationStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    HYDRATING = "hydrating"
    HYDRATED = "hydrated"


@dataclass
class PersistOptions:
    """Persistence configuration of one store.

    Attributes:
        name: Storage name of the store.
        version: Current schema version of the state.
        migrations: Steps upgrading older persisted state to version.
        partialize: Selects the part of the state that is persisted.
        merge: Combines (persisted, current) state on hydration. When
            None the persisted state replaces the current state.
        on_rehydrate_storage: Called with the hydrated state; may return a
            derived state, which replaces it without being persisted.
    """

    name: str
    version: int = 1
    migrations: MigrationChain = field(default_factory=MigrationChain)
    partialize: Callable[[State], State] | None = None
    merge: Callable[[State, State], State] | None = None
    on_rehydrate_storage: Callable[[State], State | None] | None = None


class PersistMiddleware:
    """Keeps a Store in sync with its persisted copy."""

    def __init__(
        self,
        store: Store,
        backend: StateBackend,
        options: PersistOptions,
        debounce_ms: int = 100,
    ):
        self.store = store
        self._backend = backend
        self._options = options
        self._scheduler = FlushScheduler(self._write, debounce_ms, name=options.name)
        self.status = HydrationStatus.UNINITIALIZED
        self._applying_rehydration = False
        self._hydration_task: asyncio.Task | None = None
        self._unsubscribe = store.subscribe(self._on_change)

    @property
    def scheduler(self) -> FlushScheduler:
        return self._scheduler

    def start(self) -> asyncio.Task:
        """Start hydration in the background; returns the hydration task."""
        if self._hydration_task is None:
            self.status = HydrationStatus.HYDRATING
            self._hydration_task = asyncio.get_running_loop().create_task(self.rehydrate())
        return self._hydration_task

    async def wait_hydrated(self) -> None:
        """Wait for the hydration started by start()."""
        await self.start()

    def has_hydrated(self) -> bool:
        return self.status is HydrationStatus.HYDRATED

    async def rehydrate(self) -> None:
        """Load, migrate and apply the persisted state.

        A failing load, migration or merge is logged and leaves the initial
        state in place; a failing callback is logged too. The store is marked
        hydrated either way.
        A write still waiting for its timer is dropped: it would overwrite
        the state just loaded.
        """
        if self.status is HydrationStatus.UNINITIALIZED:
            self.status = HydrationStatus.HYDRATING
        options = self._options
        self._scheduler.cancel()

        try:
            loaded = await self._load_and_apply(options)
        except Exception:
            logger.exception("store_rehydrate_failed", store=options.name)
            loaded = False
        finally:
            self.status = HydrationStatus.HYDRATED

        if loaded and options.on_rehydrate_storage is not None:
            try:
                derived = options.on_rehydrate_storage(self.store.get_state())
            except Exception:
                logger.exception("store_rehydrate_callback_failed", store=options.name)
                return
            if derived is not None:
                self._apply(derived)

    async def _load_and_apply(self, options: PersistOptions) -> bool:
        snapshot = await self._backend.load(options.name)
        if snapshot is None:
            logger.info("store_rehydrate_empty", store=options.name)
            return True

        stored_version = snapshot.version if snapshot.version is not None else options.version
        state = snapshot.state
        if stored_version < options.version:
            state = options.migrations.apply(state, stored_version, options.version)
            logger.info(
                "store_migrated",
                store=options.name,
                from_version=stored_version,
                to_version=options.version,
            )
        if options.merge is not None:
            state = options.merge(state, self.store.get_state())
        self._apply(state)
        logger.info("store_rehydrated", store=options.name, version=options.version)
        return True

    async def clear_storage(self) -> None:
        """Delete everything persisted for this store and drop any pending write."""
        self._scheduler.cancel()
        await self._backend.clear(self._options.name, self.store.get_state())
        logger.info("store_storage_cleared", store=self._options.name)

    def set_options(self, **changes: Any) -> None:
        """Change name, version, migrations or callbacks."""
        self._options = dataclasses.replace(self._options, **changes)
        self._scheduler.name = self._options.name

    def get_options(self) -> PersistOptions:
        return self._options

    async def flush(self) -> None:
        """Write the pending state now instead of waiting for the timer."""
        await self._scheduler.flush_now()

    async def aclose(self) -> None:
        """Persist anything pending and stop listening to the store."""
        if self._hydration_task is not None and not self._hydration_task.done():
            await self._hydration_task
        await self._scheduler.drain()
        self._unsubscribe()

    def _apply(self, state: State) -> None:
        self._applying_rehydration = True
        try:
            self.store.set_state(state, replace=True)
        finally:
            self._applying_rehydration = False

    def _on_change(self, state: State, previous: State) -> None:
        if self._applying_rehydration:
            return
        if self.status is not HydrationStatus.HYDRATED:
            logger.debug("store_write_suppressed", store=self._options.name, status=self.status)
            return
        self._scheduler.schedule(state)

    async def _write(self, scheduled: State) -> None:
        # Persist the state present when the timer fires, not the scheduled snapshot
        state = self.store.get_state()
        options = self._options
        persisted = options.partialize(state) if options.partialize is not None else state
        await self._backend.save(options.name, persisted, options.version)
