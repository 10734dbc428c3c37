"""Tests for the store persistence middleware.

Tests cover:
- Writes are suppressed until hydration completes
- Hydration replaces state without scheduling a write
- Versioned migrations and merge with defaults
- Load, migration, merge and callback failures are logged and still mark the store hydrated
- Flushes write the state present when the timer fires; rehydrate drops pending writes
- on_rehydrate_storage derived state, partialize, clear_storage, aclose
"""

import asyncio

import pytest

from chatsync.persist import (
    BlobStateBackend,
    HydrationStatus,
    MigrationChain,
    PersistMiddleware,
    PersistOptions,
    Store,
)
from chatsync.schemas.blobs import BlobValue
from chatsync.storage.fake import FakeBlobStore
from tests.helpers import wait_until


def _middleware(port: FakeBlobStore, initial: dict | None = None, **options) -> PersistMiddleware:
    options.setdefault("name", "prefs")
    store = Store(initial if initial is not None else {"theme": "light", "size": 1})
    return PersistMiddleware(store, BlobStateBackend(port), PersistOptions(**options), 5)


class TestMigrationChain:
    def test_steps_run_in_order(self):
        chain = MigrationChain()
        chain.step(0)(lambda s: {**s, "trail": s.get("trail", "") + "0"})
        chain.step(1)(lambda s: {**s, "trail": s["trail"] + "1"})

        assert chain.apply({}, 0, 2) == {"trail": "01"}
        assert chain.apply({"trail": "x"}, 1, 2) == {"trail": "x1"}
        assert chain.versions == [0, 1]

    def test_missing_step_carries_state_forward(self):
        chain = MigrationChain({2: lambda s: {**s, "v3": True}})

        assert chain.apply({"a": 1}, 0, 3) == {"a": 1, "v3": True}

    def test_current_state_unchanged(self):
        chain = MigrationChain({0: lambda s: {"replaced": True}})
        original = {"a": 1}

        assert chain.apply(original, 1, 1) == {"a": 1}
        assert chain.apply(original, 0, 1) == {"replaced": True}
        assert original == {"a": 1}


class TestHydration:
    @pytest.mark.asyncio
    async def test_writes_suppressed_before_hydration(self):
        """Mutations before hydration never overwrite unloaded data."""
        port = FakeBlobStore({"prefs": BlobValue(value={"theme": "dark", "size": 3}, version=1)})
        middleware = _middleware(port)

        middleware.store.set_state({"theme": "blue"})
        await asyncio.sleep(0.03)

        assert port.writes == []
        assert middleware.status is HydrationStatus.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_hydration_replaces_state_without_writing(self):
        port = FakeBlobStore({"prefs": BlobValue(value={"theme": "dark", "size": 3}, version=1)})
        middleware = _middleware(port)

        await middleware.wait_hydrated()
        await asyncio.sleep(0.03)

        assert middleware.store.get_state() == {"theme": "dark", "size": 3}
        assert middleware.has_hydrated()
        assert port.writes == []

    @pytest.mark.asyncio
    async def test_mutation_after_hydration_is_persisted(self):
        port = FakeBlobStore()
        middleware = _middleware(port, version=4)

        await middleware.wait_hydrated()
        middleware.store.set_state({"size": 2})
        await wait_until(lambda: port.writes)

        assert port.writes == [("prefs", {"theme": "light", "size": 2}, 4)]

    @pytest.mark.asyncio
    async def test_empty_storage_keeps_initial_state(self):
        middleware = _middleware(FakeBlobStore())

        await middleware.wait_hydrated()

        assert middleware.store.get_state() == {"theme": "light", "size": 1}
        assert middleware.status is HydrationStatus.HYDRATED

    @pytest.mark.asyncio
    async def test_load_failure_keeps_initial_state(self):
        """A failing backend is logged; the store still becomes hydrated and writable."""
        port = FakeBlobStore()
        port.fail_reads = True
        middleware = _middleware(port)

        await middleware.wait_hydrated()

        assert middleware.store.get_state() == {"theme": "light", "size": 1}
        assert middleware.has_hydrated()

        middleware.store.set_state({"size": 5})
        await middleware.flush()
        assert port.blobs["prefs"].value["size"] == 5

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        middleware = _middleware(FakeBlobStore())

        first = middleware.start()
        second = middleware.start()
        await first

        assert first is second


class TestHydrationFailures:
    @pytest.mark.asyncio
    async def test_failing_migration_keeps_initial_state_and_stays_writable(self):
        """A broken migration step is logged; the store still hydrates and persists."""
        port = FakeBlobStore({"prefs": BlobValue(value={"theme": "dark"}, version=0)})
        middleware = _middleware(port, migrations=MigrationChain({0: lambda s: s["missing"]}))

        await middleware.wait_hydrated()

        assert middleware.status is HydrationStatus.HYDRATED
        assert middleware.store.get_state() == {"theme": "light", "size": 1}

        middleware.store.set_state({"size": 5})
        await wait_until(lambda: port.writes)

        assert port.writes == [("prefs", {"theme": "light", "size": 5}, 1)]

    @pytest.mark.asyncio
    async def test_failing_callback_is_logged_not_raised(self):
        def explode(state):
            raise RuntimeError("derived state failed")

        port = FakeBlobStore({"prefs": BlobValue(value={"theme": "dark", "size": 3}, version=1)})
        middleware = _middleware(port, on_rehydrate_storage=explode)

        await middleware.wait_hydrated()
        await middleware.aclose()

        assert middleware.has_hydrated()
        assert middleware.store.get_state() == {"theme": "dark", "size": 3}

    @pytest.mark.asyncio
    async def test_failing_merge_keeps_initial_state(self):
        def bad_merge(persisted, current):
            raise ValueError("incompatible")

        port = FakeBlobStore({"prefs": BlobValue(value={"theme": "dark"}, version=1)})
        middleware = _middleware(port, merge=bad_merge)

        await middleware.wait_hydrated()

        assert middleware.has_hydrated()
        assert middleware.store.get_state() == {"theme": "light", "size": 1}


class TestMigrationOnHydrate:
    @pytest.mark.asyncio
    async def test_old_version_migrated(self):
        chain = MigrationChain()

        @chain.step(1)
        def rename(state):
            state["size"] = state.pop("fontSize")
            return state

        port = FakeBlobStore({"prefs": BlobValue(value={"fontSize": 7}, version=1)})
        middleware = _middleware(port, version=2, migrations=chain)

        await middleware.wait_hydrated()

        assert middleware.store.get_state() == {"size": 7}

    @pytest.mark.asyncio
    async def test_merge_keeps_defaults_for_missing_keys(self):
        port = FakeBlobStore({"prefs": BlobValue(value={"theme": "dark"}, version=1)})
        middleware = _middleware(port, merge=lambda persisted, current: {**current, **persisted})

        await middleware.wait_hydrated()

        assert middleware.store.get_state() == {"theme": "dark", "size": 1}


class TestRehydrateCallback:
    @pytest.mark.asyncio
    async def test_derived_state_applied_but_not_persisted(self):
        port = FakeBlobStore({"prefs": BlobValue(value={"theme": "dark", "size": 3}, version=1)})
        middleware = _middleware(
            port, on_rehydrate_storage=lambda state: {**state, "derived": state["size"] * 2}
        )

        await middleware.wait_hydrated()
        await asyncio.sleep(0.03)

        assert middleware.store.get_state()["derived"] == 6
        assert port.writes == []

    @pytest.mark.asyncio
    async def test_callback_returning_none_leaves_state(self):
        seen = []
        port = FakeBlobStore({"prefs": BlobValue(value={"theme": "dark"}, version=1)})
        middleware = _middleware(port, on_rehydrate_storage=seen.append)

        await middleware.wait_hydrated()

        assert seen == [{"theme": "dark"}]
        assert middleware.store.get_state() == {"theme": "dark"}


class TestWriting:
    @pytest.mark.asyncio
    async def test_partialize_selects_persisted_keys(self):
        port = FakeBlobStore()
        middleware = _middleware(port, partialize=lambda state: {"theme": state["theme"]})

        await middleware.wait_hydrated()
        middleware.store.set_state({"theme": "dark", "size": 9})
        await middleware.flush()

        assert port.blobs["prefs"].value == {"theme": "dark"}

    @pytest.mark.asyncio
    async def test_clear_storage_deletes_and_drops_pending(self):
        port = FakeBlobStore({"prefs": BlobValue(value={"theme": "dark"}, version=1)})
        middleware = _middleware(port)
        await middleware.wait_hydrated()

        middleware.store.set_state({"theme": "pending"})
        await middleware.clear_storage()
        await asyncio.sleep(0.03)

        assert "prefs" not in port.blobs
        assert port.writes == []

    @pytest.mark.asyncio
    async def test_aclose_flushes_pending_and_unsubscribes(self):
        port = FakeBlobStore()
        store = Store({"n": 0})
        middleware = PersistMiddleware(
            store, BlobStateBackend(port), PersistOptions(name="prefs"), debounce_ms=10_000
        )
        await middleware.wait_hydrated()

        store.set_state({"n": 1})
        await middleware.aclose()
        store.set_state({"n": 2})
        await asyncio.sleep(0.02)

        assert port.writes == [("prefs", {"n": 1}, 1)]

    @pytest.mark.asyncio
    async def test_set_options_renames_target(self):
        port = FakeBlobStore()
        middleware = _middleware(port)
        await middleware.wait_hydrated()

        middleware.set_options(name="prefs-v2", version=2)
        middleware.store.set_state({"size": 4})
        await middleware.flush()

        assert middleware.get_options().name == "prefs-v2"
        assert port.blobs["prefs-v2"].version == 2


class TestFlushReadsLiveState:
    @pytest.mark.asyncio
    async def test_manual_rehydrate_drops_pending_write(self):
        """A rehydrate inside the debounce window is not overwritten by the older mutation."""
        port = FakeBlobStore({"prefs": BlobValue(value={"a": 1}, version=1)})
        middleware = _middleware(port, {"a": 0})
        await middleware.wait_hydrated()

        middleware.store.set_state({"a": 2})
        port.blobs["prefs"] = BlobValue(value={"a": 99}, version=1)
        await middleware.rehydrate()
        await asyncio.sleep(0.03)

        assert middleware.store.get_state() == {"a": 99}
        assert port.blobs["prefs"].value == {"a": 99}
        assert port.writes == []

    @pytest.mark.asyncio
    async def test_flush_writes_state_at_fire_time(self):
        """The scheduled snapshot is only a trigger; the store's current state is written."""
        port = FakeBlobStore()
        middleware = _middleware(port, {"a": 0})
        await middleware.wait_hydrated()

        middleware.store.set_state({"a": 1})
        middleware.scheduler.schedule({"a": "stale"})
        await middleware.flush()

        assert port.blobs["prefs"].value == {"a": 1}
