"""Tests for the debounced single-flight flush scheduler.

Tests cover:
- K schedules inside one window produce one write of the last state
- At most one flush in flight; a schedule during a flush is written after it
- flush_now, drain and cancel
- Failed flushes are logged and dropped
"""

import asyncio

import pytest

from chatsync.persist.scheduler import FlushScheduler, FlushState
from tests.helpers import wait_until


class Recorder:
    """Flush target recording every snapshot it receives."""

    def __init__(self, delay: float = 0.0, fail: bool = False):
        self.writes: list = []
        self.delay = delay
        self.fail = fail
        self.active = 0
        self.max_active = 0

    async def __call__(self, state) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail:
                raise RuntimeError("backing store down")
            self.writes.append(state)
        finally:
            self.active -= 1


class TestDebounce:
    @pytest.mark.asyncio
    async def test_burst_coalesces_into_one_write(self):
        """Ten schedules inside one window write only the tenth state."""
        recorder = Recorder()
        scheduler = FlushScheduler(recorder, delay_ms=20)

        for i in range(10):
            scheduler.schedule({"n": i})

        assert scheduler.state is FlushState.SCHEDULED
        await wait_until(lambda: recorder.writes)
        await asyncio.sleep(0.05)

        assert recorder.writes == [{"n": 9}]
        assert scheduler.state is FlushState.IDLE

    @pytest.mark.asyncio
    async def test_nothing_written_before_window_elapses(self):
        recorder = Recorder()
        scheduler = FlushScheduler(recorder, delay_ms=200)

        scheduler.schedule({"n": 1})
        await asyncio.sleep(0.02)

        assert recorder.writes == []
        scheduler.cancel()

    @pytest.mark.asyncio
    async def test_separate_windows_write_separately(self):
        recorder = Recorder()
        scheduler = FlushScheduler(recorder, delay_ms=5)

        scheduler.schedule({"n": 1})
        await wait_until(lambda: len(recorder.writes) == 1)
        scheduler.schedule({"n": 2})
        await wait_until(lambda: len(recorder.writes) == 2)

        assert recorder.writes == [{"n": 1}, {"n": 2}]


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_schedule_during_flush_written_after(self):
        """A state scheduled mid-flush is persisted by a follow-up flush, never concurrently."""
        recorder = Recorder(delay=0.05)
        scheduler = FlushScheduler(recorder, delay_ms=1)

        scheduler.schedule({"n": 1})
        await wait_until(lambda: scheduler.state is FlushState.FLUSHING)
        scheduler.schedule({"n": 2})
        scheduler.schedule({"n": 3})
        assert scheduler.state is FlushState.FLUSHING

        await wait_until(lambda: len(recorder.writes) == 2)

        assert recorder.writes == [{"n": 1}, {"n": 3}]
        assert recorder.max_active == 1


class TestFlushNow:
    @pytest.mark.asyncio
    async def test_flush_now_skips_the_timer(self):
        recorder = Recorder()
        scheduler = FlushScheduler(recorder, delay_ms=10_000)

        scheduler.schedule({"n": 1})
        await scheduler.flush_now()

        assert recorder.writes == [{"n": 1}]
        assert scheduler.state is FlushState.IDLE

    @pytest.mark.asyncio
    async def test_flush_now_without_pending_is_noop(self):
        recorder = Recorder()
        scheduler = FlushScheduler(recorder, delay_ms=10)

        await scheduler.flush_now()

        assert recorder.writes == []

    @pytest.mark.asyncio
    async def test_drain_waits_for_in_flight_and_pending(self):
        recorder = Recorder(delay=0.02)
        scheduler = FlushScheduler(recorder, delay_ms=1)

        scheduler.schedule({"n": 1})
        await wait_until(lambda: scheduler.state is FlushState.FLUSHING)
        scheduler.schedule({"n": 2})

        await scheduler.drain()

        assert recorder.writes == [{"n": 1}, {"n": 2}]
        assert not scheduler.has_pending

    @pytest.mark.asyncio
    async def test_cancel_drops_pending(self):
        recorder = Recorder()
        scheduler = FlushScheduler(recorder, delay_ms=10)

        scheduler.schedule({"n": 1})
        scheduler.cancel()
        await asyncio.sleep(0.03)

        assert recorder.writes == []
        assert scheduler.state is FlushState.IDLE


class TestFailures:
    @pytest.mark.asyncio
    async def test_failed_flush_is_dropped(self):
        """A failing write neither retries nor raises into the caller."""
        recorder = Recorder(fail=True)
        scheduler = FlushScheduler(recorder, delay_ms=1)

        scheduler.schedule({"n": 1})
        await wait_until(lambda: scheduler.state is FlushState.IDLE and not scheduler.has_pending)
        await asyncio.sleep(0.02)

        assert recorder.writes == []

        recorder.fail = False
        scheduler.schedule({"n": 2})
        await wait_until(lambda: recorder.writes)
        assert recorder.writes == [{"n": 2}]

    @pytest.mark.asyncio
    async def test_flush_now_swallows_failure(self):
        scheduler = FlushScheduler(Recorder(fail=True), delay_ms=10)

        scheduler.schedule({"n": 1})
        await scheduler.flush_now()

        assert scheduler.state is FlushState.IDLE
