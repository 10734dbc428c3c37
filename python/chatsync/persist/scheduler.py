"""Debounced single-flight flush scheduler.

States: IDLE -> SCHEDULED (timer armed) -> FLUSHING (one write in flight) -> IDLE.

- Each schedule() stores the latest state and re-arms the timer, so K
  calls inside one window produce one write of the Kth state.
- At most one flush runs at a time. A schedule() during a flush only
  records the state; the timer is armed again when the flush ends.
- Flush failures are logged and dropped: no retry, nothing propagates
  to the caller that mutated the state.

Timers use the running asyncio event loop; schedule() must be called
from the loop thread.
"""

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from chatsync.logging import get_logger

logger = get_logger(__name__)

FlushFn = Callable[[Any], Awaitable[None]]


class FlushState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    FLUSHING = "flushing"


class FlushScheduler:
    """Coalesces state snapshots into debounced, serialized writes.

    Args:
        flush: Coroutine function persisting one state snapshot.
        delay_ms: Debounce window in milliseconds.
        name: Store name used in log entries.
    """

    def __init__(self, flush: FlushFn, delay_ms: int, *, name: str = "store"):
        self._flush = flush
        self._delay_s = delay_ms / 1000
        self.name = name
        self._pending: Any = None
        self._has_pending = False
        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> FlushState:
        if self._task is not None and not self._task.done():
            return FlushState.FLUSHING
        if self._timer is not None:
            return FlushState.SCHEDULED
        return FlushState.IDLE

    @property
    def has_pending(self) -> bool:
        return self._has_pending

    def schedule(self, state: Any) -> None:
        """Record state as the next snapshot to persist and (re)arm the timer."""
        self._pending = state
        self._has_pending = True
        if self.state is FlushState.FLUSHING:
            return
        self._arm()

    async def flush_now(self) -> None:
        """Persist the pending snapshot immediately, after any in-flight flush."""
        self._cancel_timer()
        if self.state is FlushState.FLUSHING:
            await asyncio.shield(self._task)
            self._cancel_timer()
        if self._has_pending:
            self._task = asyncio.get_running_loop().create_task(self._run())
            await self._task

    async def drain(self) -> None:
        """Flush until nothing is pending or in flight (shutdown)."""
        while self._has_pending or self.state is FlushState.FLUSHING:
            await self.flush_now()

    def cancel(self) -> None:
        """Drop the pending snapshot and disarm the timer.

        An in-flight flush is left to complete.
        """
        self._cancel_timer()
        self._pending = None
        self._has_pending = False

    def _arm(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay_s, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self.state is FlushState.FLUSHING:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        snapshot = self._pending
        self._pending = None
        self._has_pending = False
        try:
            await self._flush(snapshot)
        except Exception:
            logger.exception("store_flush_failed", store=self.name)
        finally:
            if self._has_pending:
                self._arm()
