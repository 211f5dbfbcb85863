"""Timer collaborators: "call this back after N seconds, unless canceled first".

The typewriter never sleeps. Every pause is a callback scheduled on a `Timer`, so the same state
machine runs on an asyncio event loop (`AsyncioTimer`) or on a virtual clock the host advances
itself (`ManualTimer`), which is what the tests use.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Any, Callable, List, Optional

from typing_extensions import Protocol

from typewriter.logger import trace_logger

TimerCallback = Callable[[], None]


class Timer(Protocol):
    """The minimal scheduling primitive the typewriter depends on."""

    def schedule_after(self, seconds: float, callback: TimerCallback) -> Any:
        """Arrange for `callback` to run once after `seconds`; return a cancel handle."""
        ...

    def cancel(self, handle: Any) -> None:
        """Prevent the callback behind `handle` from running; a no-op once it has run."""
        ...


class ManualTimerHandle:
    """A callback scheduled on a `ManualTimer`."""

    def __init__(self, due: float, seq: int, callback: TimerCallback):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def __lt__(self, other: ManualTimerHandle) -> bool:
        return (self.due, self.seq) < (other.due, other.seq)

    def __repr__(self) -> str:
        return f"ManualTimerHandle(due={self.due!r}, cancelled={self.cancelled!r})"


class ManualTimer:
    """A deterministic virtual clock.

    Nothing happens until the host calls `advance()`, `step()` or `run_until_idle()`. Callbacks
    fire in due-time order, ties in the order they were scheduled, and the clock reads the due time
    of the callback while it runs.
    """

    def __init__(self):
        self._now = 0.0
        self._queue: List[ManualTimerHandle] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks not yet run or canceled."""
        return sum(1 for handle in self._queue if not handle.cancelled)

    def schedule_after(self, seconds: float, callback: TimerCallback) -> ManualTimerHandle:
        handle = ManualTimerHandle(self._now + max(0.0, seconds), next(self._seq), callback)
        heapq.heappush(self._queue, handle)
        return handle

    def cancel(self, handle: Optional[ManualTimerHandle]) -> None:
        if handle is not None:
            handle.cancelled = True

    def step(self) -> bool:
        """Run the next due callback, moving the clock to its due time. False when idle."""
        handle = self._pop_next()
        if handle is None:
            return False
        self._now = max(self._now, handle.due)
        trace_logger.detail(f"manual timer firing at t={self._now:.3f}")  # type: ignore
        handle.callback()
        return True

    def advance(self, seconds: float) -> int:
        """Move the clock forward by `seconds`, running every callback that falls due."""
        target = self._now + seconds
        fired = 0
        while True:
            head = self._peek_next()
            if head is None or head.due > target:
                break
            self.step()
            fired += 1
        self._now = max(self._now, target)
        return fired

    def run_until_idle(self, max_steps: int = 100_000) -> int:
        """Run callbacks until none is pending; raises when `max_steps` is exceeded."""
        for steps in range(max_steps):
            if not self.step():
                return steps
        if self._peek_next() is None:
            return max_steps
        raise RuntimeError(f"timer still busy after {max_steps} callbacks")

    def _peek_next(self) -> Optional[ManualTimerHandle]:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)
        return self._queue[0] if self._queue else None

    def _pop_next(self) -> Optional[ManualTimerHandle]:
        if self._peek_next() is None:
            return None
        return heapq.heappop(self._queue)


class AsyncioTimer:
    """Schedules callbacks on an asyncio event loop with `loop.call_later()`.

    Without an explicit `loop` the running loop at scheduling time is used, so a timer can be
    created before the loop starts.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def schedule_after(self, seconds: float, callback: TimerCallback) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, seconds), callback)

    def cancel(self, handle: Optional[asyncio.TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()
