import heapq
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

_handle_ids = itertools.count(1)


@dataclass(eq=False)
class TimerHandle:
    """A delayed callback. Ids are unique per process and never reused."""

    due_ms: float
    callback: Callable[[], None] = field(repr=False)
    label: str = ''
    id: int = field(default_factory=lambda: next(_handle_ids))
    cancelled: bool = False
    fired: bool = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class Scheduler:
    """Schedule/cancel interface the round controller drives its timers through."""

    def now_ms(self) -> float:
        raise NotImplementedError

    def schedule(self, delay_ms: float, callback: Callable[[], None], label: str = '') -> TimerHandle:
        raise NotImplementedError

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is not None and handle.active:
            handle.cancelled = True
            logger.debug(f"[timer-cancel] id={handle.id} label={handle.label}")


class SimulatedScheduler(Scheduler):
    """Virtual clock for tests and headless play.

    Nothing fires until ``advance`` or ``run_until_idle`` moves the clock.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)
        self._queue = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def schedule(self, delay_ms, callback, label=''):
        handle = TimerHandle(due_ms=self._now + max(0.0, float(delay_ms)), callback=callback, label=label)
        heapq.heappush(self._queue, (handle.due_ms, next(self._seq), handle))
        return handle

    def pending(self) -> List[TimerHandle]:
        return [h for _, _, h in sorted(self._queue) if h.active]

    def advance(self, ms: float) -> int:
        """Move the clock forward, firing everything due on the way. Returns the number fired."""
        target = self._now + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if not handle.active:
                continue
            self._now = due
            handle.fired = True
            handle.callback()
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, limit: int = 1000) -> int:
        fired = 0
        while fired < limit:
            pending = self.pending()
            if not pending:
                break
            fired += self.advance(pending[0].due_ms - self._now)
        return fired


class RealtimeScheduler(Scheduler):
    """Runs each timer as a background task that sleeps and then fires.

    Callbacks run while holding ``guard`` so the owner can serialise them
    against request handlers touching the same game.
    """

    def __init__(self, spawn=None, sleep=None, guard=None, heartbeat_ms: int = 0):
        if spawn is None or sleep is None:
            from memory_game import socketio
            spawn = spawn or socketio.start_background_task
            sleep = sleep or socketio.sleep
        self._spawn = spawn
        self._sleep = sleep
        self.guard = guard if guard is not None else threading.RLock()
        self.heartbeat_ms = heartbeat_ms

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    def schedule(self, delay_ms, callback, label=''):
        delay_ms = max(0.0, float(delay_ms))
        handle = TimerHandle(due_ms=self.now_ms() + delay_ms, callback=callback, label=label)
        logger.debug(f"[timer-set] id={handle.id} label={label} delay={delay_ms:.0f}ms")
        self._spawn(self._worker, handle, delay_ms)
        return handle

    def _worker(self, handle: TimerHandle, delay_ms: float) -> None:
        if self.heartbeat_ms > 0:
            slept = 0.0
            while slept < delay_ms and handle.active:
                step = min(self.heartbeat_ms, delay_ms - slept)
                self._sleep(step / 1000.0)
                slept += step
                logger.info(f"[timer-heartbeat] id={handle.id} label={handle.label} remaining={max(0.0, delay_ms - slept):.0f}ms")
        else:
            self._sleep(delay_ms / 1000.0)
        with self.guard:
            if not handle.active:
                logger.debug(f"[timer-abort] id={handle.id} label={handle.label} cancelled")
                return
            handle.fired = True
            handle.callback()
