"""
FILE: snackboard/core/timer.py
PURPOSE: Single-task work timer (Idle / Running state machine)
EXPORTS:
  - Timer (class)
  - elapsed_seconds(start_ms, now_ms) -> int
  - minutes_from_seconds(seconds) -> int
DEPENDENCIES:
  - asyncio (tick loop)
  - logging (stdlib)
  - snackboard.core.exceptions (TimerRejectedError)
  - snackboard.core.constants
NOTES:
  - State lives on the owning Store (store.timer_state) so it persists with the board
  - Elapsed time is always derived from the start timestamp, never accumulated
  - Only stop() commits minutes to the task; ticks are display-only
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, List, Optional

from .constants import COLUMN_DOING, TICK_SECONDS, TIMER_START, TIMER_STOP
from .exceptions import TimerRejectedError
from .models import TimeEntry, TimedTask, TimerState

if TYPE_CHECKING:
    from .store import Store

logger = logging.getLogger(__name__)

TickListener = Callable[[int], None]


def elapsed_seconds(start_ms: int, now_ms: int) -> int:
    """Whole seconds between two epoch-millisecond timestamps (never negative)."""
    return max(0, (now_ms - start_ms) // 1000)


def minutes_from_seconds(seconds: int) -> int:
    """Whole minutes, rounding half up (90s -> 2, 89s -> 1)."""
    return (seconds + 30) // 60


class Timer:
    """Tracks at most one running task timer for a Store."""

    def __init__(self, store: "Store"):
        self.store = store
        self._tick_listeners: List[TickListener] = []

    @property
    def state(self) -> TimerState:
        return self.store.timer_state

    @property
    def running(self) -> bool:
        return self.state.running

    def active_task(self) -> Optional[TimedTask]:
        task = self.store.get_task(self.state.task_id)
        return task if isinstance(task, TimedTask) else None

    def start(self, task_id: str) -> TimedTask:
        """
        Start timing a task.

        A running timer is stopped (and credited) first. The task is moved to
        the 'doing' column if it is elsewhere.

        Raises:
            TimerRejectedError: If the task is unknown or prompt-only
        """
        task = self.store.get_task(task_id)
        if task is None:
            raise TimerRejectedError(task_id, f"Task {task_id} not found")
        if not isinstance(task, TimedTask):
            raise TimerRejectedError(task_id, "Cannot start timer on prompt-only tasks")

        if self.running:
            self.stop()

        state = self.state
        state.task_id = task.id
        state.start_time = self.store.clock()
        state.elapsed = 0

        if task.column_id != COLUMN_DOING:
            task.column_id = COLUMN_DOING

        logger.debug("Timer started on task %s", task.id)
        self.store._commit(TIMER_START)
        return task

    def stop(self) -> Optional[TimeEntry]:
        """
        Stop the running timer and credit the task.

        Returns the appended time entry, or None if nothing was running (or
        the task disappeared meanwhile). An entry is appended even when it
        rounds to 0 minutes.
        """
        state = self.state
        if not state.running:
            return None

        now = self.store.clock()
        seconds = elapsed_seconds(state.start_time, now)
        task = self.active_task()

        entry = None
        if task is not None:
            entry = task.log_time(minutes_from_seconds(seconds), now)
            logger.debug("Timer stopped on task %s: %ss -> %s min", task.id, seconds, entry.minutes)
        else:
            logger.warning("Timer task %s no longer exists; discarding %ss", state.task_id, seconds)

        state.reset()
        self.store._commit(TIMER_STOP)
        return entry

    def tick(self) -> int:
        """Recompute elapsed seconds from the start timestamp. Display-only."""
        state = self.state
        if state.running:
            state.elapsed = elapsed_seconds(state.start_time, self.store.clock())
        return state.elapsed

    def on_tick(self, listener: TickListener) -> None:
        """Register listener(elapsed_seconds), called on every tick while running."""
        self._tick_listeners.append(listener)

    async def run(self, interval: float = TICK_SECONDS) -> None:
        """Tick forever on a fixed cadence; cancel the task to stop."""
        while True:
            if self.running:
                elapsed = self.tick()
                for listener in list(self._tick_listeners):
                    listener(elapsed)
            await asyncio.sleep(interval)
