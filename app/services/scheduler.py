"""Deferred effect scheduling on the simulation clock.

Reload completion, sustained fire, muzzle-flash fade and staggered spawns are
not threads or wall-clock timers. They are tasks queued against the logical
match clock and run by ``EffectScheduler.advance`` from inside a tick, so they
are serialized with everything else the tick mutates.

Every task carries an owner token. Whatever invalidates a group of effects
(switching weapon, ending the match) cancels by owner.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional


@dataclass
class ScheduledTask:
    """A one-shot or repeating callback queued on the match clock."""
    task_id: int
    owner: object
    due_ms: int
    callback: Callable[[int], None]
    interval_ms: Optional[int] = None  # None for one-shot tasks
    cancelled: bool = False

    @property
    def repeating(self) -> bool:
        return self.interval_ms is not None

    def cancel(self):
        self.cancelled = True


class EffectScheduler:
    """Cancellable deferred/repeating tasks keyed by owner token."""

    def __init__(self):
        self._tasks: Dict[int, ScheduledTask] = {}
        self._next_id = 1

    def call_later(
        self,
        now_ms: int,
        delay_ms: int,
        callback: Callable[[int], None],
        owner: object,
    ) -> ScheduledTask:
        """Run ``callback(due_ms)`` once, ``delay_ms`` after ``now_ms``."""
        return self._add(now_ms + max(0, delay_ms), callback, owner, None)

    def call_every(
        self,
        now_ms: int,
        interval_ms: int,
        callback: Callable[[int], None],
        owner: object,
    ) -> ScheduledTask:
        """Run ``callback(due_ms)`` every ``interval_ms`` until cancelled."""
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        return self._add(now_ms + interval_ms, callback, owner, interval_ms)

    def _add(self, due_ms, callback, owner, interval_ms) -> ScheduledTask:
        task = ScheduledTask(
            task_id=self._next_id,
            owner=owner,
            due_ms=due_ms,
            callback=callback,
            interval_ms=interval_ms,
        )
        self._next_id += 1
        self._tasks[task.task_id] = task
        return task

    def cancel(self, task: Optional[ScheduledTask]):
        if task is None:
            return
        task.cancel()
        self._tasks.pop(task.task_id, None)

    def cancel_owner(self, owner: object) -> int:
        """Cancel every pending task of ``owner``. Returns how many."""
        doomed = [t for t in self._tasks.values() if t.owner is owner]
        for task in doomed:
            self.cancel(task)
        return len(doomed)

    def cancel_all(self) -> int:
        count = len(self._tasks)
        for task in list(self._tasks.values()):
            task.cancel()
        self._tasks.clear()
        return count

    def pending(self, owner: object = None) -> int:
        if owner is None:
            return len(self._tasks)
        return sum(1 for t in self._tasks.values() if t.owner is owner)

    def advance(self, now_ms: int) -> int:
        """Run every task due at or before ``now_ms`` in due order.

        A repeating task that fell behind runs once per missed interval.
        Tasks cancelled by an earlier callback in the same pass are skipped.

        Returns:
            Number of callbacks executed
        """
        executed = 0
        while True:
            due = self._next_due(now_ms)
            if due is None:
                return executed
            if due.repeating:
                due.due_ms += due.interval_ms
            else:
                self._tasks.pop(due.task_id, None)
            fired_at = due.due_ms - due.interval_ms if due.repeating else due.due_ms
            due.callback(fired_at)
            executed += 1

    def _next_due(self, now_ms: int) -> Optional[ScheduledTask]:
        candidates: List[ScheduledTask] = [
            t for t in self._tasks.values() if not t.cancelled and t.due_ms <= now_ms
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda t: (t.due_ms, t.task_id))
