"""Minimal discrete-event scheduler used as the simulation clock.

Times are expressed in microseconds. Events scheduled for the same time run
in scheduling order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import heapq
import itertools
import logging
from typing import Callable, List

logger = logging.getLogger(__name__)


@dataclass(order=True, slots=True)
class Event:
    time: float
    seq: int
    callback: Callable[[], object] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class EventQueue:
    def __init__(self, start_time: float = 0.0) -> None:
        self.now = float(start_time)
        self._queue: List[Event] = []
        self._seq = itertools.count()

    def schedule(self, time: float, callback: Callable[[], object]) -> Event:
        """Schedule ``callback`` at absolute ``time`` (never in the past)."""
        if time < self.now:
            logger.warning(f"Event scheduled in the past (t={time} < now={self.now}), running at now")
            time = self.now
        event = Event(float(time), next(self._seq), callback)
        heapq.heappush(self._queue, event)
        logger.debug(f"Scheduled event {event.seq} at t={event.time:.1f}us")
        return event

    def schedule_in(self, delay: float, callback: Callable[[], object]) -> Event:
        return self.schedule(self.now + delay, callback)

    def step(self) -> bool:
        """Run the next live event. Return ``False`` when the queue is empty."""
        while self._queue:
            event = heapq.heappop(self._queue)
            if event.cancelled:
                continue
            self.now = event.time
            event.callback()
            return True
        return False

    def run(self, until: float | None = None, max_steps: int | None = None) -> int:
        """Process events until exhaustion, ``until`` or ``max_steps``."""
        steps = 0
        while self._queue:
            nxt = self.peek_time()
            if nxt is None or (until is not None and nxt > until):
                break
            if not self.step():
                break
            steps += 1
            if max_steps and steps >= max_steps:
                break
        if until is not None and self.now < until:
            self.now = float(until)
        return steps

    def advance(self, time: float) -> None:
        """Run everything due up to ``time`` and move the clock there."""
        self.run(until=time)

    def peek_time(self) -> float | None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)
        return self._queue[0].time if self._queue else None

    def __len__(self) -> int:
        return sum(1 for e in self._queue if not e.cancelled)


__all__ = ["Event", "EventQueue"]
