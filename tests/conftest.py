"""
Shared test fixtures.

ManualScheduler implements the scheduler protocol with a virtual clock so
debouncer timing can be asserted deterministically.
"""

import itertools
from typing import Callable, List, Optional, Tuple

import pytest

from http_activity_indicator.core.types import IndicatorTimings
from http_activity_indicator.services.activity_tracker import ActivityTracker
from http_activity_indicator.services.debouncer import VisibilityDebouncer
from http_activity_indicator.services.visibility import VisibilityService


class ManualTimer:
    def __init__(self, due: float, seq: int, callback: Callable[[], None]):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Virtual-time scheduler; timers only fire inside advance()."""

    def __init__(self, start: float = 0.0):
        self.time = start
        self._seq = itertools.count()
        self._timers: List[ManualTimer] = []

    def now(self) -> float:
        return self.time

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.time + max(0.0, delay_ms), next(self._seq), callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, ms: float):
        target = self.time + ms
        while True:
            due = [t for t in self._timers if not t.cancelled and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self._timers.remove(timer)
            self.time = timer.due
            timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self.time = target


class Recorder:
    """Collects (time, value) pairs published by a broadcast."""

    def __init__(self, scheduler: ManualScheduler):
        self.scheduler = scheduler
        self.events: List[Tuple[float, bool]] = []

    def __call__(self, value: bool):
        self.events.append((self.scheduler.now(), value))

    @property
    def values(self) -> List[bool]:
        return [v for _, v in self.events]


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def tracker() -> ActivityTracker:
    return ActivityTracker()


@pytest.fixture
def visibility_service() -> VisibilityService:
    return VisibilityService()


@pytest.fixture
def make_debouncer(tracker, scheduler, visibility_service):
    created: List[VisibilityDebouncer] = []

    def factory(timings: Optional[IndicatorTimings] = None) -> Tuple[VisibilityDebouncer, Recorder]:
        debouncer = VisibilityDebouncer(
            status=tracker.status,
            scheduler=scheduler,
            timings=timings,
            forced=visibility_service.visibility,
        )
        recorder = Recorder(scheduler)
        debouncer.visibility.subscribe(recorder)
        created.append(debouncer)
        return debouncer, recorder

    yield factory
    for debouncer in created:
        debouncer.close()
