"""Tick sources that drive the engine's timers.

The engine never talks to a timer API directly.  It asks a tick source to
call it back on an interval or once after a delay, and to report the current
monotonic time.  :class:`KivyTickSource` wraps :class:`kivy.clock.Clock` for
the app; :class:`ManualTickSource` is stepped by hand in tests.
"""

from __future__ import annotations

import time
from typing import Callable


class KivyTickSource:
    """Schedule callbacks on the Kivy main loop clock."""

    def __init__(self, clock=None) -> None:
        if clock is None:
            from kivy.clock import Clock

            clock = Clock
        self._clock = clock

    def now(self) -> float:
        return time.monotonic()

    def schedule_interval(self, callback: Callable[[], None], interval: float):
        """Call ``callback`` every ``interval`` seconds.

        The returned Kivy event exposes ``cancel()``.
        """
        return self._clock.schedule_interval(lambda _dt: callback(), interval)

    def schedule_once(self, callback: Callable[[], None], delay: float):
        return self._clock.schedule_once(lambda _dt: callback(), delay)


class ManualEvent:
    """Handle returned by :class:`ManualTickSource` scheduling calls."""

    def __init__(self, source: "ManualTickSource", callback, due: float, interval: float | None):
        self._source = source
        self.callback = callback
        self.due = due
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        self._source._discard(self)


class ManualTickSource:
    """Deterministic clock advanced explicitly with :meth:`advance`."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._events: list[ManualEvent] = []

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have not been cancelled."""
        return len(self._events)

    def schedule_interval(self, callback, interval: float) -> ManualEvent:
        event = ManualEvent(self, callback, self._now + interval, interval)
        self._events.append(event)
        return event

    def schedule_once(self, callback, delay: float) -> ManualEvent:
        event = ManualEvent(self, callback, self._now + delay, None)
        self._events.append(event)
        return event

    def _discard(self, event: ManualEvent) -> None:
        if event in self._events:
            self._events.remove(event)

    def advance(self, seconds: float) -> None:
        """Move time forward, firing due callbacks in chronological order."""

        target = self._now + seconds
        while True:
            due = [e for e in self._events if e.due <= target + 1e-9]
            if not due:
                break
            event = min(due, key=lambda e: e.due)
            self._now = max(self._now, event.due)
            if event.interval is None:
                self._discard(event)
            else:
                event.due += event.interval
            event.callback()
        self._now = target
