from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from session_engine import DEFAULT_HOLD_THRESHOLD_MS


class Gesture(Enum):
    TAP = "tap"
    HOLD = "hold"


class GestureDisambiguator:
    """Turn press/release pairs on the timer control into TAP or HOLD.

    Input handlers for mouse and touch both forward to
    :meth:`on_press_start` and :meth:`on_press_end`.  A hold is armed only
    when ``can_hold()`` is true at press time.  Once armed, a one-shot on the
    tick source fires ``on_hold`` as soon as the threshold passes, so the
    reset happens while the finger is still down; the release that follows
    is swallowed.  A release at or past the threshold before that one-shot
    ran is still a hold.  Anything shorter is a tap.
    """

    def __init__(
        self,
        tick_source,
        on_tap: Callable[[], None],
        on_hold: Callable[[], None],
        can_hold: Callable[[], bool] = lambda: True,
        feedback: Optional[Callable[[Gesture], None]] = None,
        threshold_ms: int = DEFAULT_HOLD_THRESHOLD_MS,
    ) -> None:
        self.tick_source = tick_source
        self.on_tap = on_tap
        self.on_hold = on_hold
        self.can_hold = can_hold
        self.feedback = feedback
        self.threshold = threshold_ms / 1000.0
        self._pressed_at: float | None = None
        self._hold_armed = False
        self._hold_fired = False
        self._hold_event = None

    @property
    def is_holding(self) -> bool:
        """``True`` while an armed press is waiting to become a hold."""
        return self._hold_armed and not self._hold_fired

    def on_press_start(self) -> None:
        self._cancel_hold_event()
        self._pressed_at = self.tick_source.now()
        self._hold_fired = False
        self._hold_armed = bool(self.can_hold())
        if self._hold_armed:
            self._hold_event = self.tick_source.schedule_once(self._fire_hold, self.threshold)

    def on_press_end(self) -> Gesture | None:
        """Classify the finished press and dispatch it.

        Returns ``None`` when no press was in progress.
        """

        if self._pressed_at is None:
            return None
        held_for = self.tick_source.now() - self._pressed_at
        self._pressed_at = None
        self._cancel_hold_event()

        if self._hold_fired:
            self._clear()
            return Gesture.HOLD
        # tolerance for float clock arithmetic
        if self._hold_armed and held_for >= self.threshold - 1e-6:
            self._dispatch_hold()
            self._clear()
            return Gesture.HOLD

        self._clear()
        self.on_tap()
        return Gesture.TAP

    def on_press_cancel(self) -> None:
        """Pointer left the control or the touch was cancelled."""
        self._pressed_at = None
        self._cancel_hold_event()
        self._clear()

    def dispose(self) -> None:
        self.on_press_cancel()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fire_hold(self) -> None:
        self._hold_event = None
        if self._pressed_at is None or self._hold_fired:
            return
        self._dispatch_hold()

    def _dispatch_hold(self) -> None:
        self._hold_fired = True
        self.on_hold()
        if self.feedback:
            self.feedback(Gesture.HOLD)

    def _cancel_hold_event(self) -> None:
        if self._hold_event is not None:
            self._hold_event.cancel()
            self._hold_event = None

    def _clear(self) -> None:
        self._hold_armed = False
        self._hold_fired = False
