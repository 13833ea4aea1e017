from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class TimerMode(Enum):
    IDLE = "idle"
    COUNTING_DOWN = "counting_down"
    PAUSED = "paused"
    ELAPSED = "elapsed"


class TimerPurpose(Enum):
    WORK = "work"
    REST = "rest"
    NONE = "none"


@dataclass(frozen=True)
class TimerState:
    """Snapshot of a :class:`TimerUnit`."""

    mode: TimerMode
    remaining_seconds: int
    purpose: TimerPurpose


class TimerUnit:
    """One-second resolution countdown or count-up timer.

    The unit has no clock of its own.  Whoever owns it calls :meth:`tick`
    once per elapsed second.  As a countdown it fires ``on_tick`` after every
    decrement and ``on_expire`` exactly once when it reaches zero.  Started
    with :meth:`start_elapsed` it counts up until :meth:`stop` and never
    expires.
    """

    def __init__(
        self,
        on_tick: Optional[Callable[[int], None]] = None,
        on_expire: Optional[Callable[[TimerPurpose], None]] = None,
    ) -> None:
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.mode = TimerMode.IDLE
        self.remaining_seconds = 0
        self.purpose = TimerPurpose.NONE

    @property
    def state(self) -> TimerState:
        return TimerState(self.mode, self.remaining_seconds, self.purpose)

    @property
    def elapsed_seconds(self) -> int:
        """Count-up value of an elapsed clock."""
        return self.remaining_seconds

    @property
    def is_running(self) -> bool:
        return self.mode in (TimerMode.COUNTING_DOWN, TimerMode.ELAPSED)

    def start(self, duration_seconds: int, purpose: TimerPurpose = TimerPurpose.WORK) -> None:
        if self.mode is not TimerMode.IDLE:
            raise RuntimeError(f"Cannot start timer while {self.mode.value}")
        if duration_seconds <= 0:
            raise ValueError("Countdown duration must be positive")
        self.remaining_seconds = int(duration_seconds)
        self.purpose = purpose
        self.mode = TimerMode.COUNTING_DOWN

    def start_elapsed(self) -> None:
        if self.mode is not TimerMode.IDLE:
            raise RuntimeError(f"Cannot start timer while {self.mode.value}")
        self.remaining_seconds = 0
        self.purpose = TimerPurpose.NONE
        self.mode = TimerMode.ELAPSED

    def pause(self) -> None:
        if self.mode is TimerMode.COUNTING_DOWN:
            self.mode = TimerMode.PAUSED

    def resume(self) -> None:
        if self.mode is TimerMode.PAUSED:
            self.mode = TimerMode.COUNTING_DOWN

    def stop(self) -> None:
        """Freeze the timer keeping its current value."""
        self.mode = TimerMode.IDLE

    def reset(self) -> None:
        self.mode = TimerMode.IDLE
        self.remaining_seconds = 0
        self.purpose = TimerPurpose.NONE

    def tick(self) -> None:
        if self.mode is TimerMode.ELAPSED:
            self.remaining_seconds += 1
            if self.on_tick:
                self.on_tick(self.remaining_seconds)
            return
        if self.mode is not TimerMode.COUNTING_DOWN:
            return

        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        if self.on_tick:
            self.on_tick(self.remaining_seconds)
        if self.remaining_seconds == 0:
            purpose = self.purpose
            self.mode = TimerMode.IDLE
            self.purpose = TimerPurpose.NONE
            if self.on_expire:
                self.on_expire(purpose)


def format_seconds(seconds: int) -> str:
    """Return ``seconds`` as ``MM:SS``."""

    m, s = divmod(max(0, int(seconds)), 60)
    return f"{m:02d}:{s:02d}"
