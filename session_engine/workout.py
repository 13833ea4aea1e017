from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from session_engine import DEFAULT_SETS_PER_EXERCISE


@dataclass(frozen=True)
class Reps:
    """Repetition target such as ``"8-12"``; free-form text."""

    text: str


@dataclass(frozen=True)
class Timed:
    """Exercise performed against the work timer.

    ``reps`` is kept for exercises that list both a duration and a rep
    target.
    """

    seconds: int
    reps: Optional[str] = None


@dataclass(frozen=True)
class Untimed:
    """Max effort item with neither reps nor a duration."""


ExerciseTiming = Union[Reps, Timed, Untimed]


def _positive_int(value) -> int | None:
    if value in (None, ""):
        return None
    number = int(value)
    return number if number > 0 else None


@dataclass
class WorkoutExercise:
    exercise_id: str
    order: int
    sets: int = DEFAULT_SETS_PER_EXERCISE
    timing: ExerciseTiming = field(default_factory=Untimed)
    rest_time: Optional[int] = None
    notes: Optional[str] = None
    name: str = ""

    def __post_init__(self) -> None:
        if not self.sets or self.sets < 1:
            self.sets = DEFAULT_SETS_PER_EXERCISE
        if self.rest_time is not None and self.rest_time <= 0:
            self.rest_time = None

    @property
    def work_duration(self) -> int | None:
        """Seconds for the work timer, or ``None`` when not timed."""
        if isinstance(self.timing, Timed):
            return self.timing.seconds
        return None

    @property
    def reps(self) -> str | None:
        if isinstance(self.timing, Reps):
            return self.timing.text
        if isinstance(self.timing, Timed):
            return self.timing.reps
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutExercise":
        """Build an exercise from the loosely typed API payload."""

        duration = _positive_int(data.get("duration"))
        reps = data.get("reps") or None
        if duration is not None:
            timing: ExerciseTiming = Timed(duration, reps=reps)
        elif reps is not None:
            timing = Reps(str(reps))
        else:
            timing = Untimed()
        exercise = data.get("exercise") or {}
        exercise_id = data.get("exerciseId") or data.get("exercise_id")
        if not exercise_id:
            raise ValueError("Workout exercise is missing an exerciseId")
        return cls(
            exercise_id=str(exercise_id),
            order=int(data.get("order", 0)),
            sets=_positive_int(data.get("sets")) or DEFAULT_SETS_PER_EXERCISE,
            timing=timing,
            rest_time=_positive_int(data.get("restTime", data.get("rest_time"))),
            notes=data.get("notes"),
            name=data.get("name") or exercise.get("name", ""),
        )


@dataclass
class Workout:
    """A workout as handed to the engine.

    ``exercises`` must already be in execution order; the engine never
    re-sorts them.
    """

    id: str
    title: str
    exercises: List[WorkoutExercise]
    calories_burn: Optional[int] = None

    @property
    def total_sets(self) -> int:
        return sum(ex.sets for ex in self.exercises)

    @classmethod
    def from_dict(cls, data: dict) -> "Workout":
        # API responses sometimes wrap the payload in ``data``
        if "data" in data and isinstance(data["data"], dict):
            data = data["data"]
        return cls(
            id=str(data["id"]),
            title=data.get("title") or data.get("name", ""),
            exercises=[WorkoutExercise.from_dict(ex) for ex in data.get("exercises", [])],
            calories_burn=data.get("caloriesBurn") or None,
        )
