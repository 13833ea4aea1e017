"""Cursor over the exercise/set grid and the record of completed sets.

Both pieces are plain state.  Nothing here starts timers or talks to
collaborators; :class:`~session_engine.workout_session.WorkoutSessionEngine`
decides when rest periods happen and applies the advances computed here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from session_engine.workout import Workout, WorkoutExercise


class Advance(Enum):
    """What has to happen after a set is completed."""

    NEXT_SET = "next_set"
    NEXT_EXERCISE = "next_exercise"
    FINISH = "finish"


@dataclass(frozen=True)
class ProgressionCursor:
    exercise_index: int = 0
    set_number: int = 1


@dataclass(frozen=True)
class CompletionStep:
    exercise_id: str
    set_number: int
    started_at: float
    completed_at: float


class CompletionLedger:
    """Append-only record of completed ``(exercise_id, set_number)`` pairs."""

    def __init__(self) -> None:
        self._steps: list[CompletionStep] = []
        self._keys: set[tuple[str, int]] = set()

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self):
        return iter(self._steps)

    def __contains__(self, key: tuple[str, int]) -> bool:
        return key in self._keys

    @property
    def steps(self) -> tuple[CompletionStep, ...]:
        return tuple(self._steps)

    def record(self, exercise_id: str, set_number: int, started_at: float, completed_at: float) -> bool:
        """Append a step; return ``False`` if the pair was already recorded."""

        key = (exercise_id, set_number)
        if key in self._keys:
            return False
        self._keys.add(key)
        self._steps.append(CompletionStep(exercise_id, set_number, started_at, completed_at))
        return True

    def completed_sets_for(self, exercise_id: str) -> int:
        return sum(1 for step in self._steps if step.exercise_id == exercise_id)

    def progress(self, total_sets: int) -> float:
        if total_sets <= 0:
            return 0.0
        return min(1.0, len(self._steps) / total_sets)


class Progression:
    """Walks a workout's exercises and sets."""

    def __init__(self, workout: Workout) -> None:
        if not workout.exercises:
            raise ValueError("Workout has no exercises")
        self.workout = workout
        self.cursor = ProgressionCursor()
        self.ledger = CompletionLedger()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def exercises(self) -> list[WorkoutExercise]:
        return self.workout.exercises

    @property
    def current_exercise(self) -> WorkoutExercise:
        return self.exercises[self.cursor.exercise_index]

    @property
    def is_last_exercise(self) -> bool:
        return self.cursor.exercise_index >= len(self.exercises) - 1

    @property
    def is_last_set(self) -> bool:
        return self.cursor.set_number >= self.current_exercise.sets

    @property
    def progress(self) -> float:
        return self.ledger.progress(self.workout.total_sets)

    def is_completed(self, exercise_id: str, set_number: int) -> bool:
        return (exercise_id, set_number) in self.ledger

    def is_current_set_completed(self) -> bool:
        return self.is_completed(self.current_exercise.exercise_id, self.cursor.set_number)

    def set_label(self) -> str:
        return f"Set {self.cursor.set_number} of {self.current_exercise.sets}"

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def complete_current_set(self, started_at: float, completed_at: float) -> Advance | None:
        """Record the current set and return the advance it calls for.

        ``None`` means the set was already in the ledger and nothing changed.
        The cursor is left untouched so the caller can defer the advance
        behind a rest period.
        """

        ex = self.current_exercise
        if not self.ledger.record(ex.exercise_id, self.cursor.set_number, started_at, completed_at):
            return None
        if not self.is_last_set:
            return Advance.NEXT_SET
        if self.is_last_exercise:
            return Advance.FINISH
        return Advance.NEXT_EXERCISE

    def next_set(self) -> bool:
        if self.is_last_set:
            return False
        self.cursor = ProgressionCursor(self.cursor.exercise_index, self.cursor.set_number + 1)
        return True

    def next_exercise(self) -> bool:
        """Move to set 1 of the next exercise; ``False`` on the last one."""
        if self.is_last_exercise:
            return False
        self.cursor = ProgressionCursor(self.cursor.exercise_index + 1, 1)
        return True

    def previous_exercise(self) -> bool:
        if self.cursor.exercise_index <= 0:
            return False
        self.cursor = ProgressionCursor(self.cursor.exercise_index - 1, 1)
        return True
