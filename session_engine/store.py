"""SQLite implementations of the engine's collaborators.

The engine only depends on the small interfaces used here
(``create_session``/``complete_session``, ``transition`` and a kudos fetch
callable).  These classes back them with the local database so the engine
can run without a remote API.
"""

from __future__ import annotations

import sqlite3
import time
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from session_engine import DEFAULT_DB_PATH, SCHEMA_PATH
from session_engine.kudos import KudosType
from session_engine.schedule import ScheduleStatus
from session_engine.workout import Workout, WorkoutExercise

if TYPE_CHECKING:  # pragma: no cover - for type checkers only
    from session_engine.workout_session import SessionSummary


class SessionStoreError(Exception):
    """Raised when a session record cannot be created or updated."""


class ScheduleTransitionError(ValueError):
    """Raised for a schedule status change that is not allowed."""


# Allowed schedule status changes keyed by the target status
_ALLOWED_FROM = {
    ScheduleStatus.IN_PROGRESS: {ScheduleStatus.SCHEDULED},
    ScheduleStatus.COMPLETED: {ScheduleStatus.IN_PROGRESS},
    ScheduleStatus.CANCELLED: {ScheduleStatus.SCHEDULED, ScheduleStatus.IN_PROGRESS},
}


def init_db(db_path: Path = DEFAULT_DB_PATH) -> Path:
    """Create the tables in ``db_path`` if they do not exist."""

    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(str(path)) as conn:
        conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
    return path


def load_workout(workout_id: str, db_path: Path = DEFAULT_DB_PATH) -> Workout:
    """Return the workout ``workout_id`` with its exercises in order."""

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT id, title, calories_burn FROM workouts WHERE id = ? AND deleted = 0",
            (workout_id,),
        )
        row = cursor.fetchone()
        if not row:
            raise ValueError(f"Workout '{workout_id}' not found")
        cursor.execute(
            """
            SELECT exercise_id, exercise_name, position, number_of_sets,
                   reps, duration, rest_time, notes
              FROM workout_exercises
             WHERE workout_id = ? AND deleted = 0
             ORDER BY position
            """,
            (workout_id,),
        )
        exercises = [
            WorkoutExercise.from_dict(
                {
                    "exerciseId": ex_id,
                    "name": name,
                    "order": pos,
                    "sets": sets,
                    "reps": reps,
                    "duration": duration,
                    "restTime": rest,
                    "notes": notes,
                }
            )
            for ex_id, name, pos, sets, reps, duration, rest, notes in cursor.fetchall()
        ]
    return Workout(id=row[0], title=row[1], exercises=exercises, calories_burn=row[2])


class SqliteSessionStore:
    def __init__(self, db_path: Path = DEFAULT_DB_PATH) -> None:
        self.db_path = Path(db_path)

    def create_session(self, workout_id: str, schedule_id: str | None = None) -> str:
        session_id = uuid.uuid4().hex
        try:
            with sqlite3.connect(str(self.db_path)) as conn:
                conn.execute(
                    """
                    INSERT INTO workout_sessions (id, workout_id, schedule_id, started_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (session_id, workout_id, schedule_id, time.time()),
                )
        except sqlite3.Error as exc:
            raise SessionStoreError(f"Could not create session: {exc}") from exc
        return session_id

    def complete_session(self, session_id: str, summary: "SessionSummary") -> None:
        """Store ``summary`` on the session record and mark it completed."""

        try:
            with sqlite3.connect(str(self.db_path)) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT completed FROM workout_sessions WHERE id = ?", (session_id,)
                )
                row = cursor.fetchone()
                if row is None:
                    raise SessionStoreError(f"Session '{session_id}' not found")
                if row[0]:
                    raise SessionStoreError(f"Session '{session_id}' already completed")
                cursor.execute(
                    """
                    UPDATE workout_sessions
                       SET ended_at = ?, duration = ?, calories_burned = ?,
                           notes = ?, completed = 1
                     WHERE id = ?
                    """,
                    (
                        time.time(),
                        summary.duration_seconds,
                        summary.calories_burned,
                        summary.notes,
                        session_id,
                    ),
                )
        except sqlite3.Error as exc:
            raise SessionStoreError(f"Could not complete session: {exc}") from exc

    def get_session(self, session_id: str) -> dict:
        """Return the stored session record or an empty dict."""

        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, workout_id, schedule_id, started_at, ended_at,
                       duration, calories_burned, notes, completed
                  FROM workout_sessions
                 WHERE id = ?
                """,
                (session_id,),
            )
            row = cursor.fetchone()
        if row is None:
            return {}
        keys = (
            "id",
            "workout_id",
            "schedule_id",
            "started_at",
            "ended_at",
            "duration",
            "calories_burned",
            "notes",
            "completed",
        )
        record = dict(zip(keys, row))
        record["completed"] = bool(record["completed"])
        return record

    def get_session_history(self, limit: int | None = None) -> list[dict]:
        """Return completed sessions, most recent first."""

        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            query = (
                "SELECT id, workout_id, started_at, duration FROM workout_sessions "
                "WHERE completed = 1 ORDER BY started_at DESC"
            )
            if limit is not None:
                cursor.execute(query + " LIMIT ?", (limit,))
            else:
                cursor.execute(query)
            rows = cursor.fetchall()
        return [
            {"id": sid, "workout_id": wid, "started_at": ts, "duration": dur}
            for sid, wid, ts, dur in rows
        ]


class SqliteScheduleApi:
    def __init__(self, db_path: Path = DEFAULT_DB_PATH) -> None:
        self.db_path = Path(db_path)

    def status(self, schedule_id: str) -> ScheduleStatus:
        with sqlite3.connect(str(self.db_path)) as conn:
            row = conn.execute(
                "SELECT status FROM workout_schedules WHERE id = ?", (schedule_id,)
            ).fetchone()
        if row is None:
            raise ScheduleTransitionError(f"Schedule '{schedule_id}' not found")
        return ScheduleStatus(row[0])

    def transition(self, schedule_id: str, status: ScheduleStatus) -> None:
        current = self.status(schedule_id)
        if current not in _ALLOWED_FROM.get(status, set()):
            raise ScheduleTransitionError(
                f"Cannot move schedule '{schedule_id}' from {current.value} to {status.value}"
            )
        with sqlite3.connect(str(self.db_path)) as conn:
            conn.execute(
                "UPDATE workout_schedules SET status = ? WHERE id = ?",
                (status.value, schedule_id),
            )


class SqliteKudosSource:
    """Kudos fetch callable reading the ``kudos_phrases`` table."""

    def __init__(self, db_path: Path = DEFAULT_DB_PATH) -> None:
        self.db_path = Path(db_path)

    def __call__(self, kind: KudosType, count: int) -> list[str]:
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT phrase FROM kudos_phrases
                 WHERE type = ? AND is_active = 1
                 ORDER BY RANDOM()
                 LIMIT ?
                """,
                (kind.value, count),
            )
            return [row[0] for row in cursor.fetchall()]
