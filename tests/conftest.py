import os
import sqlite3
from pathlib import Path
import sys
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

# Kivy parses sys.argv on import unless told not to, which breaks pytest flags
os.environ.setdefault("KIVY_NO_ARGS", "1")

from session_engine import settings
from session_engine.clock import ManualTickSource
from session_engine.store import init_db
from session_engine.workout import Workout, WorkoutExercise, Reps, Timed, Untimed

from fakes import FakeScheduleApi, FakeSessionStore


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep settings reads and writes inside the test's temp directory."""
    monkeypatch.setattr(settings, "SETTINGS_PATH", tmp_path / "settings.json")
    settings.clear_cache()
    yield
    settings.clear_cache()


@pytest.fixture
def clock() -> ManualTickSource:
    return ManualTickSource(start=1000.0)


@pytest.fixture
def store() -> FakeSessionStore:
    return FakeSessionStore()


@pytest.fixture
def schedule_api() -> FakeScheduleApi:
    return FakeScheduleApi()


@pytest.fixture
def rest_workout() -> Workout:
    """Two-set squat with 30s rest followed by a single plank set."""
    return Workout(
        id="w1",
        title="Leg Day",
        exercises=[
            WorkoutExercise("squat", 1, sets=2, timing=Reps("8-12"), rest_time=30),
            WorkoutExercise("plank", 2, sets=1),
        ],
    )


@pytest.fixture
def mixed_workout() -> Workout:
    return Workout(
        id="w2",
        title="Full Body",
        exercises=[
            WorkoutExercise("jumping-jacks", 1, sets=1, timing=Timed(45)),
            WorkoutExercise("push-up", 2, sets=3, timing=Reps("10"), rest_time=20),
            WorkoutExercise("burpee", 3, sets=2, timing=Untimed()),
        ],
        calories_burn=250,
    )


@pytest.fixture
def sample_db(tmp_path: Path) -> Path:
    """Create a temporary database with one workout, a schedule and kudos."""
    db_path = init_db(tmp_path / "sessions.db")

    conn = sqlite3.connect(db_path)
    conn.execute(
        "INSERT INTO workouts (id, title, calories_burn) VALUES ('w1', 'Leg Day', NULL)"
    )
    conn.executemany(
        """
        INSERT INTO workout_exercises
            (workout_id, exercise_id, exercise_name, position, number_of_sets,
             reps, duration, rest_time, notes)
        VALUES ('w1', ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            ("plank", "Plank", 2, None, None, 60, None, "Keep hips level"),
            ("squat", "Squat", 1, 2, "8-12", None, 30, None),
        ],
    )
    conn.execute(
        "INSERT INTO workout_schedules (id, workout_id, scheduled_date) VALUES ('s1', 'w1', 0)"
    )
    conn.executemany(
        "INSERT INTO kudos_phrases (type, phrase, is_active) VALUES (?, ?, ?)",
        [
            ("REST_START", "Breathe in, breathe out", 1),
            ("REST_START", "Shake it off", 1),
            ("REST_START", "Retired phrase", 0),
        ],
    )
    conn.commit()
    conn.close()
    return db_path
