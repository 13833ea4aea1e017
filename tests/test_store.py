import pytest

from session_engine.kudos import KudosFeed, KudosType
from session_engine.schedule import ScheduleStatus
from session_engine.store import (
    ScheduleTransitionError,
    SessionStoreError,
    SqliteKudosSource,
    SqliteScheduleApi,
    SqliteSessionStore,
    load_workout,
)
from session_engine.workout import Reps, Timed
from session_engine.workout_session import SessionState, SessionSummary, WorkoutSessionEngine


def test_load_workout_orders_exercises(sample_db):
    workout = load_workout("w1", db_path=sample_db)
    assert workout.title == "Leg Day"
    assert [ex.exercise_id for ex in workout.exercises] == ["squat", "plank"]
    squat, plank = workout.exercises
    assert squat.sets == 2 and squat.rest_time == 30
    assert squat.timing == Reps("8-12")
    assert plank.sets == 1
    assert plank.timing == Timed(60)
    assert plank.notes == "Keep hips level"


def test_load_missing_workout(sample_db):
    with pytest.raises(ValueError):
        load_workout("nope", db_path=sample_db)


def test_create_and_complete_session(sample_db):
    store = SqliteSessionStore(sample_db)
    session_id = store.create_session("w1")
    record = store.get_session(session_id)
    assert record["workout_id"] == "w1"
    assert not record["completed"]

    summary = SessionSummary(duration_seconds=600, calories_burned=60, notes="Completed 3 sets", completed_sets=3)
    store.complete_session(session_id, summary)
    record = store.get_session(session_id)
    assert record["completed"]
    assert record["duration"] == 600
    assert record["notes"] == "Completed 3 sets"
    assert store.get_session_history() == [
        {"id": session_id, "workout_id": "w1", "started_at": record["started_at"], "duration": 600}
    ]

    with pytest.raises(SessionStoreError):
        store.complete_session(session_id, summary)
    with pytest.raises(SessionStoreError):
        store.complete_session("unknown", summary)


def test_session_history_limit(sample_db):
    store = SqliteSessionStore(sample_db)
    summary = SessionSummary(10, 1, "Completed 1 sets", 1)
    for _ in range(3):
        store.complete_session(store.create_session("w1"), summary)
    assert len(store.get_session_history(limit=2)) == 2
    assert store.get_session("missing") == {}


def test_create_session_without_schema_fails(tmp_path):
    store = SqliteSessionStore(tmp_path / "empty.db")
    with pytest.raises(SessionStoreError):
        store.create_session("w1")


def test_schedule_transitions(sample_db):
    api = SqliteScheduleApi(sample_db)
    assert api.status("s1") is ScheduleStatus.SCHEDULED
    with pytest.raises(ScheduleTransitionError):
        api.transition("s1", ScheduleStatus.COMPLETED)
    api.transition("s1", ScheduleStatus.IN_PROGRESS)
    api.transition("s1", ScheduleStatus.COMPLETED)
    assert api.status("s1") is ScheduleStatus.COMPLETED
    with pytest.raises(ScheduleTransitionError):
        api.transition("s1", ScheduleStatus.CANCELLED)
    with pytest.raises(ScheduleTransitionError):
        api.status("missing")


def test_kudos_source_reads_active_phrases(sample_db):
    source = SqliteKudosSource(sample_db)
    phrases = source(KudosType.REST_START, 10)
    assert sorted(phrases) == ["Breathe in, breathe out", "Shake it off"]
    assert source(KudosType.WORKOUT_START, 10) == []


def test_engine_against_sqlite_collaborators(sample_db, clock):
    workout = load_workout("w1", db_path=sample_db)
    store = SqliteSessionStore(sample_db)
    api = SqliteScheduleApi(sample_db)
    kudos = KudosFeed(fetch=SqliteKudosSource(sample_db))
    engine = WorkoutSessionEngine(
        workout, store, clock, schedule_api=api, schedule_id="s1", kudos=kudos
    )
    engine.create()
    assert api.status("s1") is ScheduleStatus.IN_PROGRESS

    engine.complete_current_set()
    assert engine.notices[-1].message in ("Breathe in, breathe out", "Shake it off")
    clock.advance(30)
    engine.complete_current_set()
    clock.advance(30)
    engine.complete_current_set()

    assert engine.state is SessionState.COMPLETED
    assert api.status("s1") is ScheduleStatus.COMPLETED
    record = store.get_session(engine.session_id)
    assert record["completed"]
    assert record["duration"] == 60
    assert record["notes"] == "Completed 3 sets"
