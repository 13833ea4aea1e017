import pytest

from session_engine.workout import Reps, Timed, Untimed, Workout, WorkoutExercise


def test_from_dict_parses_loose_payload():
    workout = Workout.from_dict(
        {
            "data": {
                "id": "abc",
                "title": "Core Blast",
                "caloriesBurn": 180,
                "exercises": [
                    {"exerciseId": "crunch", "order": 1, "sets": 3, "reps": "15", "restTime": 45},
                    {"exerciseId": "plank", "order": 2, "duration": 60, "reps": "1", "restTime": 0},
                    {"exerciseId": "hollow", "order": 3, "exercise": {"name": "Hollow Hold"}},
                ],
            }
        }
    )
    assert workout.id == "abc"
    assert workout.calories_burn == 180
    crunch, plank, hollow = workout.exercises
    assert crunch.timing == Reps("15")
    assert crunch.rest_time == 45
    assert plank.timing == Timed(60, reps="1")
    assert plank.work_duration == 60
    assert plank.reps == "1"
    assert plank.rest_time is None
    assert plank.sets == 1
    assert hollow.timing == Untimed()
    assert hollow.name == "Hollow Hold"
    assert hollow.work_duration is None
    assert workout.total_sets == 5


def test_invalid_sets_default_to_one():
    assert WorkoutExercise("x", 1, sets=0).sets == 1
    assert WorkoutExercise.from_dict({"exerciseId": "x", "sets": None}).sets == 1


def test_exercise_without_id_rejected():
    with pytest.raises(ValueError):
        WorkoutExercise.from_dict({"order": 1, "sets": 2})
    with pytest.raises(ValueError):
        Workout.from_dict({"id": "w", "title": "T", "exercises": [{"exerciseId": ""}]})
