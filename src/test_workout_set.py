"""Tests for the WorkoutSet entity."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from errors import InvalidStateTransitionError, WorkoutValidationError
from workout_set import WorkoutSet

NOW = datetime(2025, 6, 2, 9, 30, tzinfo=timezone.utc)


def make_set(**kwargs) -> WorkoutSet:
    kwargs.setdefault("set_number", 1)
    kwargs.setdefault("planned_reps", 10)
    return WorkoutSet(execution_id=uuid4(), **kwargs)


def test_complete_exactly_as_planned():
    workout_set = make_set()
    workout_set.complete(10, now=NOW)

    assert workout_set.is_completed()
    assert workout_set.completed_at == NOW
    assert workout_set.get_completion_percentage() == 100
    assert workout_set.get_reps_difference() == 0
    assert workout_set.was_successful()


def test_incomplete_set_metrics():
    workout_set = make_set(weight=40)
    assert not workout_set.is_completed()
    assert workout_set.get_reps_difference() == 0
    assert workout_set.get_completion_percentage() == 0
    assert workout_set.get_volume() == 0
    assert not workout_set.was_successful()


def test_zero_reps_is_completed_but_not_successful():
    workout_set = make_set()
    workout_set.complete(0)
    assert workout_set.is_completed()
    assert not workout_set.was_successful()


def test_completing_twice_is_rejected():
    workout_set = make_set()
    workout_set.complete(8, weight=50, now=NOW)

    with pytest.raises(InvalidStateTransitionError):
        workout_set.complete(12, weight=60)
    assert (workout_set.actual_reps, workout_set.weight) == (8, 50)


def test_complete_keeps_prefilled_weight():
    workout_set = make_set(weight=42.5)
    workout_set.complete(10)
    assert workout_set.weight == 42.5
    assert workout_set.get_volume() == 425


def test_complete_validates_before_changing_anything():
    workout_set = make_set()
    for kwargs in (
        {"actual_reps": 101},
        {"actual_reps": -1},
        {"actual_reps": 10, "weight": 1000.5},
        {"actual_reps": 10, "rest_time_seconds": 1801},
        {"actual_reps": 10, "notes": "x" * 201},
    ):
        with pytest.raises(WorkoutValidationError):
            workout_set.complete(**kwargs)
        assert not workout_set.is_completed()


def test_set_number_and_planned_reps_ranges():
    with pytest.raises(WorkoutValidationError):
        make_set(set_number=0)
    with pytest.raises(WorkoutValidationError):
        make_set(set_number=21)
    with pytest.raises(WorkoutValidationError):
        make_set(planned_reps=0)


def test_get_stats():
    workout_set = make_set(planned_reps=10)
    workout_set.complete(12, weight=50)
    stats = workout_set.get_stats()

    assert stats.model_dump() == {
        "is_completed": True,
        "was_successful": True,
        "reps_difference": 2,
        "completion_percentage": 120,
        "volume": 600,
    }


def test_compare_weight_dominates_reps():
    previous = make_set()
    previous.complete(12, weight=50)

    heavier = make_set(set_number=2)
    heavier.complete(8, weight=55)
    comparison = heavier.compare_with(previous)
    assert comparison.overall_improvement == "better"
    assert comparison.reps_improvement == -4
    assert comparison.weight_improvement == 5

    lighter = make_set(set_number=3)
    lighter.complete(15, weight=45)
    assert lighter.compare_with(previous).overall_improvement == "worse"


def test_compare_same_weight_uses_reps():
    previous = make_set()
    previous.complete(10, weight=50)

    more = make_set(set_number=2)
    more.complete(11, weight=50)
    assert more.compare_with(previous).overall_improvement == "better"

    same = make_set(set_number=3)
    same.complete(10, weight=50)
    assert same.compare_with(previous).overall_improvement == "same"


def test_update_reps_requires_completed_set():
    workout_set = make_set()
    with pytest.raises(InvalidStateTransitionError):
        workout_set.update_reps(10)

    workout_set.complete(9)
    workout_set.update_reps(10)
    assert workout_set.actual_reps == 10


def test_update_weight_rest_and_notes():
    workout_set = make_set()
    workout_set.update_weight(62.5)
    workout_set.update_rest_time(90)
    workout_set.update_notes("Felt easy")
    assert workout_set.weight == 62.5
    assert workout_set.formatted_rest_time() == "1min 30s"
    assert workout_set.notes == "Felt easy"

    with pytest.raises(WorkoutValidationError):
        workout_set.update_weight(-1)
    with pytest.raises(WorkoutValidationError):
        workout_set.update_notes("x" * 201)


def test_formatting():
    workout_set = make_set()
    assert workout_set.formatted_weight() == "Bodyweight"
    assert workout_set.formatted_rest_time() == "Not recorded"
    assert workout_set.formatted_description() == "Set 1: 10 reps planned"

    workout_set.complete(12, weight=52.5, rest_time_seconds=120)
    assert workout_set.formatted_weight() == "52.5 kg"
    assert workout_set.formatted_description() == (
        "Set 1: 12/10 reps | 52.5 kg | Rest: 2min"
    )


def test_clone_keeps_plan_and_weight_but_not_results():
    workout_set = make_set(set_number=2, planned_reps=8, weight=70)
    workout_set.complete(8, notes="Solid")

    new_id, new_execution_id = uuid4(), uuid4()
    clone = workout_set.clone(new_id, new_execution_id)

    assert clone.id == new_id
    assert clone.execution_id == new_execution_id
    assert (clone.set_number, clone.planned_reps, clone.weight) == (2, 8, 70)
    assert not clone.is_completed()
    assert clone.notes is None


def test_completion_percentage_rounds_half_up():
    workout_set = make_set(planned_reps=8)
    workout_set.complete(5)
    assert workout_set.get_completion_percentage() == 63
