"""Tests for the exercise execution and set use-cases."""

from uuid import uuid4

import pytest

from errors import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    WorkoutValidationError,
)
from exercise_execution import ExecutionStatus
from execution_usecases import (
    CompleteSet,
    CompleteSetInput,
    FinishExerciseExecution,
    FinishExerciseExecutionInput,
    SkipExerciseExecution,
    SkipExerciseExecutionInput,
    StartExerciseExecution,
    StartExerciseExecutionInput,
)
from workout_session import WorkoutSession


@pytest.fixture
def session(session_repo, saved_plan, test_user, clock) -> WorkoutSession:
    return session_repo.save(
        WorkoutSession(
            user_id=test_user.id, workout_plan_id=saved_plan.id, started_at=clock()
        )
    )


@pytest.fixture
def start_execution(session_repo, plan_repo, execution_repo, set_repo, clock):
    return StartExerciseExecution(
        session_repo, plan_repo, execution_repo, set_repo, clock
    )


@pytest.fixture
def complete_set(execution_repo, set_repo, clock):
    return CompleteSet(execution_repo, set_repo, clock)


@pytest.fixture
def finish(execution_repo, exercise_repo, clock):
    return FinishExerciseExecution(execution_repo, exercise_repo, clock)


@pytest.fixture
def squat(saved_plan):
    return saved_plan.exercises[0]


@pytest.fixture
def execution(start_execution, session, squat, test_user):
    return start_execution.execute(
        StartExerciseExecutionInput(
            user_id=test_user.id,
            session_id=session.id,
            exercise_id=squat.id,
            starting_weight=50,
        )
    )


def set_input(user, execution, set_number, actual_reps, **kwargs):
    return CompleteSetInput(
        user_id=user.id,
        execution_id=execution.id,
        set_number=set_number,
        actual_reps=actual_reps,
        **kwargs,
    )


# ========== Start ==========


def test_start_creates_planned_sets(execution, squat):
    assert execution.status == ExecutionStatus.IN_PROGRESS
    assert execution.exercise.name == "Squat"
    assert [(s.set_number, s.planned_reps, s.weight) for s in execution.sets] == [
        (1, 10, 50),
        (2, 10, 50),
        (3, 10, 50),
    ]
    assert execution.suggestions.model_dump() == {
        "recommended_weight": 50,
        "last_weight": None,
        "last_reps": None,
    }
    assert execution.execution_info.model_dump() == {
        "can_complete": True,
        "can_skip": True,
        "total_sets": 3,
        "completed_sets": 0,
    }


def test_start_without_weight_or_history(start_execution, session, squat, test_user):
    output = start_execution.execute(
        StartExerciseExecutionInput(
            user_id=test_user.id, session_id=session.id, exercise_id=squat.id
        )
    )
    assert output.suggestions.recommended_weight is None
    assert all(s.weight is None for s in output.sets)


def test_start_twice_is_a_conflict(
    start_execution, execution, session, squat, test_user
):
    with pytest.raises(ConflictError):
        start_execution.execute(
            StartExerciseExecutionInput(
                user_id=test_user.id, session_id=session.id, exercise_id=squat.id
            )
        )


def test_start_with_exercise_from_another_plan(start_execution, session, test_user):
    with pytest.raises(NotFoundError):
        start_execution.execute(
            StartExerciseExecutionInput(
                user_id=test_user.id, session_id=session.id, exercise_id=uuid4()
            )
        )


def test_start_in_finished_session(
    start_execution, session, session_repo, squat, test_user, clock
):
    session.cancel(now=clock.advance(minutes=1))
    session_repo.save(session)
    with pytest.raises(InvalidStateTransitionError):
        start_execution.execute(
            StartExerciseExecutionInput(
                user_id=test_user.id, session_id=session.id, exercise_id=squat.id
            )
        )


def test_start_with_negative_weight(start_execution, session, squat, test_user):
    with pytest.raises(WorkoutValidationError):
        start_execution.execute(
            StartExerciseExecutionInput(
                user_id=test_user.id,
                session_id=session.id,
                exercise_id=squat.id,
                starting_weight=-5,
            )
        )


def test_start_uses_last_lifted_weight(
    start_execution,
    complete_set,
    execution,
    session,
    session_repo,
    squat,
    saved_plan,
    test_user,
    clock,
):
    clock.advance(minutes=2)
    complete_set.execute(set_input(test_user, execution, 1, 8, weight=62.5))
    session.complete(now=clock.advance(minutes=30))
    session_repo.save(session)

    next_session = session_repo.save(
        WorkoutSession(
            user_id=test_user.id,
            workout_plan_id=saved_plan.id,
            started_at=clock.advance(days=2),
        )
    )
    output = start_execution.execute(
        StartExerciseExecutionInput(
            user_id=test_user.id, session_id=next_session.id, exercise_id=squat.id
        )
    )
    assert output.suggestions.model_dump() == {
        "recommended_weight": 62.5,
        "last_weight": 62.5,
        "last_reps": 8,
    }
    assert output.sets[0].weight == 62.5


# ========== Sets ==========


def test_complete_set_suggests_next_weight(complete_set, execution, test_user):
    output = complete_set.execute(
        set_input(test_user, execution, 1, 12, weight=50, rest_time_seconds=90)
    )
    assert output.performance.model_dump() == {
        "reps_difference": 2,
        "completion_percentage": 120,
        "volume": 600,
        "was_successful": True,
    }
    assert output.suggestions.next_set_weight == 52.5
    assert output.execution_info.model_dump() == {
        "total_sets": 3,
        "completed_sets": 1,
        "remaining_sets": 2,
        "can_complete_exercise": False,
        "next_set_number": 2,
    }


def test_complete_set_keeps_prefilled_weight(complete_set, execution, test_user):
    output = complete_set.execute(set_input(test_user, execution, 2, 10))
    assert output.weight == 50
    assert output.execution_info.next_set_number == 1


def test_complete_same_set_twice(complete_set, execution, test_user):
    complete_set.execute(set_input(test_user, execution, 1, 10))
    with pytest.raises(InvalidStateTransitionError):
        complete_set.execute(set_input(test_user, execution, 1, 11))


@pytest.mark.parametrize("set_number", [0, 21])
def test_set_number_out_of_range(complete_set, execution, test_user, set_number):
    with pytest.raises(WorkoutValidationError):
        complete_set.execute(set_input(test_user, execution, set_number, 10))


def test_missing_set(complete_set, execution, test_user):
    with pytest.raises(NotFoundError):
        complete_set.execute(set_input(test_user, execution, 4, 10))


def test_other_user_cannot_complete_set(complete_set, execution, other_user):
    with pytest.raises(NotFoundError):
        complete_set.execute(set_input(other_user, execution, 1, 10))


# ========== Finish / Skip ==========


def test_finish_requires_all_sets_unless_forced(
    complete_set, finish, execution, test_user, clock
):
    complete_set.execute(set_input(test_user, execution, 1, 12, weight=50))

    with pytest.raises(InvalidStateTransitionError) as exc_info:
        finish.execute(
            FinishExerciseExecutionInput(
                user_id=test_user.id, execution_id=execution.id
            )
        )
    assert "(1/3)" in exc_info.value.message

    clock.advance(minutes=6)
    output = finish.execute(
        FinishExerciseExecutionInput(
            user_id=test_user.id,
            execution_id=execution.id,
            notes="Knee felt off",
            force_complete=True,
        )
    )
    assert output.status == ExecutionStatus.COMPLETED
    assert output.exercise.name == "Squat"
    assert output.formatted_duration == "06:00"
    assert output.notes == "Knee felt off"
    assert output.performance.model_dump() == {
        "total_sets": 3,
        "completed_sets": 1,
        "skipped_sets": 2,
        "completion_rate": 33,
        "total_reps": 12,
        "average_weight": 50,
        "total_volume": 600,
    }
    assert output.recommendations.performance_notes == [
        "Excellent performance! Exceeded the plan"
    ]


def test_finish_all_sets(complete_set, finish, execution, test_user, clock):
    for number in (1, 2, 3):
        clock.advance(minutes=2)
        complete_set.execute(set_input(test_user, execution, number, 10))

    output = finish.execute(
        FinishExerciseExecutionInput(user_id=test_user.id, execution_id=execution.id)
    )
    assert output.performance.completion_rate == 100
    assert output.performance.total_volume == 1500
    assert all(s.is_completed for s in output.sets)

    with pytest.raises(InvalidStateTransitionError):
        finish.execute(
            FinishExerciseExecutionInput(
                user_id=test_user.id, execution_id=execution.id, force_complete=True
            )
        )


def test_skip_execution(execution_repo, execution, complete_set, clock, test_user):
    output = SkipExerciseExecution(execution_repo, clock).execute(
        SkipExerciseExecutionInput(
            user_id=test_user.id, execution_id=execution.id, reason="Machine busy"
        )
    )
    assert output.status == ExecutionStatus.SKIPPED
    assert output.notes == "Skipped: Machine busy"
    assert output.total_sets == 3

    with pytest.raises(InvalidStateTransitionError):
        complete_set.execute(set_input(test_user, execution, 1, 10))


def test_skip_reason_too_long(execution_repo, execution, clock, test_user):
    with pytest.raises(WorkoutValidationError):
        SkipExerciseExecution(execution_repo, clock).execute(
            SkipExerciseExecutionInput(
                user_id=test_user.id, execution_id=execution.id, reason="x" * 201
            )
        )
