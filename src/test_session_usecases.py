"""Tests for the workout session use-cases."""

from datetime import timedelta
from uuid import uuid4

import pytest

from errors import (
    ActiveSessionExistsError,
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    WorkoutValidationError,
)
from exercise_execution import ExerciseExecution
from limits import WorkoutLimits
from plans import WorkoutPlan
from session_usecases import (
    CancelWorkoutSession,
    CancelWorkoutSessionInput,
    CompleteWorkoutSession,
    CompleteWorkoutSessionInput,
    GetActiveWorkoutSession,
    GetActiveWorkoutSessionInput,
    ListWorkoutSessions,
    ListWorkoutSessionsInput,
    PauseWorkoutSession,
    ResumeWorkoutSession,
    SessionRefInput,
    StartWorkoutSession,
    StartWorkoutSessionInput,
)
from workout_session import SessionStatus, WorkoutSession


@pytest.fixture
def start(plan_repo, session_repo, clock):
    return StartWorkoutSession(plan_repo, session_repo, clock)


@pytest.fixture
def started(start, saved_plan, test_user):
    return start.execute(
        StartWorkoutSessionInput(
            user_id=test_user.id, workout_plan_id=saved_plan.id, notes="  Leg day  "
        )
    )


def ref(user, session) -> SessionRefInput:
    return SessionRefInput(user_id=user.id, session_id=session.id)


def test_start_session(started, saved_plan, clock):
    assert started.status == SessionStatus.IN_PROGRESS
    assert started.started_at == clock.now
    assert started.workout_plan.name == "Treino A"
    assert started.workout_plan.exercise_count == 3
    assert [e.order for e in started.exercises] == [1, 2, 3]
    assert started.session_info.model_dump() == {
        "can_pause": True,
        "can_resume": False,
        "can_complete": True,
        "can_cancel": True,
        "current_duration": "00:00",
    }


def test_second_session_is_rejected(start, started, saved_plan, test_user):
    with pytest.raises(ActiveSessionExistsError):
        start.execute(
            StartWorkoutSessionInput(
                user_id=test_user.id, workout_plan_id=saved_plan.id
            )
        )


def test_start_with_unknown_plan(start, test_user):
    with pytest.raises(NotFoundError):
        start.execute(
            StartWorkoutSessionInput(user_id=test_user.id, workout_plan_id=uuid4())
        )


def test_start_with_other_users_plan(start, saved_plan, other_user):
    with pytest.raises(NotFoundError):
        start.execute(
            StartWorkoutSessionInput(
                user_id=other_user.id, workout_plan_id=saved_plan.id
            )
        )


def test_start_with_inactive_plan(start, plan_repo, saved_plan, test_user):
    saved_plan.deactivate()
    plan_repo.save(saved_plan)
    with pytest.raises(ConflictError):
        start.execute(
            StartWorkoutSessionInput(
                user_id=test_user.id, workout_plan_id=saved_plan.id
            )
        )


def test_start_with_empty_plan(start, plan_repo, test_user):
    empty = plan_repo.save(WorkoutPlan(user_id=test_user.id, name="Empty"))
    with pytest.raises(WorkoutValidationError):
        start.execute(
            StartWorkoutSessionInput(user_id=test_user.id, workout_plan_id=empty.id)
        )


def test_start_with_long_notes(start, saved_plan, test_user):
    with pytest.raises(WorkoutValidationError):
        start.execute(
            StartWorkoutSessionInput(
                user_id=test_user.id, workout_plan_id=saved_plan.id, notes="x" * 501
            )
        )


def test_pause_resume_complete(
    started, session_repo, plan_repo, execution_repo, clock, test_user
):
    clock.advance(seconds=5)
    paused = PauseWorkoutSession(session_repo, clock).execute(ref(test_user, started))
    assert paused.status == SessionStatus.PAUSED
    assert paused.session_info.can_resume

    clock.advance(seconds=10)
    resumed = ResumeWorkoutSession(session_repo, clock).execute(
        ref(test_user, started)
    )
    assert resumed.status == SessionStatus.IN_PROGRESS
    assert resumed.current_duration == "00:05"

    clock.advance(seconds=5)
    completed = CompleteWorkoutSession(
        session_repo, plan_repo, execution_repo, clock
    ).execute(
        CompleteWorkoutSessionInput(
            user_id=test_user.id, session_id=started.id, notes="Good one"
        )
    )
    assert completed.status == SessionStatus.COMPLETED
    assert completed.total_duration_ms == 10_000
    assert completed.formatted_duration == "00:10"
    assert completed.notes == "Good one"
    assert completed.summary.model_dump() == {
        "exercises_completed": 0,
        "total_exercises": 3,
        "completion_rate": 0,
    }


def test_complete_counts_completed_executions(
    started, saved_plan, session_repo, plan_repo, execution_repo, clock, test_user
):
    for exercise, finish in zip(saved_plan.exercises, ("complete", "skip", None)):
        execution = ExerciseExecution(session_id=started.id, exercise_id=exercise.id)
        execution.start(now=clock())
        if finish:
            getattr(execution, finish)(now=clock.advance(minutes=5))
        execution_repo.save(execution)

    output = CompleteWorkoutSession(
        session_repo, plan_repo, execution_repo, clock
    ).execute(CompleteWorkoutSessionInput(user_id=test_user.id, session_id=started.id))
    assert output.summary.exercises_completed == 1
    assert output.summary.completion_rate == 33
    assert output.notes == "Leg day"


def test_resume_running_session_is_rejected(started, session_repo, clock, test_user):
    with pytest.raises(InvalidStateTransitionError):
        ResumeWorkoutSession(session_repo, clock).execute(ref(test_user, started))


def test_cancel_session(started, session_repo, clock, test_user):
    clock.advance(minutes=2)
    output = CancelWorkoutSession(session_repo, clock).execute(
        CancelWorkoutSessionInput(
            user_id=test_user.id, session_id=started.id, reason="Gym closing"
        )
    )
    assert output.status == SessionStatus.CANCELLED
    assert output.total_duration_ms == 120_000
    assert output.notes == "Cancelled: Gym closing"
    assert output.reason == "Gym closing"

    with pytest.raises(InvalidStateTransitionError):
        PauseWorkoutSession(session_repo, clock).execute(ref(test_user, started))


def test_cancel_reason_too_long(started, session_repo, clock, test_user):
    with pytest.raises(WorkoutValidationError):
        CancelWorkoutSession(session_repo, clock).execute(
            CancelWorkoutSessionInput(
                user_id=test_user.id, session_id=started.id, reason="x" * 201
            )
        )


def test_other_user_cannot_touch_session(started, session_repo, clock, other_user):
    with pytest.raises(NotFoundError):
        PauseWorkoutSession(session_repo, clock).execute(ref(other_user, started))


def test_get_active_session(started, session_repo, clock, test_user, other_user):
    use_case = GetActiveWorkoutSession(session_repo, clock)
    clock.advance(minutes=1, seconds=30)

    output = use_case.execute(GetActiveWorkoutSessionInput(user_id=test_user.id))
    assert output.session.id == started.id
    assert output.session.formatted_duration == "01:30"
    assert output.session_info.can_pause

    nothing = use_case.execute(GetActiveWorkoutSessionInput(user_id=other_user.id))
    assert nothing.session is None
    assert nothing.session_info is None


def _history(session_repo, plan_id, user_id, clock, days_ago_list):
    """Store finished sessions that started ``days_ago`` days before now."""
    for days_ago in days_ago_list:
        started_at = clock.now - timedelta(days=days_ago)
        session = WorkoutSession(
            user_id=user_id, workout_plan_id=plan_id, started_at=started_at
        )
        session.complete(now=started_at + timedelta(hours=1))
        session_repo.save(session)


def test_free_history_is_limited(
    session_repo, free_source, limit_service, saved_plan, clock, test_user
):
    _history(session_repo, saved_plan.id, test_user.id, clock, [1, 30, 31, 45])

    output = ListWorkoutSessions(
        session_repo, free_source, limit_service, clock
    ).execute(ListWorkoutSessionsInput(user_id=test_user.id))
    assert output.history_retention_days == 30
    assert output.pagination.total == 2
    assert output.sessions[0].started_at == clock.now - timedelta(days=1)


def test_free_history_boundary_matches_retention_rule(
    session_repo, free_source, limit_service, saved_plan, clock, test_user
):
    _history(session_repo, saved_plan.id, test_user.id, clock, [30.99, 31])

    output = ListWorkoutSessions(
        session_repo, free_source, limit_service, clock
    ).execute(ListWorkoutSessionsInput(user_id=test_user.id))
    assert [s.started_at for s in output.sessions] == [
        clock.now - timedelta(days=30.99)
    ]

    free = WorkoutLimits.free_tier()
    assert free.should_retain_history(clock.now - timedelta(days=30.99), clock.now)
    assert not free.should_retain_history(clock.now - timedelta(days=31), clock.now)


def test_premium_history_is_unlimited(
    session_repo, premium_source, limit_service, saved_plan, clock, test_user
):
    _history(session_repo, saved_plan.id, test_user.id, clock, [1, 30, 31, 400])

    output = ListWorkoutSessions(
        session_repo, premium_source, limit_service, clock
    ).execute(ListWorkoutSessionsInput(user_id=test_user.id, limit=3))
    assert output.history_retention_days == -1
    assert output.pagination.model_dump() == {
        "page": 1,
        "limit": 3,
        "total": 4,
        "total_pages": 2,
    }


def test_list_sessions_by_status(
    started, session_repo, free_source, limit_service, saved_plan, clock, test_user
):
    _history(session_repo, saved_plan.id, test_user.id, clock, [2])
    output = ListWorkoutSessions(
        session_repo, free_source, limit_service, clock
    ).execute(
        ListWorkoutSessionsInput(user_id=test_user.id, status=SessionStatus.IN_PROGRESS)
    )
    assert [s.id for s in output.sessions] == [started.id]


def test_list_sessions_rejects_bad_limit(
    session_repo, free_source, limit_service, clock, test_user
):
    with pytest.raises(WorkoutValidationError):
        ListWorkoutSessions(session_repo, free_source, limit_service, clock).execute(
            ListWorkoutSessionsInput(user_id=test_user.id, limit=101)
        )
