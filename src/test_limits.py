"""Tests for tier limits and the limit service."""

from datetime import datetime, timedelta, timezone

import pytest

from errors import LimitExceededError, WorkoutValidationError
from limits import UNLIMITED, WorkoutLimits, WorkoutLimitService

NOW = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)


def test_free_tier_plan_boundary():
    """Free users may hold two plans: a third is refused."""
    limits = WorkoutLimits.free_tier()
    assert limits.can_create_workout_plan(0)
    assert limits.can_create_workout_plan(1)
    assert not limits.can_create_workout_plan(2)


def test_premium_is_unlimited():
    limits = WorkoutLimits.premium()
    assert limits.can_create_workout_plan(10_000)
    assert limits.can_add_exercise(10_000)
    assert limits.can_access_trainer_features
    assert limits.is_premium()
    assert not WorkoutLimits.free_tier().is_premium()


def test_free_tier_exercise_boundary():
    limits = WorkoutLimits.free_tier()
    assert limits.can_add_exercise(4)
    assert not limits.can_add_exercise(5)


def test_zero_bound_is_rejected():
    with pytest.raises(WorkoutValidationError):
        WorkoutLimits(
            max_workout_plans=0, max_exercises_per_plan=5, history_retention_days=30
        )


def test_bound_below_unlimited_is_rejected():
    with pytest.raises(WorkoutValidationError) as exc_info:
        WorkoutLimits(
            max_workout_plans=2, max_exercises_per_plan=-2, history_retention_days=30
        )
    assert exc_info.value.details["field"] == "max_exercises_per_plan"


def test_unlimited_bounds_are_accepted():
    limits = WorkoutLimits(
        max_workout_plans=UNLIMITED,
        max_exercises_per_plan=3,
        history_retention_days=UNLIMITED,
    )
    assert limits.should_retain_history(NOW - timedelta(days=3650), now=NOW)


def test_history_retention_window():
    """A record 30 whole days old is retained; 31 days is not."""
    limits = WorkoutLimits.free_tier()
    assert limits.should_retain_history(NOW - timedelta(days=30, hours=23), now=NOW)
    assert not limits.should_retain_history(NOW - timedelta(days=31), now=NOW)


def test_summary_lines():
    assert WorkoutLimits.free_tier().summary() == {
        "workout_plans": "Up to 2 workout plans",
        "exercises": "Up to 5 exercises per plan",
        "history": "30 days of history",
        "trainer": "Trainer features not available",
    }
    assert WorkoutLimits.premium().summary()["workout_plans"] == (
        "Unlimited workout plans"
    )


def test_validate_can_create_workout_plan():
    service = WorkoutLimitService()

    ok = service.validate_can_create_workout_plan(1, is_premium=False)
    assert ok.is_valid
    assert (ok.current, ok.limit) == (1, 2)

    refused = service.validate_can_create_workout_plan(2, is_premium=False)
    assert not refused.is_valid
    assert (refused.current, refused.limit) == (2, 2)
    assert "Premium" in refused.message

    assert service.validate_can_create_workout_plan(50, is_premium=True).is_valid


def test_validate_can_add_exercise():
    service = WorkoutLimitService()
    refused = service.validate_can_add_exercise(5, is_premium=False)
    assert not refused.is_valid
    assert refused.limit == 5


def test_validate_trainer_access():
    service = WorkoutLimitService()
    assert service.validate_trainer_access(is_premium=True).is_valid
    assert not service.validate_trainer_access(is_premium=False).is_valid


def test_validate_history_access():
    service = WorkoutLimitService()
    old = NOW - timedelta(days=45)

    result = service.validate_history_access(old, is_premium=False, now=NOW)
    assert not result.is_valid
    assert (result.current, result.limit) == (45, 30)

    assert service.validate_history_access(old, is_premium=True, now=NOW).is_valid


def test_limit_exceeded_error_carries_result():
    result = WorkoutLimitService().validate_can_create_workout_plan(2, False)
    error = LimitExceededError(result)
    assert error.result is result
    assert error.details == {"current": 2, "limit": 2}
    assert error.message == result.message
