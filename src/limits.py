"""Free-tier and premium limits for plans, exercises and history."""

from datetime import datetime, timedelta

from loguru import logger
from pydantic import BaseModel, ConfigDict, model_validator

from errors import WorkoutValidationError
from timeutils import ensure_utc, utcnow

UNLIMITED = -1


def _days_since(date: datetime, now: datetime | None = None) -> int:
    now = now or utcnow()
    return (ensure_utc(now) - ensure_utc(date)) // timedelta(days=1)


class WorkoutLimits(BaseModel):
    """Numeric limits for one tier. Every bound is UNLIMITED (-1) or > 0."""

    model_config = ConfigDict(frozen=True)

    max_workout_plans: int
    max_exercises_per_plan: int
    history_retention_days: int
    can_access_trainer_features: bool = False

    @model_validator(mode="after")
    def check_bounds(self) -> "WorkoutLimits":
        bounds = {
            "max_workout_plans": self.max_workout_plans,
            "max_exercises_per_plan": self.max_exercises_per_plan,
            "history_retention_days": self.history_retention_days,
        }
        for field, value in bounds.items():
            if value < UNLIMITED or value == 0:
                raise WorkoutValidationError(
                    f"{field} must be -1 (unlimited) or greater than 0",
                    details={"field": field, "value": value},
                )
        return self

    @classmethod
    def free_tier(cls) -> "WorkoutLimits":
        return cls(
            max_workout_plans=2,
            max_exercises_per_plan=5,
            history_retention_days=30,
            can_access_trainer_features=False,
        )

    @classmethod
    def premium(cls) -> "WorkoutLimits":
        return cls(
            max_workout_plans=UNLIMITED,
            max_exercises_per_plan=UNLIMITED,
            history_retention_days=UNLIMITED,
            can_access_trainer_features=True,
        )

    def can_create_workout_plan(self, current_count: int) -> bool:
        if self.max_workout_plans == UNLIMITED:
            return True
        return current_count < self.max_workout_plans

    def can_add_exercise(self, current_count: int) -> bool:
        if self.max_exercises_per_plan == UNLIMITED:
            return True
        return current_count < self.max_exercises_per_plan

    def should_retain_history(
        self, date: datetime, now: datetime | None = None
    ) -> bool:
        """Whether a record dated ``date`` is still inside the retention window.

        A record exactly ``history_retention_days`` whole days old is retained.
        """
        if self.history_retention_days == UNLIMITED:
            return True
        return _days_since(date, now) <= self.history_retention_days

    def is_premium(self) -> bool:
        return (
            self.max_workout_plans == UNLIMITED
            and self.max_exercises_per_plan == UNLIMITED
        )

    def summary(self) -> dict[str, str]:
        if self.max_workout_plans == UNLIMITED:
            plans = "Unlimited workout plans"
        else:
            plans = f"Up to {self.max_workout_plans} workout plans"

        if self.max_exercises_per_plan == UNLIMITED:
            exercises = "Unlimited exercises per plan"
        else:
            exercises = f"Up to {self.max_exercises_per_plan} exercises per plan"

        if self.history_retention_days == UNLIMITED:
            history = "Full history"
        else:
            history = f"{self.history_retention_days} days of history"

        trainer = (
            "Trainer features available"
            if self.can_access_trainer_features
            else "Trainer features not available"
        )
        return {
            "workout_plans": plans,
            "exercises": exercises,
            "history": history,
            "trainer": trainer,
        }


class ValidationResult(BaseModel):
    """Outcome of a limit check. ``current``/``limit`` are set when relevant."""

    is_valid: bool
    message: str | None = None
    current: int | None = None
    limit: int | None = None


class WorkoutLimitService:
    """Checks proposed creations against the limits for a tier.

    None of the ``validate_*`` methods raise; callers turn an invalid result
    into a LimitExceededError.
    """

    def get_limits_for_user(self, is_premium: bool) -> WorkoutLimits:
        return WorkoutLimits.premium() if is_premium else WorkoutLimits.free_tier()

    def validate_can_create_workout_plan(
        self, current_count: int, is_premium: bool
    ) -> ValidationResult:
        limits = self.get_limits_for_user(is_premium)
        if limits.can_create_workout_plan(current_count):
            return ValidationResult(
                is_valid=True, current=current_count, limit=limits.max_workout_plans
            )

        logger.bind(current=current_count, limit=limits.max_workout_plans).info(
            "Workout plan limit reached"
        )
        return ValidationResult(
            is_valid=False,
            message=(
                f"You have reached the limit of {limits.max_workout_plans} workout "
                "plans. Upgrade to Premium to create unlimited plans."
            ),
            current=current_count,
            limit=limits.max_workout_plans,
        )

    def validate_can_add_exercise(
        self, current_count: int, is_premium: bool
    ) -> ValidationResult:
        limits = self.get_limits_for_user(is_premium)
        if limits.can_add_exercise(current_count):
            return ValidationResult(
                is_valid=True,
                current=current_count,
                limit=limits.max_exercises_per_plan,
            )

        logger.bind(current=current_count, limit=limits.max_exercises_per_plan).info(
            "Exercise limit reached"
        )
        return ValidationResult(
            is_valid=False,
            message=(
                f"You have reached the limit of {limits.max_exercises_per_plan} "
                "exercises per plan. Upgrade to Premium to add unlimited exercises."
            ),
            current=current_count,
            limit=limits.max_exercises_per_plan,
        )

    def validate_trainer_access(self, is_premium: bool) -> ValidationResult:
        limits = self.get_limits_for_user(is_premium)
        if limits.can_access_trainer_features:
            return ValidationResult(is_valid=True)
        return ValidationResult(
            is_valid=False,
            message="Trainer features are only available to Premium users.",
        )

    def validate_history_access(
        self, date: datetime, is_premium: bool, now: datetime | None = None
    ) -> ValidationResult:
        limits = self.get_limits_for_user(is_premium)
        if limits.should_retain_history(date, now):
            return ValidationResult(is_valid=True)

        days = _days_since(date, now)
        return ValidationResult(
            is_valid=False,
            message=(
                f"History is only available for the last "
                f"{limits.history_retention_days} days. This date is {days} days "
                "old. Upgrade to Premium to access your full history."
            ),
            current=days,
            limit=limits.history_retention_days,
        )
