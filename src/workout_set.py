"""The WorkoutSet entity: one planned-vs-actual block of reps."""

from datetime import datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from errors import InvalidStateTransitionError, WorkoutValidationError
from timeutils import UTCDateTime, format_rest_time, round_half_up, utcnow

MAX_SET_NUMBER = 20
MAX_PLANNED_REPS = 100
MAX_ACTUAL_REPS = 100
MAX_WEIGHT_KG = 1000
MAX_REST_TIME_SECONDS = 1800  # 30 minutes
MAX_SET_NOTES_LENGTH = 200


def validate_actual_reps(actual_reps: int) -> None:
    if actual_reps < 0 or actual_reps > MAX_ACTUAL_REPS:
        raise WorkoutValidationError(
            f"Actual reps must be between 0 and {MAX_ACTUAL_REPS}",
            details={"field": "actual_reps", "value": actual_reps},
        )


def validate_weight(weight: float | None) -> None:
    if weight is not None and (weight < 0 or weight > MAX_WEIGHT_KG):
        raise WorkoutValidationError(
            f"Weight must be between 0 and {MAX_WEIGHT_KG} kg",
            details={"field": "weight", "value": weight},
        )


def validate_rest_time(rest_time_seconds: int | None) -> None:
    if rest_time_seconds is not None and (
        rest_time_seconds < 0 or rest_time_seconds > MAX_REST_TIME_SECONDS
    ):
        raise WorkoutValidationError(
            f"Rest time must be between 0 and {MAX_REST_TIME_SECONDS} seconds",
            details={"field": "rest_time_seconds", "value": rest_time_seconds},
        )


def validate_set_notes(notes: str | None) -> None:
    if notes is not None and len(notes) > MAX_SET_NOTES_LENGTH:
        raise WorkoutValidationError(
            f"Notes must be {MAX_SET_NOTES_LENGTH} characters or less",
            details={"field": "notes"},
        )


class SetStats(BaseModel):
    is_completed: bool
    was_successful: bool
    reps_difference: int
    completion_percentage: int
    volume: float  # weight x actual reps


class SetComparison(BaseModel):
    reps_improvement: int
    weight_improvement: float
    overall_improvement: Literal["better", "same", "worse"]


class WorkoutSet(BaseModel):
    """A single set within an exercise execution.

    A set is completed once both ``actual_reps`` and ``completed_at`` are
    recorded; ``complete`` is the only way to set them together.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4, frozen=True)
    execution_id: UUID = Field(frozen=True)
    set_number: int = Field(frozen=True)
    planned_reps: int = Field(frozen=True)
    actual_reps: int | None = None
    weight: float | None = None
    rest_time_seconds: int | None = None
    completed_at: UTCDateTime | None = None
    notes: str | None = None
    created_at: UTCDateTime = Field(default_factory=utcnow, frozen=True)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
    version: int = 0

    @model_validator(mode="after")
    def check_numbers(self) -> "WorkoutSet":
        if self.set_number < 1 or self.set_number > MAX_SET_NUMBER:
            raise WorkoutValidationError(
                f"Set number must be between 1 and {MAX_SET_NUMBER}",
                details={"field": "set_number", "value": self.set_number},
            )
        if self.planned_reps < 1 or self.planned_reps > MAX_PLANNED_REPS:
            raise WorkoutValidationError(
                f"Planned reps must be between 1 and {MAX_PLANNED_REPS}",
                details={"field": "planned_reps", "value": self.planned_reps},
            )
        return self

    def complete(
        self,
        actual_reps: int,
        weight: float | None = None,
        notes: str | None = None,
        rest_time_seconds: int | None = None,
        now: datetime | None = None,
    ) -> None:
        """Record the performed reps and mark the set completed.

        ``weight`` falls back to the weight already on the set (the
        recommended starting weight) when omitted.

        Raises:
            InvalidStateTransitionError: if the set was already completed
            WorkoutValidationError: if any value is out of range
        """
        if self.is_completed():
            raise InvalidStateTransitionError(
                f"Set {self.set_number} has already been completed",
                details={"set_number": self.set_number},
            )
        validate_actual_reps(actual_reps)
        validate_weight(weight)
        validate_rest_time(rest_time_seconds)
        validate_set_notes(notes)

        now = now or utcnow()
        self.actual_reps = actual_reps
        if weight is not None:
            self.weight = weight
        self.notes = notes
        self.rest_time_seconds = rest_time_seconds
        self.completed_at = now
        self.updated_at = now

    def update_weight(self, weight: float, now: datetime | None = None) -> None:
        validate_weight(weight)
        self.weight = weight
        self.updated_at = now or utcnow()

    def update_reps(self, actual_reps: int, now: datetime | None = None) -> None:
        """Correct the reps of an already completed set."""
        if not self.is_completed():
            raise InvalidStateTransitionError(
                f"Set {self.set_number} has not been completed yet",
                details={"set_number": self.set_number},
            )
        validate_actual_reps(actual_reps)
        self.actual_reps = actual_reps
        self.updated_at = now or utcnow()

    def update_rest_time(
        self, rest_time_seconds: int, now: datetime | None = None
    ) -> None:
        validate_rest_time(rest_time_seconds)
        self.rest_time_seconds = rest_time_seconds
        self.updated_at = now or utcnow()

    def update_notes(self, notes: str, now: datetime | None = None) -> None:
        validate_set_notes(notes)
        self.notes = notes
        self.updated_at = now or utcnow()

    def is_completed(self) -> bool:
        return self.completed_at is not None and self.actual_reps is not None

    def was_successful(self) -> bool:
        return self.is_completed() and (self.actual_reps or 0) > 0

    def get_reps_difference(self) -> int:
        if not self.is_completed():
            return 0
        return self.actual_reps - self.planned_reps

    def get_completion_percentage(self) -> int:
        if not self.is_completed():
            return 0
        if self.planned_reps == 0:
            return 100
        return round_half_up(self.actual_reps / self.planned_reps * 100)

    def get_volume(self) -> float:
        if self.is_completed() and self.weight:
            return self.weight * self.actual_reps
        return 0

    def get_stats(self) -> SetStats:
        return SetStats(
            is_completed=self.is_completed(),
            was_successful=self.was_successful(),
            reps_difference=self.get_reps_difference(),
            completion_percentage=self.get_completion_percentage(),
            volume=self.get_volume(),
        )

    def compare_with(self, previous: "WorkoutSet") -> SetComparison:
        """Compare against an earlier set. A weight change outranks a reps change."""
        reps_improvement = (self.actual_reps or 0) - (previous.actual_reps or 0)
        weight_improvement = (self.weight or 0) - (previous.weight or 0)

        overall = "same"
        if weight_improvement > 0 or (weight_improvement == 0 and reps_improvement > 0):
            overall = "better"
        elif weight_improvement < 0 or (
            weight_improvement == 0 and reps_improvement < 0
        ):
            overall = "worse"

        return SetComparison(
            reps_improvement=reps_improvement,
            weight_improvement=weight_improvement,
            overall_improvement=overall,
        )

    def formatted_weight(self) -> str:
        if self.weight is None:
            return "Bodyweight"
        return f"{self.weight:g} kg"

    def formatted_rest_time(self) -> str:
        if self.rest_time_seconds is None:
            return "Not recorded"
        return format_rest_time(self.rest_time_seconds)

    def formatted_description(self) -> str:
        if not self.is_completed():
            return f"Set {self.set_number}: {self.planned_reps} reps planned"

        parts = [f"Set {self.set_number}: {self.actual_reps}/{self.planned_reps} reps"]
        if self.weight:
            parts.append(self.formatted_weight())
        if self.rest_time_seconds:
            parts.append(f"Rest: {self.formatted_rest_time()}")
        return " | ".join(parts)

    def clone(self, new_id: UUID, new_execution_id: UUID) -> "WorkoutSet":
        """Copy the plan of this set into another execution, keeping the weight."""
        return WorkoutSet(
            id=new_id,
            execution_id=new_execution_id,
            set_number=self.set_number,
            planned_reps=self.planned_reps,
            weight=self.weight,
        )
