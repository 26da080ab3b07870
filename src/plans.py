"""Workout plan aggregate and its exercises."""

import math
import re
from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from errors import NotFoundError, WorkoutValidationError
from timeutils import UTCDateTime, format_rest_time, utcnow

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_MUSCLE_GROUP_LENGTH = 50
MAX_EXERCISE_SETS = 20
MAX_EXERCISE_REPS = 100
MAX_EXERCISE_REST_SECONDS = 600  # 10 minutes
SECONDS_PER_SET = 30

NAME_PATTERN = re.compile(r"^[a-zA-ZÀ-ÿ0-9\s\-_()]+$")


def validate_name(name: str | None, label: str = "Name") -> str:
    """Check a plan or exercise name and return it stripped."""
    if name is None or not name.strip():
        raise WorkoutValidationError(f"{label} is required", details={"field": "name"})
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise WorkoutValidationError(
            f"{label} must be at most {MAX_NAME_LENGTH} characters",
            details={"field": "name"},
        )
    if not NAME_PATTERN.match(name):
        raise WorkoutValidationError(
            f"{label} contains invalid characters", details={"field": "name"}
        )
    return name


def validate_description(description: str | None) -> None:
    if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
        raise WorkoutValidationError(
            f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters",
            details={"field": "description"},
        )


def _check_range(field: str, value: int, low: int, high: int, message: str) -> None:
    if value < low or value > high:
        raise WorkoutValidationError(message, details={"field": field, "value": value})


def validate_prescription(
    sets: int,
    reps: int,
    rest_time_seconds: int,
    target_muscle_group: str | None = None,
) -> None:
    """Check the numeric prescription and muscle-group tag of an exercise."""
    if (
        target_muscle_group is not None
        and len(target_muscle_group) > MAX_MUSCLE_GROUP_LENGTH
    ):
        raise WorkoutValidationError(
            f"Target muscle group must be at most {MAX_MUSCLE_GROUP_LENGTH} "
            "characters",
            details={"field": "target_muscle_group"},
        )
    _check_range(
        "sets", sets, 1, MAX_EXERCISE_SETS, "Sets must be between 1 and 20"
    )
    _check_range("reps", reps, 1, MAX_EXERCISE_REPS, "Reps must be between 1 and 100")
    _check_range(
        "rest_time_seconds",
        rest_time_seconds,
        0,
        MAX_EXERCISE_REST_SECONDS,
        "Rest time must be between 0 and 600 seconds",
    )


class Exercise(BaseModel):
    """An exercise prescription inside a plan."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4, frozen=True)
    workout_plan_id: UUID = Field(frozen=True)
    name: str
    description: str | None = None
    target_muscle_group: str | None = None
    sets: int = 3
    reps: int = 10
    rest_time_seconds: int = 60
    order: int = 1
    created_at: UTCDateTime = Field(default_factory=utcnow, frozen=True)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
    version: int = 0

    @model_validator(mode="after")
    def check_prescription(self) -> "Exercise":
        validate_name(self.name, "Exercise name")
        validate_description(self.description)
        validate_prescription(
            self.sets, self.reps, self.rest_time_seconds, self.target_muscle_group
        )
        if self.order < 1:
            raise WorkoutValidationError(
                "Exercise order must be greater than 0",
                details={"field": "order", "value": self.order},
            )
        return self

    def estimated_duration_seconds(self) -> int:
        """30 seconds per set plus rest between sets (none after the last)."""
        return self.sets * SECONDS_PER_SET + (self.sets - 1) * self.rest_time_seconds

    def formatted_description(self) -> str:
        text = (
            f"{self.sets} sets x {self.reps} reps | "
            f"Rest: {format_rest_time(self.rest_time_seconds)}"
        )
        if self.target_muscle_group:
            text += f" | {self.target_muscle_group}"
        return text


class WorkoutPlan(BaseModel):
    """A named, ordered collection of exercises owned by one user.

    Exercise ``order`` values always form 1..N matching list position.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4, frozen=True)
    user_id: UUID = Field(frozen=True)
    name: str
    description: str | None = None
    is_active: bool = True
    created_at: UTCDateTime = Field(default_factory=utcnow, frozen=True)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
    version: int = 0
    exercises: list[Exercise] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_plan(self) -> "WorkoutPlan":
        validate_name(self.name, "Workout plan name")
        validate_description(self.description)
        ids = [exercise.id for exercise in self.exercises]
        if len(ids) != len(set(ids)):
            raise WorkoutValidationError("Duplicate exercise in workout plan")
        return self

    def _find_index(self, exercise_id: UUID) -> int:
        for index, exercise in enumerate(self.exercises):
            if exercise.id == exercise_id:
                return index
        raise NotFoundError(
            "Exercise not found in this workout plan",
            details={"exercise_id": str(exercise_id)},
        )

    def _renumber(self) -> None:
        for index, exercise in enumerate(self.exercises):
            exercise.order = index + 1

    def add_exercise(self, exercise: Exercise, now: datetime | None = None) -> None:
        if any(e.id == exercise.id for e in self.exercises):
            raise WorkoutValidationError(
                "Exercise already exists in this workout plan",
                details={"exercise_id": str(exercise.id)},
            )
        exercise.order = len(self.exercises) + 1
        self.exercises.append(exercise)
        self.updated_at = now or utcnow()

    def remove_exercise(self, exercise_id: UUID, now: datetime | None = None) -> None:
        del self.exercises[self._find_index(exercise_id)]
        self._renumber()
        self.updated_at = now or utcnow()

    def update_exercise_order(
        self, exercise_id: UUID, new_order: int, now: datetime | None = None
    ) -> None:
        index = self._find_index(exercise_id)
        if new_order < 1 or new_order > len(self.exercises):
            raise WorkoutValidationError(
                "Invalid exercise order",
                details={"order": new_order, "exercise_count": len(self.exercises)},
            )
        exercise = self.exercises.pop(index)
        self.exercises.insert(new_order - 1, exercise)
        self._renumber()
        self.updated_at = now or utcnow()

    def get_ordered_exercises(self) -> list[Exercise]:
        """Exercises sorted by order. The returned objects are copies."""
        return sorted(
            (e.model_copy(deep=True) for e in self.exercises), key=lambda e: e.order
        )

    def get_exercise(self, exercise_id: UUID) -> Exercise:
        return self.exercises[self._find_index(exercise_id)]

    def can_add_exercise(self, max_exercises: int) -> bool:
        return len(self.exercises) < max_exercises

    def next_exercise_order(self) -> int:
        return len(self.exercises) + 1

    def estimated_duration_minutes(self) -> int:
        total = sum(e.estimated_duration_seconds() for e in self.exercises)
        return math.ceil(total / 60)

    def update(
        self, name: str, description: str | None, now: datetime | None = None
    ) -> None:
        self.name = validate_name(name, "Workout plan name")
        validate_description(description)
        self.description = description
        self.updated_at = now or utcnow()

    def activate(self, now: datetime | None = None) -> None:
        self.is_active = True
        self.updated_at = now or utcnow()

    def deactivate(self, now: datetime | None = None) -> None:
        self.is_active = False
        self.updated_at = now or utcnow()
