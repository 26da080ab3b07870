"""Exercise execution state machine.

Tracks one exercise being performed within a session and owns its sets:

    NOT_STARTED -> IN_PROGRESS -> COMPLETED
    NOT_STARTED | IN_PROGRESS -> SKIPPED
"""

from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from errors import InvalidStateTransitionError, NotFoundError, WorkoutValidationError
from timeutils import (
    UTCDateTime,
    elapsed_ms,
    format_duration,
    round_half_up,
    utcnow,
)
from workout_set import WorkoutSet


class ExecutionStatus(StrEnum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"


class ExecutionSummary(BaseModel):
    status: ExecutionStatus
    duration: str
    completed_sets: int
    total_sets: int
    completion_rate: int
    average_weight: float | None
    total_reps: int


class ExerciseExecution(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4, frozen=True)
    session_id: UUID = Field(frozen=True)
    exercise_id: UUID = Field(frozen=True)
    status: ExecutionStatus = ExecutionStatus.NOT_STARTED
    started_at: UTCDateTime | None = None
    completed_at: UTCDateTime | None = None
    notes: str | None = None
    created_at: UTCDateTime = Field(default_factory=utcnow, frozen=True)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
    version: int = 0
    sets: list[WorkoutSet] = Field(default_factory=list)

    def _reject(self, message: str, action: str) -> None:
        logger.bind(execution_id=str(self.id), status=self.status).warning(
            f"Rejected execution {action}"
        )
        raise InvalidStateTransitionError(
            message, details={"status": self.status.value, "action": action}
        )

    def start(self, now: datetime | None = None) -> None:
        if self.status != ExecutionStatus.NOT_STARTED:
            self._reject("Exercise execution has already been started", "start")
        now = now or utcnow()
        self.status = ExecutionStatus.IN_PROGRESS
        self.started_at = now
        self.updated_at = now

    def complete(self, notes: str | None = None, now: datetime | None = None) -> None:
        if self.status != ExecutionStatus.IN_PROGRESS:
            self._reject(
                "Can only complete an exercise execution that is in progress",
                "complete",
            )
        now = now or utcnow()
        self.status = ExecutionStatus.COMPLETED
        self.completed_at = now
        if notes:
            self.notes = notes
        self.updated_at = now

    def skip(self, reason: str | None = None, now: datetime | None = None) -> None:
        if not self.can_be_skipped():
            self._reject(
                f"Cannot skip an exercise execution with status {self.status}", "skip"
            )
        now = now or utcnow()
        self.status = ExecutionStatus.SKIPPED
        self.completed_at = now
        if reason:
            self.notes = f"Skipped: {reason}"
        self.updated_at = now

    def add_set(self, workout_set: WorkoutSet, now: datetime | None = None) -> None:
        if self.status == ExecutionStatus.NOT_STARTED:
            self._reject("Cannot add sets before starting the exercise", "add_set")
        if self.is_finished():
            self._reject(
                "Cannot add sets to a completed or skipped exercise execution",
                "add_set",
            )
        if any(s.set_number == workout_set.set_number for s in self.sets):
            raise WorkoutValidationError(
                f"Set number {workout_set.set_number} already exists",
                details={"set_number": workout_set.set_number},
            )

        self.sets.append(workout_set)
        self.updated_at = now or utcnow()

    def get_set(self, set_number: int) -> WorkoutSet:
        for workout_set in self.sets:
            if workout_set.set_number == set_number:
                return workout_set
        raise NotFoundError(
            f"Set number {set_number} not found", details={"set_number": set_number}
        )

    def update_set(
        self,
        set_number: int,
        actual_reps: int,
        weight: float | None = None,
        notes: str | None = None,
        rest_time_seconds: int | None = None,
        now: datetime | None = None,
    ) -> WorkoutSet:
        """Complete the set with ``set_number`` and return it."""
        workout_set = self.get_set(set_number)
        now = now or utcnow()
        workout_set.complete(actual_reps, weight, notes, rest_time_seconds, now=now)
        self.updated_at = now
        return workout_set

    def remove_set(self, set_number: int, now: datetime | None = None) -> None:
        workout_set = self.get_set(set_number)
        self.sets.remove(workout_set)
        self.updated_at = now or utcnow()

    def get_ordered_sets(self) -> list[WorkoutSet]:
        return sorted(
            (s.model_copy(deep=True) for s in self.sets), key=lambda s: s.set_number
        )

    def are_all_sets_completed(self) -> bool:
        return len(self.sets) > 0 and all(s.is_completed() for s in self.sets)

    def get_completed_sets_count(self) -> int:
        return sum(1 for s in self.sets if s.is_completed())

    def next_incomplete_set(self) -> WorkoutSet | None:
        for workout_set in sorted(self.sets, key=lambda s: s.set_number):
            if not workout_set.is_completed():
                return workout_set
        return None

    def get_total_duration_ms(self, now: datetime | None = None) -> int:
        if self.started_at is None:
            return 0
        end = self.completed_at or now or utcnow()
        return max(0, elapsed_ms(self.started_at, end))

    def get_formatted_duration(self, now: datetime | None = None) -> str:
        return format_duration(self.get_total_duration_ms(now))

    def get_summary(self, now: datetime | None = None) -> ExecutionSummary:
        completed = [s for s in self.sets if s.is_completed()]
        total_sets = len(self.sets)
        completion_rate = (
            round_half_up(len(completed) / total_sets * 100) if total_sets else 0
        )

        weighted = [s.weight for s in completed if s.weight is not None]
        average_weight = sum(weighted) / len(weighted) if weighted else None

        return ExecutionSummary(
            status=self.status,
            duration=self.get_formatted_duration(now),
            completed_sets=len(completed),
            total_sets=total_sets,
            completion_rate=completion_rate,
            average_weight=average_weight,
            total_reps=sum(s.actual_reps for s in completed),
        )

    def can_be_started(self) -> bool:
        return self.status == ExecutionStatus.NOT_STARTED

    def can_be_completed(self) -> bool:
        return self.status == ExecutionStatus.IN_PROGRESS

    def can_be_skipped(self) -> bool:
        return self.status in (ExecutionStatus.NOT_STARTED, ExecutionStatus.IN_PROGRESS)

    def is_active(self) -> bool:
        return self.status == ExecutionStatus.IN_PROGRESS

    def is_finished(self) -> bool:
        return self.status in (ExecutionStatus.COMPLETED, ExecutionStatus.SKIPPED)
