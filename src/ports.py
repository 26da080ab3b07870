"""Contracts the use-cases depend on.

Use-cases receive these collaborators through their constructors; the
SQLAlchemy implementations live in ``repositories.py``.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Generic, Protocol, TypeVar
from uuid import UUID

from pydantic import BaseModel

from exercise_execution import ExerciseExecution
from plans import Exercise, WorkoutPlan
from workout_session import SessionStatus, WorkoutSession
from workout_set import WorkoutSet

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


class PremiumStatus(BaseModel):
    is_premium: bool
    status: str
    expiry_date: datetime | None = None


class WorkoutPlanRepository(Protocol):
    def save(self, plan: WorkoutPlan) -> WorkoutPlan: ...

    def find_by_id(self, plan_id: UUID) -> WorkoutPlan | None: ...

    def find_by_id_and_user_id(
        self, plan_id: UUID, user_id: UUID
    ) -> WorkoutPlan | None: ...

    def find_by_user_id(
        self, user_id: UUID, page: int, limit: int, include_inactive: bool = False
    ) -> Page[WorkoutPlan]: ...

    def search_by_name(self, user_id: UUID, search: str) -> list[WorkoutPlan]: ...

    def count_active_by_user_id(self, user_id: UUID) -> int: ...

    def exists_by_name_and_user_id(
        self, name: str, user_id: UUID, exclude_id: UUID | None = None
    ) -> bool: ...

    def delete(self, plan_id: UUID) -> None: ...


class ExerciseRepository(Protocol):
    def save(self, exercise: Exercise) -> Exercise: ...

    def find_by_id(self, exercise_id: UUID) -> Exercise | None: ...

    def find_by_workout_plan_id(self, plan_id: UUID) -> list[Exercise]: ...

    def count_by_workout_plan_id(self, plan_id: UUID) -> int: ...

    def exists_by_name_and_workout_plan_id(
        self, name: str, plan_id: UUID, exclude_id: UUID | None = None
    ) -> bool: ...

    def update_orders(self, exercises: Sequence[Exercise]) -> list[Exercise]: ...

    def delete(self, exercise_id: UUID) -> None: ...


class WorkoutSessionRepository(Protocol):
    def save(self, session: WorkoutSession) -> WorkoutSession: ...

    def find_by_id(self, session_id: UUID) -> WorkoutSession | None: ...

    def find_by_id_and_user_id(
        self, session_id: UUID, user_id: UUID
    ) -> WorkoutSession | None: ...

    def find_active_by_user_id(self, user_id: UUID) -> WorkoutSession | None: ...

    def find_by_user_id(
        self,
        user_id: UUID,
        page: int,
        limit: int,
        status: SessionStatus | None = None,
        started_after: datetime | None = None,
    ) -> Page[WorkoutSession]: ...

    def has_active_session_for_plan(self, plan_id: UUID) -> bool: ...


class ExerciseExecutionRepository(Protocol):
    def save(self, execution: ExerciseExecution) -> ExerciseExecution: ...

    def find_by_id(self, execution_id: UUID) -> ExerciseExecution | None: ...

    def find_by_id_and_user_id(
        self, execution_id: UUID, user_id: UUID
    ) -> ExerciseExecution | None: ...

    def find_by_session_id(self, session_id: UUID) -> list[ExerciseExecution]: ...

    def find_by_session_and_exercise(
        self, session_id: UUID, exercise_id: UUID
    ) -> ExerciseExecution | None: ...


class SetRepository(Protocol):
    def save(self, workout_set: WorkoutSet) -> WorkoutSet: ...

    def save_many(self, sets: Sequence[WorkoutSet]) -> list[WorkoutSet]: ...

    def find_by_execution_id(self, execution_id: UUID) -> list[WorkoutSet]: ...

    def find_by_execution_id_and_set_number(
        self, execution_id: UUID, set_number: int
    ) -> WorkoutSet | None: ...

    def find_last_by_exercise_and_user(
        self, exercise_id: UUID, user_id: UUID
    ) -> WorkoutSet | None: ...

    def delete(self, set_id: UUID) -> None: ...


class PremiumStatusSource(Protocol):
    def check_status(self, user_id: UUID) -> PremiumStatus: ...
