"""SQLAlchemy implementations of the repository contracts in ``ports.py``.

Repositories only flush; the request that owns the session commits. Every
row carries a ``version`` column (SQLAlchemy ``version_id_col``) and saving
an entity whose version no longer matches the stored row raises
ConcurrencyConflictError.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import TypeVar
from uuid import UUID

from loguru import logger
from pydantic import BaseModel
from sqlalchemy import exists, func
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from errors import ActiveSessionExistsError, ConcurrencyConflictError, ConflictError
from exercise_execution import ExerciseExecution
from models import (
    ExerciseDB,
    ExerciseExecutionDB,
    WorkoutPlanDB,
    WorkoutSessionDB,
    WorkoutSetDB,
)
from plans import Exercise, WorkoutPlan
from ports import Page
from workout_session import ACTIVE_SESSION_STATUSES, SessionStatus, WorkoutSession
from workout_set import WorkoutSet

E = TypeVar("E", bound=BaseModel)


def _column_keys(model_cls) -> set[str]:
    return {attr.key for attr in sa_inspect(model_cls).column_attrs} - {"version"}


def _save(db: Session, model_cls, entity: E) -> E:
    """Insert or update the row for ``entity`` and sync its version.

    Only column attributes are written; relationships are persisted by their
    own repositories.
    """
    values = entity.model_dump(include=_column_keys(model_cls))
    row = db.get(model_cls, entity.id)

    if row is None:
        if entity.version != 0:
            raise ConcurrencyConflictError(
                f"{model_cls.__tablename__} row {entity.id} no longer exists",
                details={"id": str(entity.id)},
            )
        row = model_cls(**values)
        db.add(row)
    else:
        if row.version != entity.version:
            logger.bind(
                table=model_cls.__tablename__,
                id=str(entity.id),
                expected=entity.version,
                found=row.version,
            ).warning("Version mismatch on save")
            raise ConcurrencyConflictError(
                "The record was modified by another request",
                details={"id": str(entity.id)},
            )
        for key, value in values.items():
            setattr(row, key, value)

    try:
        db.flush()
    except StaleDataError as err:
        raise ConcurrencyConflictError(
            "The record was modified by another request",
            details={"id": str(entity.id)},
        ) from err

    entity.version = row.version
    return entity


def _delete(db: Session, model_cls, row_id: UUID) -> None:
    row = db.get(model_cls, row_id)
    if row is not None:
        db.delete(row)
        db.flush()


def _to_plan(db: Session, row: WorkoutPlanDB | None) -> WorkoutPlan | None:
    if row is None:
        return None
    # Exercises are written through their own repository, so reload the
    # collection instead of trusting what the identity map holds.
    db.expire(row, ["exercises"])
    return WorkoutPlan.model_validate(row)


def _to_execution(
    db: Session, row: ExerciseExecutionDB | None
) -> ExerciseExecution | None:
    if row is None:
        return None
    db.expire(row, ["sets"])
    return ExerciseExecution.model_validate(row)


def _page(query, convert, page: int, limit: int) -> Page:
    total = query.count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return Page(
        items=[convert(row) for row in rows],
        total=total,
        page=page,
        limit=limit,
    )


class SqlWorkoutPlanRepository:
    def __init__(self, db: Session):
        self.db = db

    def save(self, plan: WorkoutPlan) -> WorkoutPlan:
        return _save(self.db, WorkoutPlanDB, plan)

    def find_by_id(self, plan_id: UUID) -> WorkoutPlan | None:
        row = self.db.get(WorkoutPlanDB, plan_id)
        return _to_plan(self.db, row)

    def find_by_id_and_user_id(
        self, plan_id: UUID, user_id: UUID
    ) -> WorkoutPlan | None:
        row = (
            self.db.query(WorkoutPlanDB)
            .filter(WorkoutPlanDB.id == plan_id, WorkoutPlanDB.user_id == user_id)
            .first()
        )
        return _to_plan(self.db, row)

    def find_by_user_id(
        self, user_id: UUID, page: int, limit: int, include_inactive: bool = False
    ) -> Page[WorkoutPlan]:
        query = self.db.query(WorkoutPlanDB).filter(WorkoutPlanDB.user_id == user_id)
        if not include_inactive:
            query = query.filter(WorkoutPlanDB.is_active.is_(True))
        query = query.order_by(WorkoutPlanDB.created_at.desc(), WorkoutPlanDB.id)
        return _page(query, lambda row: _to_plan(self.db, row), page, limit)

    def search_by_name(self, user_id: UUID, search: str) -> list[WorkoutPlan]:
        rows = (
            self.db.query(WorkoutPlanDB)
            .filter(
                WorkoutPlanDB.user_id == user_id,
                func.lower(WorkoutPlanDB.name).contains(search.lower()),
            )
            .order_by(WorkoutPlanDB.name)
            .all()
        )
        return [_to_plan(self.db, row) for row in rows]

    def count_active_by_user_id(self, user_id: UUID) -> int:
        return (
            self.db.query(WorkoutPlanDB)
            .filter(WorkoutPlanDB.user_id == user_id, WorkoutPlanDB.is_active.is_(True))
            .count()
        )

    def exists_by_name_and_user_id(
        self, name: str, user_id: UUID, exclude_id: UUID | None = None
    ) -> bool:
        query = self.db.query(WorkoutPlanDB.id).filter(
            WorkoutPlanDB.user_id == user_id,
            func.lower(WorkoutPlanDB.name) == name.lower(),
        )
        if exclude_id is not None:
            query = query.filter(WorkoutPlanDB.id != exclude_id)
        return self.db.query(query.exists()).scalar()

    def delete(self, plan_id: UUID) -> None:
        _delete(self.db, WorkoutPlanDB, plan_id)


class SqlExerciseRepository:
    def __init__(self, db: Session):
        self.db = db

    def save(self, exercise: Exercise) -> Exercise:
        return _save(self.db, ExerciseDB, exercise)

    def find_by_id(self, exercise_id: UUID) -> Exercise | None:
        row = self.db.get(ExerciseDB, exercise_id)
        return Exercise.model_validate(row) if row else None

    def find_by_workout_plan_id(self, plan_id: UUID) -> list[Exercise]:
        rows = (
            self.db.query(ExerciseDB)
            .filter(ExerciseDB.workout_plan_id == plan_id)
            .order_by(ExerciseDB.order)
            .all()
        )
        return [Exercise.model_validate(row) for row in rows]

    def count_by_workout_plan_id(self, plan_id: UUID) -> int:
        return (
            self.db.query(ExerciseDB)
            .filter(ExerciseDB.workout_plan_id == plan_id)
            .count()
        )

    def exists_by_name_and_workout_plan_id(
        self, name: str, plan_id: UUID, exclude_id: UUID | None = None
    ) -> bool:
        query = self.db.query(ExerciseDB.id).filter(
            ExerciseDB.workout_plan_id == plan_id,
            func.lower(ExerciseDB.name) == name.lower(),
        )
        if exclude_id is not None:
            query = query.filter(ExerciseDB.id != exclude_id)
        return self.db.query(query.exists()).scalar()

    def update_orders(self, exercises: Sequence[Exercise]) -> list[Exercise]:
        """Persist new positions for several exercises atomically."""
        with self.db.begin_nested():
            return [_save(self.db, ExerciseDB, exercise) for exercise in exercises]

    def delete(self, exercise_id: UUID) -> None:
        _delete(self.db, ExerciseDB, exercise_id)


class SqlWorkoutSessionRepository:
    def __init__(self, db: Session):
        self.db = db

    def save(self, session: WorkoutSession) -> WorkoutSession:
        if session.version != 0:
            return _save(self.db, WorkoutSessionDB, session)

        try:
            with self.db.begin_nested():
                return _save(self.db, WorkoutSessionDB, session)
        except IntegrityError as err:
            logger.bind(user_id=str(session.user_id)).warning(
                "Concurrent active session insert rejected"
            )
            raise ActiveSessionExistsError(
                "You already have an active workout session. Complete or cancel "
                "it before starting a new one.",
                details={"user_id": str(session.user_id)},
            ) from err

    def find_by_id(self, session_id: UUID) -> WorkoutSession | None:
        row = self.db.get(WorkoutSessionDB, session_id)
        return WorkoutSession.model_validate(row) if row else None

    def find_by_id_and_user_id(
        self, session_id: UUID, user_id: UUID
    ) -> WorkoutSession | None:
        row = (
            self.db.query(WorkoutSessionDB)
            .filter(
                WorkoutSessionDB.id == session_id,
                WorkoutSessionDB.user_id == user_id,
            )
            .first()
        )
        return WorkoutSession.model_validate(row) if row else None

    def find_active_by_user_id(self, user_id: UUID) -> WorkoutSession | None:
        row = (
            self.db.query(WorkoutSessionDB)
            .filter(
                WorkoutSessionDB.user_id == user_id,
                WorkoutSessionDB.status.in_(ACTIVE_SESSION_STATUSES),
            )
            .first()
        )
        return WorkoutSession.model_validate(row) if row else None

    def find_by_user_id(
        self,
        user_id: UUID,
        page: int,
        limit: int,
        status: SessionStatus | None = None,
        started_after: datetime | None = None,
    ) -> Page[WorkoutSession]:
        query = self.db.query(WorkoutSessionDB).filter(
            WorkoutSessionDB.user_id == user_id
        )
        if status is not None:
            query = query.filter(WorkoutSessionDB.status == status)
        if started_after is not None:
            query = query.filter(WorkoutSessionDB.started_at > started_after)
        query = query.order_by(
            WorkoutSessionDB.started_at.desc(), WorkoutSessionDB.id
        )
        return _page(query, WorkoutSession.model_validate, page, limit)

    def has_active_session_for_plan(self, plan_id: UUID) -> bool:
        return self.db.query(
            exists().where(
                WorkoutSessionDB.workout_plan_id == plan_id,
                WorkoutSessionDB.status.in_(ACTIVE_SESSION_STATUSES),
            )
        ).scalar()


class SqlExerciseExecutionRepository:
    def __init__(self, db: Session):
        self.db = db

    def save(self, execution: ExerciseExecution) -> ExerciseExecution:
        if execution.version != 0:
            return _save(self.db, ExerciseExecutionDB, execution)

        try:
            with self.db.begin_nested():
                return _save(self.db, ExerciseExecutionDB, execution)
        except IntegrityError as err:
            raise ConflictError(
                "Exercise has already been started in this session",
                details={
                    "session_id": str(execution.session_id),
                    "exercise_id": str(execution.exercise_id),
                },
            ) from err

    def find_by_id(self, execution_id: UUID) -> ExerciseExecution | None:
        row = self.db.get(ExerciseExecutionDB, execution_id)
        return _to_execution(self.db, row)

    def find_by_id_and_user_id(
        self, execution_id: UUID, user_id: UUID
    ) -> ExerciseExecution | None:
        row = (
            self.db.query(ExerciseExecutionDB)
            .join(
                WorkoutSessionDB,
                ExerciseExecutionDB.session_id == WorkoutSessionDB.id,
            )
            .filter(
                ExerciseExecutionDB.id == execution_id,
                WorkoutSessionDB.user_id == user_id,
            )
            .first()
        )
        return _to_execution(self.db, row)

    def find_by_session_id(self, session_id: UUID) -> list[ExerciseExecution]:
        rows = (
            self.db.query(ExerciseExecutionDB)
            .filter(ExerciseExecutionDB.session_id == session_id)
            .order_by(ExerciseExecutionDB.created_at)
            .all()
        )
        return [_to_execution(self.db, row) for row in rows]

    def find_by_session_and_exercise(
        self, session_id: UUID, exercise_id: UUID
    ) -> ExerciseExecution | None:
        row = (
            self.db.query(ExerciseExecutionDB)
            .filter(
                ExerciseExecutionDB.session_id == session_id,
                ExerciseExecutionDB.exercise_id == exercise_id,
            )
            .first()
        )
        return _to_execution(self.db, row)


class SqlSetRepository:
    def __init__(self, db: Session):
        self.db = db

    def save(self, workout_set: WorkoutSet) -> WorkoutSet:
        return _save(self.db, WorkoutSetDB, workout_set)

    def save_many(self, sets: Sequence[WorkoutSet]) -> list[WorkoutSet]:
        """Insert or update several sets in one savepoint (all or nothing)."""
        with self.db.begin_nested():
            return [_save(self.db, WorkoutSetDB, workout_set) for workout_set in sets]

    def find_by_execution_id(self, execution_id: UUID) -> list[WorkoutSet]:
        rows = (
            self.db.query(WorkoutSetDB)
            .filter(WorkoutSetDB.execution_id == execution_id)
            .order_by(WorkoutSetDB.set_number)
            .all()
        )
        return [WorkoutSet.model_validate(row) for row in rows]

    def find_by_execution_id_and_set_number(
        self, execution_id: UUID, set_number: int
    ) -> WorkoutSet | None:
        row = (
            self.db.query(WorkoutSetDB)
            .filter(
                WorkoutSetDB.execution_id == execution_id,
                WorkoutSetDB.set_number == set_number,
            )
            .first()
        )
        return WorkoutSet.model_validate(row) if row else None

    def find_last_by_exercise_and_user(
        self, exercise_id: UUID, user_id: UUID
    ) -> WorkoutSet | None:
        """Most recently completed set of this exercise that recorded a weight."""
        row = (
            self.db.query(WorkoutSetDB)
            .join(
                ExerciseExecutionDB,
                WorkoutSetDB.execution_id == ExerciseExecutionDB.id,
            )
            .join(
                WorkoutSessionDB,
                ExerciseExecutionDB.session_id == WorkoutSessionDB.id,
            )
            .filter(
                ExerciseExecutionDB.exercise_id == exercise_id,
                WorkoutSessionDB.user_id == user_id,
                WorkoutSetDB.completed_at.isnot(None),
                WorkoutSetDB.weight.isnot(None),
            )
            .order_by(WorkoutSetDB.completed_at.desc(), WorkoutSetDB.set_number.desc())
            .first()
        )
        return WorkoutSet.model_validate(row) if row else None

    def delete(self, set_id: UUID) -> None:
        _delete(self.db, WorkoutSetDB, set_id)
