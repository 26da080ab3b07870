"""SQLAlchemy database models."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship

from database import Base
from exercise_execution import ExecutionStatus
from timeutils import utcnow
from workout_session import SessionStatus

ACTIVE_SESSION_CLAUSE = text("status IN ('IN_PROGRESS', 'PAUSED')")


class UserDB(Base):
    """Database model for users, created on first Firebase login."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    firebase_uid = Column(String(128), nullable=False, unique=True)
    email = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<UserDB(id={self.id}, email={self.email})>"


class SubscriptionDB(Base):
    """Database model for premium subscriptions.

    Rows are written by the billing integration; the workout core only reads
    the most recent one for a user.
    """

    __tablename__ = "subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(String(100), nullable=False)
    purchase_token = Column(String(255), nullable=False, unique=True)
    status = Column(String(20), nullable=False)  # active, expired, canceled, pending
    expiry_date = Column(DateTime(timezone=True), nullable=False)
    acknowledged = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<SubscriptionDB(id={self.id}, status={self.status})>"


class WorkoutPlanDB(Base):
    """Database model for workout plans.

    A plan owns its exercises; their ``order`` column is kept dense (1..N).
    """

    __tablename__ = "workout_plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    version = Column(Integer, nullable=False)

    # Relationship to exercises (ordered by position in the plan)
    exercises = relationship(
        "ExerciseDB",
        order_by="ExerciseDB.order",
        back_populates="workout_plan",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<WorkoutPlanDB(id={self.id}, name={self.name})>"


class ExerciseDB(Base):
    """Database model for exercises within a workout plan."""

    __tablename__ = "exercises"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    workout_plan_id = Column(
        Uuid,
        ForeignKey("workout_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    target_muscle_group = Column(String(50), nullable=True)
    sets = Column(Integer, nullable=False, default=3)
    reps = Column(Integer, nullable=False, default=10)
    rest_time_seconds = Column(Integer, nullable=False, default=60)
    order = Column(Integer, nullable=False)  # 1-based position in the plan
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    version = Column(Integer, nullable=False)

    workout_plan = relationship("WorkoutPlanDB", back_populates="exercises")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<ExerciseDB(id={self.id}, name={self.name}, order={self.order})>"


class WorkoutSessionDB(Base):
    """Database model for workout sessions.

    At most one session per user may be IN_PROGRESS or PAUSED; the partial
    unique index below enforces it.
    """

    __tablename__ = "workout_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    workout_plan_id = Column(
        Uuid,
        ForeignKey("workout_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(
        Enum(SessionStatus, native_enum=False, length=20),
        nullable=False,
        default=SessionStatus.IN_PROGRESS,
    )
    started_at = Column(DateTime(timezone=True), nullable=False)
    paused_at = Column(DateTime(timezone=True), nullable=True)
    resumed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    total_duration_ms = Column(Integer, nullable=True)  # set on complete/cancel
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    version = Column(Integer, nullable=False)

    executions = relationship(
        "ExerciseExecutionDB",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index(
            "uq_workout_sessions_active_user",
            "user_id",
            unique=True,
            sqlite_where=ACTIVE_SESSION_CLAUSE,
            postgresql_where=ACTIVE_SESSION_CLAUSE,
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<WorkoutSessionDB(id={self.id}, status={self.status})>"


class ExerciseExecutionDB(Base):
    """Database model for one exercise performed within a session."""

    __tablename__ = "exercise_executions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(
        Uuid,
        ForeignKey("workout_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    exercise_id = Column(
        Uuid, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(
        Enum(ExecutionStatus, native_enum=False, length=20),
        nullable=False,
        default=ExecutionStatus.NOT_STARTED,
    )
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    version = Column(Integer, nullable=False)

    session = relationship("WorkoutSessionDB", back_populates="executions")
    sets = relationship(
        "WorkoutSetDB",
        order_by="WorkoutSetDB.set_number",
        back_populates="execution",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("session_id", "exercise_id", name="uq_execution_exercise"),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<ExerciseExecutionDB(id={self.id}, status={self.status})>"


class WorkoutSetDB(Base):
    """Database model for sets. Set numbers are unique within an execution."""

    __tablename__ = "workout_sets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    execution_id = Column(
        Uuid,
        ForeignKey("exercise_executions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    set_number = Column(Integer, nullable=False)
    planned_reps = Column(Integer, nullable=False)
    actual_reps = Column(Integer, nullable=True)
    weight = Column(Float, nullable=True)  # kg
    rest_time_seconds = Column(Integer, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    version = Column(Integer, nullable=False)

    execution = relationship("ExerciseExecutionDB", back_populates="sets")

    __table_args__ = (
        UniqueConstraint("execution_id", "set_number", name="uq_execution_set_number"),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return (
            f"<WorkoutSetDB(id={self.id}, execution_id={self.execution_id}, "
            f"set={self.set_number})>"
        )
