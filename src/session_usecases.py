"""Use-cases that drive a workout session through its lifecycle."""

from datetime import datetime, timedelta
from uuid import UUID

from loguru import logger
from pydantic import BaseModel

from errors import (
    ActiveSessionExistsError,
    ConflictError,
    NotFoundError,
    WorkoutValidationError,
)
from exercise_execution import ExecutionStatus
from limits import UNLIMITED, WorkoutLimitService
from ports import (
    ExerciseExecutionRepository,
    PremiumStatusSource,
    WorkoutPlanRepository,
    WorkoutSessionRepository,
)
from timeutils import Clock, round_half_up, utcnow
from workout_session import SessionStatus, WorkoutSession

MAX_SESSION_NOTES_LENGTH = 500
MAX_CANCEL_REASON_LENGTH = 200
MAX_PAGE_LIMIT = 100


def _check_length(value: str | None, limit: int, field: str, label: str) -> None:
    if value is not None and len(value) > limit:
        raise WorkoutValidationError(
            f"{label} must be at most {limit} characters", details={"field": field}
        )


def _strip(text: str | None) -> str | None:
    if text is None:
        return None
    return text.strip() or None


def _load_session(
    sessions: WorkoutSessionRepository, session_id: UUID, user_id: UUID
) -> WorkoutSession:
    session = sessions.find_by_id_and_user_id(session_id, user_id)
    if session is None:
        raise NotFoundError(
            "Workout session not found", details={"session_id": str(session_id)}
        )
    return session


class SessionInfo(BaseModel):
    can_pause: bool
    can_resume: bool
    can_complete: bool
    can_cancel: bool
    current_duration: str

    @classmethod
    def from_session(
        cls, session: WorkoutSession, now: datetime | None = None
    ) -> "SessionInfo":
        return cls(
            can_pause=session.can_be_paused(),
            can_resume=session.can_be_resumed(),
            can_complete=session.can_be_completed(),
            can_cancel=session.can_be_cancelled(),
            current_duration=session.get_formatted_duration(now),
        )


class SessionRefInput(BaseModel):
    """Identifies one session owned by ``user_id``."""

    user_id: UUID
    session_id: UUID


# ========== Start ==========


class StartWorkoutSessionInput(BaseModel):
    user_id: UUID
    workout_plan_id: UUID
    notes: str | None = None


class SessionPlanInfo(BaseModel):
    id: UUID
    name: str
    description: str | None
    exercise_count: int
    estimated_duration_minutes: int


class SessionExercise(BaseModel):
    id: UUID
    name: str
    sets: int
    reps: int
    rest_time_seconds: int
    order: int
    estimated_duration_seconds: int


class StartWorkoutSessionOutput(BaseModel):
    id: UUID
    status: SessionStatus
    started_at: datetime
    workout_plan: SessionPlanInfo
    exercises: list[SessionExercise]
    session_info: SessionInfo


class StartWorkoutSession:
    """Start a session for an active plan. A user has at most one active session."""

    def __init__(
        self,
        plans: WorkoutPlanRepository,
        sessions: WorkoutSessionRepository,
        clock: Clock = utcnow,
    ):
        self.plans = plans
        self.sessions = sessions
        self.clock = clock

    def execute(self, input: StartWorkoutSessionInput) -> StartWorkoutSessionOutput:
        _check_length(input.notes, MAX_SESSION_NOTES_LENGTH, "notes", "Notes")

        if self.sessions.find_active_by_user_id(input.user_id) is not None:
            raise ActiveSessionExistsError(
                "You already have an active workout session. Complete or cancel "
                "it before starting a new one.",
                details={"user_id": str(input.user_id)},
            )

        plan = self.plans.find_by_id_and_user_id(input.workout_plan_id, input.user_id)
        if plan is None:
            raise NotFoundError(
                "Workout plan not found",
                details={"plan_id": str(input.workout_plan_id)},
            )
        if not plan.is_active:
            raise ConflictError(
                "Cannot start a workout with an inactive plan",
                details={"plan_id": str(plan.id)},
            )
        if not plan.exercises:
            raise WorkoutValidationError(
                "Cannot start a workout without exercises. Add exercises to the "
                "plan first.",
                details={"plan_id": str(plan.id)},
            )

        now = self.clock()
        session = WorkoutSession(
            user_id=input.user_id,
            workout_plan_id=plan.id,
            started_at=now,
            notes=_strip(input.notes),
            created_at=now,
            updated_at=now,
        )
        session = self.sessions.save(session)
        logger.bind(user_id=str(input.user_id), session_id=str(session.id)).info(
            "Workout session started"
        )

        exercises = plan.get_ordered_exercises()
        return StartWorkoutSessionOutput(
            id=session.id,
            status=session.status,
            started_at=session.started_at,
            workout_plan=SessionPlanInfo(
                id=plan.id,
                name=plan.name,
                description=plan.description,
                exercise_count=len(exercises),
                estimated_duration_minutes=plan.estimated_duration_minutes(),
            ),
            exercises=[
                SessionExercise(
                    id=e.id,
                    name=e.name,
                    sets=e.sets,
                    reps=e.reps,
                    rest_time_seconds=e.rest_time_seconds,
                    order=e.order,
                    estimated_duration_seconds=e.estimated_duration_seconds(),
                )
                for e in exercises
            ],
            session_info=SessionInfo.from_session(session, now),
        )


# ========== Pause / Resume ==========


class SessionStateOutput(BaseModel):
    id: UUID
    status: SessionStatus
    paused_at: datetime | None
    resumed_at: datetime | None
    current_duration: str
    session_info: SessionInfo


def _state_output(session: WorkoutSession, now: datetime) -> SessionStateOutput:
    return SessionStateOutput(
        id=session.id,
        status=session.status,
        paused_at=session.paused_at,
        resumed_at=session.resumed_at,
        current_duration=session.get_formatted_duration(now),
        session_info=SessionInfo.from_session(session, now),
    )


class PauseWorkoutSession:
    def __init__(self, sessions: WorkoutSessionRepository, clock: Clock = utcnow):
        self.sessions = sessions
        self.clock = clock

    def execute(self, input: SessionRefInput) -> SessionStateOutput:
        session = _load_session(self.sessions, input.session_id, input.user_id)
        now = self.clock()
        session.pause(now=now)
        session = self.sessions.save(session)
        return _state_output(session, now)


class ResumeWorkoutSession:
    def __init__(self, sessions: WorkoutSessionRepository, clock: Clock = utcnow):
        self.sessions = sessions
        self.clock = clock

    def execute(self, input: SessionRefInput) -> SessionStateOutput:
        session = _load_session(self.sessions, input.session_id, input.user_id)
        now = self.clock()
        session.resume(now=now)
        session = self.sessions.save(session)
        return _state_output(session, now)


# ========== Complete / Cancel ==========


class CompleteWorkoutSessionInput(SessionRefInput):
    notes: str | None = None


class SessionSummary(BaseModel):
    exercises_completed: int
    total_exercises: int
    completion_rate: int


class PlanReference(BaseModel):
    id: UUID
    name: str


class CompleteWorkoutSessionOutput(BaseModel):
    id: UUID
    status: SessionStatus
    completed_at: datetime
    total_duration_ms: int
    formatted_duration: str
    notes: str | None
    workout_plan: PlanReference
    summary: SessionSummary


class CompleteWorkoutSession:
    """Finish a session and summarize how many plan exercises were completed."""

    def __init__(
        self,
        sessions: WorkoutSessionRepository,
        plans: WorkoutPlanRepository,
        executions: ExerciseExecutionRepository,
        clock: Clock = utcnow,
    ):
        self.sessions = sessions
        self.plans = plans
        self.executions = executions
        self.clock = clock

    def execute(
        self, input: CompleteWorkoutSessionInput
    ) -> CompleteWorkoutSessionOutput:
        _check_length(input.notes, MAX_SESSION_NOTES_LENGTH, "notes", "Notes")
        session = _load_session(self.sessions, input.session_id, input.user_id)

        plan = self.plans.find_by_id(session.workout_plan_id)
        if plan is None:
            raise NotFoundError(
                "Workout plan not found",
                details={"plan_id": str(session.workout_plan_id)},
            )

        session.complete(_strip(input.notes), now=self.clock())
        session = self.sessions.save(session)

        completed = sum(
            1
            for execution in self.executions.find_by_session_id(session.id)
            if execution.status == ExecutionStatus.COMPLETED
        )
        total = len(plan.exercises)
        logger.bind(user_id=str(input.user_id), session_id=str(session.id)).info(
            "Workout session completed"
        )

        return CompleteWorkoutSessionOutput(
            id=session.id,
            status=session.status,
            completed_at=session.completed_at,
            total_duration_ms=session.total_duration_ms,
            formatted_duration=session.get_formatted_duration(),
            notes=session.notes,
            workout_plan=PlanReference(id=plan.id, name=plan.name),
            summary=SessionSummary(
                exercises_completed=completed,
                total_exercises=total,
                completion_rate=(
                    round_half_up(completed / total * 100) if total else 0
                ),
            ),
        )


class CancelWorkoutSessionInput(SessionRefInput):
    reason: str | None = None


class CancelWorkoutSessionOutput(BaseModel):
    id: UUID
    status: SessionStatus
    cancelled_at: datetime
    total_duration_ms: int
    formatted_duration: str
    notes: str | None
    reason: str | None


class CancelWorkoutSession:
    def __init__(self, sessions: WorkoutSessionRepository, clock: Clock = utcnow):
        self.sessions = sessions
        self.clock = clock

    def execute(self, input: CancelWorkoutSessionInput) -> CancelWorkoutSessionOutput:
        _check_length(
            input.reason, MAX_CANCEL_REASON_LENGTH, "reason", "Cancellation reason"
        )
        session = _load_session(self.sessions, input.session_id, input.user_id)

        reason = _strip(input.reason)
        session.cancel(reason, now=self.clock())
        session = self.sessions.save(session)
        logger.bind(user_id=str(input.user_id), session_id=str(session.id)).info(
            "Workout session cancelled"
        )

        return CancelWorkoutSessionOutput(
            id=session.id,
            status=session.status,
            cancelled_at=session.cancelled_at,
            total_duration_ms=session.total_duration_ms,
            formatted_duration=session.get_formatted_duration(),
            notes=session.notes,
            reason=reason,
        )


# ========== Queries ==========


class SessionDetails(BaseModel):
    id: UUID
    workout_plan_id: UUID
    status: SessionStatus
    started_at: datetime
    paused_at: datetime | None
    resumed_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    total_duration_ms: int
    formatted_duration: str
    notes: str | None

    @classmethod
    def from_session(
        cls, session: WorkoutSession, now: datetime | None = None
    ) -> "SessionDetails":
        return cls(
            id=session.id,
            workout_plan_id=session.workout_plan_id,
            status=session.status,
            started_at=session.started_at,
            paused_at=session.paused_at,
            resumed_at=session.resumed_at,
            completed_at=session.completed_at,
            cancelled_at=session.cancelled_at,
            total_duration_ms=session.get_current_duration(now),
            formatted_duration=session.get_formatted_duration(now),
            notes=session.notes,
        )


class ListWorkoutSessionsInput(BaseModel):
    user_id: UUID
    page: int = 1
    limit: int = 10
    status: SessionStatus | None = None


class SessionPagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ListWorkoutSessionsOutput(BaseModel):
    sessions: list[SessionDetails]
    pagination: SessionPagination
    history_retention_days: int


class ListWorkoutSessions:
    """Page through a user's sessions, newest first.

    Sessions older than the user's history retention are left out.
    """

    def __init__(
        self,
        sessions: WorkoutSessionRepository,
        premium_source: PremiumStatusSource,
        limit_service: WorkoutLimitService,
        clock: Clock = utcnow,
    ):
        self.sessions = sessions
        self.premium_source = premium_source
        self.limit_service = limit_service
        self.clock = clock

    def execute(self, input: ListWorkoutSessionsInput) -> ListWorkoutSessionsOutput:
        if input.page < 1:
            raise WorkoutValidationError(
                "Page must be greater than 0", details={"field": "page"}
            )
        if input.limit < 1 or input.limit > MAX_PAGE_LIMIT:
            raise WorkoutValidationError(
                f"Limit must be between 1 and {MAX_PAGE_LIMIT}",
                details={"field": "limit"},
            )

        now = self.clock()
        is_premium = self.premium_source.check_status(input.user_id).is_premium
        retention = self.limit_service.get_limits_for_user(
            is_premium
        ).history_retention_days

        started_after = None
        if retention != UNLIMITED:
            # Retained while fewer than retention + 1 whole days old.
            started_after = now - timedelta(days=retention + 1)

        page = self.sessions.find_by_user_id(
            input.user_id,
            input.page,
            input.limit,
            status=input.status,
            started_after=started_after,
        )
        return ListWorkoutSessionsOutput(
            sessions=[SessionDetails.from_session(s, now) for s in page.items],
            pagination=SessionPagination(
                page=page.page,
                limit=page.limit,
                total=page.total,
                total_pages=page.total_pages,
            ),
            history_retention_days=retention,
        )


class GetActiveWorkoutSessionInput(BaseModel):
    user_id: UUID


class GetActiveWorkoutSessionOutput(BaseModel):
    session: SessionDetails | None
    session_info: SessionInfo | None


class GetActiveWorkoutSession:
    def __init__(self, sessions: WorkoutSessionRepository, clock: Clock = utcnow):
        self.sessions = sessions
        self.clock = clock

    def execute(
        self, input: GetActiveWorkoutSessionInput
    ) -> GetActiveWorkoutSessionOutput:
        session = self.sessions.find_active_by_user_id(input.user_id)
        if session is None:
            return GetActiveWorkoutSessionOutput(session=None, session_info=None)

        now = self.clock()
        return GetActiveWorkoutSessionOutput(
            session=SessionDetails.from_session(session, now),
            session_info=SessionInfo.from_session(session, now),
        )
