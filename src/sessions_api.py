"""REST API endpoints for workout sessions."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth import AuthenticatedUser, get_or_create_user
from database import get_db
from dependencies import (
    get_clock,
    get_execution_repository,
    get_limit_service,
    get_plan_repository,
    get_premium_source,
    get_session_repository,
)
from limits import WorkoutLimitService
from ports import (
    ExerciseExecutionRepository,
    PremiumStatusSource,
    WorkoutPlanRepository,
    WorkoutSessionRepository,
)
from session_usecases import (
    CancelWorkoutSession,
    CancelWorkoutSessionInput,
    CancelWorkoutSessionOutput,
    CompleteWorkoutSession,
    CompleteWorkoutSessionInput,
    CompleteWorkoutSessionOutput,
    GetActiveWorkoutSession,
    GetActiveWorkoutSessionInput,
    GetActiveWorkoutSessionOutput,
    ListWorkoutSessions,
    ListWorkoutSessionsInput,
    ListWorkoutSessionsOutput,
    PauseWorkoutSession,
    ResumeWorkoutSession,
    SessionRefInput,
    SessionStateOutput,
    StartWorkoutSession,
    StartWorkoutSessionInput,
    StartWorkoutSessionOutput,
)
from timeutils import Clock
from workout_session import SessionStatus

router = APIRouter(prefix="/api/v1/workout-sessions", tags=["workout-sessions"])


class SessionStartRequest(BaseModel):
    workout_plan_id: UUID
    notes: Optional[str] = None


class SessionCompleteRequest(BaseModel):
    notes: Optional[str] = None


class SessionCancelRequest(BaseModel):
    reason: Optional[str] = None


@router.post("", response_model=StartWorkoutSessionOutput, status_code=201)
def start_session(
    request: SessionStartRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    sessions: WorkoutSessionRepository = Depends(get_session_repository),
    clock: Clock = Depends(get_clock),
) -> StartWorkoutSessionOutput:
    """Start working through a plan. Only one session may be active at a time."""
    result = StartWorkoutSession(plans, sessions, clock).execute(
        StartWorkoutSessionInput(user_id=user.user_id, **request.model_dump())
    )
    db.commit()
    return result


@router.get("", response_model=ListWorkoutSessionsOutput)
def list_sessions(
    page: int = 1,
    limit: int = 10,
    status: Optional[SessionStatus] = None,
    user: AuthenticatedUser = Depends(get_or_create_user),
    sessions: WorkoutSessionRepository = Depends(get_session_repository),
    premium_source: PremiumStatusSource = Depends(get_premium_source),
    limit_service: WorkoutLimitService = Depends(get_limit_service),
    clock: Clock = Depends(get_clock),
) -> ListWorkoutSessionsOutput:
    """List sessions newest first, within the user's history retention."""
    use_case = ListWorkoutSessions(sessions, premium_source, limit_service, clock)
    return use_case.execute(
        ListWorkoutSessionsInput(
            user_id=user.user_id, page=page, limit=limit, status=status
        )
    )


@router.get("/active", response_model=GetActiveWorkoutSessionOutput)
def get_active_session(
    user: AuthenticatedUser = Depends(get_or_create_user),
    sessions: WorkoutSessionRepository = Depends(get_session_repository),
    clock: Clock = Depends(get_clock),
) -> GetActiveWorkoutSessionOutput:
    return GetActiveWorkoutSession(sessions, clock).execute(
        GetActiveWorkoutSessionInput(user_id=user.user_id)
    )


@router.post("/{session_id}/pause", response_model=SessionStateOutput)
def pause_session(
    session_id: UUID,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    sessions: WorkoutSessionRepository = Depends(get_session_repository),
    clock: Clock = Depends(get_clock),
) -> SessionStateOutput:
    result = PauseWorkoutSession(sessions, clock).execute(
        SessionRefInput(user_id=user.user_id, session_id=session_id)
    )
    db.commit()
    return result


@router.post("/{session_id}/resume", response_model=SessionStateOutput)
def resume_session(
    session_id: UUID,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    sessions: WorkoutSessionRepository = Depends(get_session_repository),
    clock: Clock = Depends(get_clock),
) -> SessionStateOutput:
    result = ResumeWorkoutSession(sessions, clock).execute(
        SessionRefInput(user_id=user.user_id, session_id=session_id)
    )
    db.commit()
    return result


@router.post("/{session_id}/complete", response_model=CompleteWorkoutSessionOutput)
def complete_session(
    session_id: UUID,
    request: Optional[SessionCompleteRequest] = None,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    sessions: WorkoutSessionRepository = Depends(get_session_repository),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    executions: ExerciseExecutionRepository = Depends(get_execution_repository),
    clock: Clock = Depends(get_clock),
) -> CompleteWorkoutSessionOutput:
    use_case = CompleteWorkoutSession(sessions, plans, executions, clock)
    result = use_case.execute(
        CompleteWorkoutSessionInput(
            user_id=user.user_id,
            session_id=session_id,
            notes=request.notes if request else None,
        )
    )
    db.commit()
    return result


@router.post("/{session_id}/cancel", response_model=CancelWorkoutSessionOutput)
def cancel_session(
    session_id: UUID,
    request: Optional[SessionCancelRequest] = None,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    sessions: WorkoutSessionRepository = Depends(get_session_repository),
    clock: Clock = Depends(get_clock),
) -> CancelWorkoutSessionOutput:
    result = CancelWorkoutSession(sessions, clock).execute(
        CancelWorkoutSessionInput(
            user_id=user.user_id,
            session_id=session_id,
            reason=request.reason if request else None,
        )
    )
    db.commit()
    return result
