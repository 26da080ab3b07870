"""REST API endpoints for exercise executions and their sets."""

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
    get_exercise_repository,
    get_plan_repository,
    get_session_repository,
    get_set_repository,
)
from execution_usecases import (
    CompleteSet,
    CompleteSetInput,
    CompleteSetOutput,
    FinishExerciseExecution,
    FinishExerciseExecutionInput,
    FinishExerciseExecutionOutput,
    SkipExerciseExecution,
    SkipExerciseExecutionInput,
    SkipExerciseExecutionOutput,
    StartExerciseExecution,
    StartExerciseExecutionInput,
    StartExerciseExecutionOutput,
)
from ports import (
    ExerciseExecutionRepository,
    ExerciseRepository,
    SetRepository,
    WorkoutPlanRepository,
    WorkoutSessionRepository,
)
from timeutils import Clock

router = APIRouter(prefix="/api/v1/exercise-executions", tags=["exercise-executions"])


class ExecutionStartRequest(BaseModel):
    session_id: UUID
    exercise_id: UUID
    starting_weight: Optional[float] = None


class SetCompleteRequest(BaseModel):
    actual_reps: int
    weight: Optional[float] = None
    rest_time_seconds: Optional[int] = None
    notes: Optional[str] = None


class ExecutionFinishRequest(BaseModel):
    notes: Optional[str] = None
    force_complete: bool = False


class ExecutionSkipRequest(BaseModel):
    reason: Optional[str] = None


@router.post("", response_model=StartExerciseExecutionOutput, status_code=201)
def start_execution(
    request: ExecutionStartRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    sessions: WorkoutSessionRepository = Depends(get_session_repository),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    executions: ExerciseExecutionRepository = Depends(get_execution_repository),
    sets: SetRepository = Depends(get_set_repository),
    clock: Clock = Depends(get_clock),
) -> StartExerciseExecutionOutput:
    """Start an exercise of the active session and create its planned sets."""
    use_case = StartExerciseExecution(sessions, plans, executions, sets, clock)
    result = use_case.execute(
        StartExerciseExecutionInput(user_id=user.user_id, **request.model_dump())
    )
    db.commit()
    return result


@router.post(
    "/{execution_id}/sets/{set_number}/complete", response_model=CompleteSetOutput
)
def complete_set(
    execution_id: UUID,
    set_number: int,
    request: SetCompleteRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    executions: ExerciseExecutionRepository = Depends(get_execution_repository),
    sets: SetRepository = Depends(get_set_repository),
    clock: Clock = Depends(get_clock),
) -> CompleteSetOutput:
    """Record a performed set and get the suggested weight for the next one."""
    result = CompleteSet(executions, sets, clock).execute(
        CompleteSetInput(
            user_id=user.user_id,
            execution_id=execution_id,
            set_number=set_number,
            **request.model_dump(),
        )
    )
    db.commit()
    return result


@router.post("/{execution_id}/finish", response_model=FinishExerciseExecutionOutput)
def finish_execution(
    execution_id: UUID,
    request: Optional[ExecutionFinishRequest] = None,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    executions: ExerciseExecutionRepository = Depends(get_execution_repository),
    exercises: ExerciseRepository = Depends(get_exercise_repository),
    clock: Clock = Depends(get_clock),
) -> FinishExerciseExecutionOutput:
    request = request or ExecutionFinishRequest()
    result = FinishExerciseExecution(executions, exercises, clock).execute(
        FinishExerciseExecutionInput(
            user_id=user.user_id,
            execution_id=execution_id,
            notes=request.notes,
            force_complete=request.force_complete,
        )
    )
    db.commit()
    return result


@router.post("/{execution_id}/skip", response_model=SkipExerciseExecutionOutput)
def skip_execution(
    execution_id: UUID,
    request: Optional[ExecutionSkipRequest] = None,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    executions: ExerciseExecutionRepository = Depends(get_execution_repository),
    clock: Clock = Depends(get_clock),
) -> SkipExerciseExecutionOutput:
    result = SkipExerciseExecution(executions, clock).execute(
        SkipExerciseExecutionInput(
            user_id=user.user_id,
            execution_id=execution_id,
            reason=request.reason if request else None,
        )
    )
    db.commit()
    return result
