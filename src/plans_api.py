"""REST API endpoints for workout plans and their exercises."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth import AuthenticatedUser, get_or_create_user
from database import get_db
from dependencies import (
    get_clock,
    get_exercise_repository,
    get_limit_service,
    get_plan_repository,
    get_premium_source,
    get_session_repository,
)
from limits import WorkoutLimitService
from plan_usecases import (
    AddExerciseToWorkoutPlan,
    AddExerciseToWorkoutPlanInput,
    AddExerciseToWorkoutPlanOutput,
    CreateWorkoutPlan,
    CreateWorkoutPlanInput,
    CreateWorkoutPlanOutput,
    DeleteWorkoutPlan,
    DeleteWorkoutPlanInput,
    DeleteWorkoutPlanOutput,
    GetWorkoutPlanById,
    GetWorkoutPlanByIdInput,
    GetWorkoutPlanByIdOutput,
    ListExercisesByPlan,
    ListExercisesByPlanInput,
    ListExercisesByPlanOutput,
    ListWorkoutPlans,
    ListWorkoutPlansInput,
    ListWorkoutPlansOutput,
    PlanExercisesOutput,
    RemoveExerciseFromWorkoutPlan,
    RemoveExerciseInput,
    ReorderExercise,
    ReorderExerciseInput,
    UpdateWorkoutPlan,
    UpdateWorkoutPlanInput,
    UpdateWorkoutPlanOutput,
)
from ports import (
    ExerciseRepository,
    PremiumStatusSource,
    WorkoutPlanRepository,
    WorkoutSessionRepository,
)
from timeutils import Clock

router = APIRouter(prefix="/api/v1/workout-plans", tags=["workout-plans"])


class WorkoutPlanCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None


class WorkoutPlanUpdateRequest(BaseModel):
    """PATCH body. Only the fields that are sent are applied."""

    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ExerciseCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    target_muscle_group: Optional[str] = None
    sets: int = 3
    reps: int = 10
    rest_time_seconds: int = 60


class ExerciseReorderRequest(BaseModel):
    new_order: int


@router.post("", response_model=CreateWorkoutPlanOutput, status_code=201)
def create_workout_plan(
    request: WorkoutPlanCreateRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    premium_source: PremiumStatusSource = Depends(get_premium_source),
    limit_service: WorkoutLimitService = Depends(get_limit_service),
    clock: Clock = Depends(get_clock),
) -> CreateWorkoutPlanOutput:
    """Create a plan. Free users are limited to two active plans."""
    use_case = CreateWorkoutPlan(plans, premium_source, limit_service, clock)
    result = use_case.execute(
        CreateWorkoutPlanInput(user_id=user.user_id, **request.model_dump())
    )
    db.commit()
    return result


@router.get("", response_model=ListWorkoutPlansOutput)
def list_workout_plans(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    include_inactive: bool = False,
    user: AuthenticatedUser = Depends(get_or_create_user),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    premium_source: PremiumStatusSource = Depends(get_premium_source),
    limit_service: WorkoutLimitService = Depends(get_limit_service),
) -> ListWorkoutPlansOutput:
    """List the user's plans.

    Args:
        page: 1-based page number
        limit: Page size (1-100)
        search: Case-insensitive name filter; returns all matches at once
        include_inactive: Also list deactivated plans
    """
    use_case = ListWorkoutPlans(plans, premium_source, limit_service)
    return use_case.execute(
        ListWorkoutPlansInput(
            user_id=user.user_id,
            page=page,
            limit=limit,
            search=search,
            include_inactive=include_inactive,
        )
    )


@router.get("/{plan_id}", response_model=GetWorkoutPlanByIdOutput)
def get_workout_plan(
    plan_id: UUID,
    user: AuthenticatedUser = Depends(get_or_create_user),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    premium_source: PremiumStatusSource = Depends(get_premium_source),
    limit_service: WorkoutLimitService = Depends(get_limit_service),
) -> GetWorkoutPlanByIdOutput:
    use_case = GetWorkoutPlanById(plans, premium_source, limit_service)
    return use_case.execute(
        GetWorkoutPlanByIdInput(user_id=user.user_id, plan_id=plan_id)
    )


@router.patch("/{plan_id}", response_model=UpdateWorkoutPlanOutput)
def update_workout_plan(
    plan_id: UUID,
    request: WorkoutPlanUpdateRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    clock: Clock = Depends(get_clock),
) -> UpdateWorkoutPlanOutput:
    """Partially update a plan (name, description, active flag)."""
    # exclude_unset keeps "not sent" apart from an explicit null
    fields = request.model_dump(exclude_unset=True)
    result = UpdateWorkoutPlan(plans, clock).execute(
        UpdateWorkoutPlanInput(user_id=user.user_id, plan_id=plan_id, **fields)
    )
    db.commit()
    return result


@router.delete("/{plan_id}", response_model=DeleteWorkoutPlanOutput)
def delete_workout_plan(
    plan_id: UUID,
    force: bool = False,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    sessions: WorkoutSessionRepository = Depends(get_session_repository),
) -> DeleteWorkoutPlanOutput:
    """Delete a plan. Plans that still have exercises need ``force=true``."""
    result = DeleteWorkoutPlan(plans, sessions).execute(
        DeleteWorkoutPlanInput(user_id=user.user_id, plan_id=plan_id, force=force)
    )
    db.commit()
    return result


# ========== Exercises ==========


@router.post(
    "/{plan_id}/exercises",
    response_model=AddExerciseToWorkoutPlanOutput,
    status_code=201,
)
def add_exercise(
    plan_id: UUID,
    request: ExerciseCreateRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    exercises: ExerciseRepository = Depends(get_exercise_repository),
    premium_source: PremiumStatusSource = Depends(get_premium_source),
    limit_service: WorkoutLimitService = Depends(get_limit_service),
    clock: Clock = Depends(get_clock),
) -> AddExerciseToWorkoutPlanOutput:
    """Append an exercise to the end of an active plan."""
    use_case = AddExerciseToWorkoutPlan(
        plans, exercises, premium_source, limit_service, clock
    )
    result = use_case.execute(
        AddExerciseToWorkoutPlanInput(
            user_id=user.user_id, plan_id=plan_id, **request.model_dump()
        )
    )
    db.commit()
    return result


@router.get("/{plan_id}/exercises", response_model=ListExercisesByPlanOutput)
def list_exercises(
    plan_id: UUID,
    user: AuthenticatedUser = Depends(get_or_create_user),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    exercises: ExerciseRepository = Depends(get_exercise_repository),
) -> ListExercisesByPlanOutput:
    return ListExercisesByPlan(plans, exercises).execute(
        ListExercisesByPlanInput(user_id=user.user_id, plan_id=plan_id)
    )


@router.delete(
    "/{plan_id}/exercises/{exercise_id}", response_model=PlanExercisesOutput
)
def remove_exercise(
    plan_id: UUID,
    exercise_id: UUID,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    exercises: ExerciseRepository = Depends(get_exercise_repository),
    clock: Clock = Depends(get_clock),
) -> PlanExercisesOutput:
    result = RemoveExerciseFromWorkoutPlan(plans, exercises, clock).execute(
        RemoveExerciseInput(
            user_id=user.user_id, plan_id=plan_id, exercise_id=exercise_id
        )
    )
    db.commit()
    return result


@router.patch(
    "/{plan_id}/exercises/{exercise_id}/order", response_model=PlanExercisesOutput
)
def reorder_exercise(
    plan_id: UUID,
    exercise_id: UUID,
    request: ExerciseReorderRequest,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_or_create_user),
    plans: WorkoutPlanRepository = Depends(get_plan_repository),
    exercises: ExerciseRepository = Depends(get_exercise_repository),
    clock: Clock = Depends(get_clock),
) -> PlanExercisesOutput:
    """Move an exercise to ``new_order``; the rest shift to stay contiguous."""
    result = ReorderExercise(plans, exercises, clock).execute(
        ReorderExerciseInput(
            user_id=user.user_id,
            plan_id=plan_id,
            exercise_id=exercise_id,
            new_order=request.new_order,
        )
    )
    db.commit()
    return result
