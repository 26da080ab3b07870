"""Use-cases for managing workout plans and their exercises."""

from datetime import datetime
from uuid import UUID

from loguru import logger
from pydantic import BaseModel

from errors import (
    ConflictError,
    DuplicateNameError,
    LimitExceededError,
    NotFoundError,
    WorkoutValidationError,
)
from limits import WorkoutLimitService
from plans import (
    Exercise,
    WorkoutPlan,
    validate_description,
    validate_name,
    validate_prescription,
)
from ports import (
    ExerciseRepository,
    PremiumStatusSource,
    WorkoutPlanRepository,
    WorkoutSessionRepository,
)
from timeutils import Clock, round_half_up, utcnow

MAX_PAGE_LIMIT = 100
MAX_SEARCH_LENGTH = 100


def _clean(text: str | None) -> str | None:
    """Strip ``text`` and collapse blank strings to None."""
    if text is None:
        return None
    return text.strip() or None


class ExerciseDetails(BaseModel):
    id: UUID
    name: str
    description: str | None
    target_muscle_group: str | None
    sets: int
    reps: int
    rest_time_seconds: int
    order: int
    estimated_duration_seconds: int
    formatted_description: str

    @classmethod
    def from_exercise(cls, exercise: Exercise) -> "ExerciseDetails":
        return cls(
            id=exercise.id,
            name=exercise.name,
            description=exercise.description,
            target_muscle_group=exercise.target_muscle_group,
            sets=exercise.sets,
            reps=exercise.reps,
            rest_time_seconds=exercise.rest_time_seconds,
            order=exercise.order,
            estimated_duration_seconds=exercise.estimated_duration_seconds(),
            formatted_description=exercise.formatted_description(),
        )


def _load_plan(
    plans: WorkoutPlanRepository, plan_id: UUID, user_id: UUID
) -> WorkoutPlan:
    plan = plans.find_by_id_and_user_id(plan_id, user_id)
    if plan is None:
        raise NotFoundError(
            "Workout plan not found", details={"plan_id": str(plan_id)}
        )
    return plan


# ========== Create ==========


class CreateWorkoutPlanInput(BaseModel):
    user_id: UUID
    name: str
    description: str | None = None


class PlanLimitsInfo(BaseModel):
    current: int
    limit: int
    can_create_more: bool


class CreateWorkoutPlanOutput(BaseModel):
    id: UUID
    name: str
    description: str | None
    is_active: bool
    created_at: datetime
    exercise_count: int
    limits_info: PlanLimitsInfo


class CreateWorkoutPlan:
    """Create a plan, enforcing the plan limit and unique names per user."""

    def __init__(
        self,
        plans: WorkoutPlanRepository,
        premium_source: PremiumStatusSource,
        limit_service: WorkoutLimitService,
        clock: Clock = utcnow,
    ):
        self.plans = plans
        self.premium_source = premium_source
        self.limit_service = limit_service
        self.clock = clock

    def execute(self, input: CreateWorkoutPlanInput) -> CreateWorkoutPlanOutput:
        name = validate_name(input.name, "Workout plan name")
        validate_description(input.description)

        is_premium = self.premium_source.check_status(input.user_id).is_premium
        current = self.plans.count_active_by_user_id(input.user_id)

        result = self.limit_service.validate_can_create_workout_plan(
            current, is_premium
        )
        if not result.is_valid:
            raise LimitExceededError(result)

        if self.plans.exists_by_name_and_user_id(name, input.user_id):
            raise DuplicateNameError(
                f'A workout plan named "{name}" already exists',
                details={"name": name},
            )

        now = self.clock()
        plan = WorkoutPlan(
            user_id=input.user_id,
            name=name,
            description=_clean(input.description),
            created_at=now,
            updated_at=now,
        )
        plan = self.plans.save(plan)
        logger.bind(user_id=str(input.user_id), plan_id=str(plan.id)).info(
            "Workout plan created"
        )

        new_count = current + 1
        limits = self.limit_service.get_limits_for_user(is_premium)
        return CreateWorkoutPlanOutput(
            id=plan.id,
            name=plan.name,
            description=plan.description,
            is_active=plan.is_active,
            created_at=plan.created_at,
            exercise_count=len(plan.exercises),
            limits_info=PlanLimitsInfo(
                current=new_count,
                limit=limits.max_workout_plans,
                can_create_more=limits.can_create_workout_plan(new_count),
            ),
        )


# ========== Update ==========


class UpdateWorkoutPlanInput(BaseModel):
    """Partial update; only fields that were explicitly set are applied."""

    user_id: UUID
    plan_id: UUID
    name: str | None = None
    description: str | None = None
    is_active: bool | None = None


class UpdateWorkoutPlanOutput(BaseModel):
    id: UUID
    name: str
    description: str | None
    is_active: bool
    exercise_count: int
    updated_at: datetime


class UpdateWorkoutPlan:
    def __init__(self, plans: WorkoutPlanRepository, clock: Clock = utcnow):
        self.plans = plans
        self.clock = clock

    def _validate_input(self, input: UpdateWorkoutPlanInput) -> set[str]:
        fields = input.model_fields_set & {"name", "description", "is_active"}
        if not fields:
            raise WorkoutValidationError(
                "At least one field must be provided for update"
            )
        if "name" in fields:
            validate_name(input.name, "Workout plan name")
        if "is_active" in fields and input.is_active is None:
            raise WorkoutValidationError(
                "is_active cannot be null", details={"field": "is_active"}
            )
        validate_description(input.description)
        return fields

    def execute(self, input: UpdateWorkoutPlanInput) -> UpdateWorkoutPlanOutput:
        fields = self._validate_input(input)
        plan = _load_plan(self.plans, input.plan_id, input.user_id)
        now = self.clock()

        name = plan.name
        if "name" in fields:
            name = input.name.strip()
            renamed = name.lower() != plan.name.lower()
            if renamed and self.plans.exists_by_name_and_user_id(
                name, input.user_id, exclude_id=plan.id
            ):
                raise DuplicateNameError(
                    f'A workout plan named "{name}" already exists',
                    details={"name": name},
                )

        description = plan.description
        if "description" in fields:
            description = _clean(input.description)

        plan.update(name, description, now=now)

        if "is_active" in fields:
            if input.is_active:
                plan.activate(now=now)
            else:
                plan.deactivate(now=now)

        plan = self.plans.save(plan)
        return UpdateWorkoutPlanOutput(
            id=plan.id,
            name=plan.name,
            description=plan.description,
            is_active=plan.is_active,
            exercise_count=len(plan.exercises),
            updated_at=plan.updated_at,
        )


# ========== Delete ==========


class DeleteWorkoutPlanInput(BaseModel):
    user_id: UUID
    plan_id: UUID
    force: bool = False


class DeleteWorkoutPlanOutput(BaseModel):
    success: bool
    message: str
    deleted_plan_name: str


class DeleteWorkoutPlan:
    """Delete a plan. Plans with exercises need ``force``."""

    def __init__(
        self, plans: WorkoutPlanRepository, sessions: WorkoutSessionRepository
    ):
        self.plans = plans
        self.sessions = sessions

    def execute(self, input: DeleteWorkoutPlanInput) -> DeleteWorkoutPlanOutput:
        plan = _load_plan(self.plans, input.plan_id, input.user_id)

        if self.sessions.has_active_session_for_plan(plan.id):
            raise ConflictError(
                "Cannot delete a workout plan with an active workout session",
                details={"plan_id": str(plan.id)},
            )

        if plan.exercises and not input.force:
            raise ConflictError(
                "Cannot delete a workout plan that has exercises. "
                "Use force=true to delete it anyway.",
                details={
                    "plan_id": str(plan.id),
                    "exercise_count": len(plan.exercises),
                },
            )

        self.plans.delete(plan.id)
        logger.bind(user_id=str(input.user_id), plan_id=str(plan.id)).info(
            "Workout plan deleted"
        )
        return DeleteWorkoutPlanOutput(
            success=True,
            message=f'Workout plan "{plan.name}" was deleted',
            deleted_plan_name=plan.name,
        )


# ========== Read ==========


class GetWorkoutPlanByIdInput(BaseModel):
    user_id: UUID
    plan_id: UUID


class ExerciseLimitsInfo(BaseModel):
    can_add_more_exercises: bool
    exercise_limit: int
    current_exercise_count: int
    is_premium: bool


class GetWorkoutPlanByIdOutput(BaseModel):
    id: UUID
    name: str
    description: str | None
    is_active: bool
    exercise_count: int
    created_at: datetime
    updated_at: datetime
    exercises: list[ExerciseDetails]
    estimated_total_duration_minutes: int
    limits_info: ExerciseLimitsInfo


class GetWorkoutPlanById:
    def __init__(
        self,
        plans: WorkoutPlanRepository,
        premium_source: PremiumStatusSource,
        limit_service: WorkoutLimitService,
    ):
        self.plans = plans
        self.premium_source = premium_source
        self.limit_service = limit_service

    def execute(self, input: GetWorkoutPlanByIdInput) -> GetWorkoutPlanByIdOutput:
        plan = _load_plan(self.plans, input.plan_id, input.user_id)
        is_premium = self.premium_source.check_status(input.user_id).is_premium
        limits = self.limit_service.get_limits_for_user(is_premium)
        count = len(plan.exercises)

        return GetWorkoutPlanByIdOutput(
            id=plan.id,
            name=plan.name,
            description=plan.description,
            is_active=plan.is_active,
            exercise_count=count,
            created_at=plan.created_at,
            updated_at=plan.updated_at,
            exercises=[
                ExerciseDetails.from_exercise(e) for e in plan.get_ordered_exercises()
            ],
            estimated_total_duration_minutes=plan.estimated_duration_minutes(),
            limits_info=ExerciseLimitsInfo(
                can_add_more_exercises=limits.can_add_exercise(count),
                exercise_limit=limits.max_exercises_per_plan,
                current_exercise_count=count,
                is_premium=is_premium,
            ),
        )


class ListWorkoutPlansInput(BaseModel):
    user_id: UUID
    page: int = 1
    limit: int = 10
    search: str | None = None
    include_inactive: bool = False


class WorkoutPlanSummary(BaseModel):
    id: UUID
    name: str
    description: str | None
    is_active: bool
    exercise_count: int
    created_at: datetime
    updated_at: datetime
    estimated_duration_minutes: int


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ListLimitsInfo(PlanLimitsInfo):
    is_premium: bool


class ListWorkoutPlansOutput(BaseModel):
    plans: list[WorkoutPlanSummary]
    pagination: Pagination
    limits_info: ListLimitsInfo


class ListWorkoutPlans:
    """List a user's plans, either paginated or filtered by a name search.

    A search returns every match on a single page.
    """

    def __init__(
        self,
        plans: WorkoutPlanRepository,
        premium_source: PremiumStatusSource,
        limit_service: WorkoutLimitService,
    ):
        self.plans = plans
        self.premium_source = premium_source
        self.limit_service = limit_service

    def _validate_input(self, input: ListWorkoutPlansInput) -> None:
        if input.page < 1:
            raise WorkoutValidationError(
                "Page must be greater than 0", details={"field": "page"}
            )
        if input.limit < 1 or input.limit > MAX_PAGE_LIMIT:
            raise WorkoutValidationError(
                f"Limit must be between 1 and {MAX_PAGE_LIMIT}",
                details={"field": "limit"},
            )
        if input.search and len(input.search) > MAX_SEARCH_LENGTH:
            raise WorkoutValidationError(
                f"Search term must be at most {MAX_SEARCH_LENGTH} characters",
                details={"field": "search"},
            )

    def execute(self, input: ListWorkoutPlansInput) -> ListWorkoutPlansOutput:
        self._validate_input(input)
        is_premium = self.premium_source.check_status(input.user_id).is_premium

        search = _clean(input.search)
        if search:
            plans = self.plans.search_by_name(input.user_id, search)
            total = len(plans)
        else:
            page = self.plans.find_by_user_id(
                input.user_id, input.page, input.limit, input.include_inactive
            )
            plans = page.items
            total = page.total

        limits = self.limit_service.get_limits_for_user(is_premium)
        current = self.plans.count_active_by_user_id(input.user_id)

        return ListWorkoutPlansOutput(
            plans=[
                WorkoutPlanSummary(
                    id=plan.id,
                    name=plan.name,
                    description=plan.description,
                    is_active=plan.is_active,
                    exercise_count=len(plan.exercises),
                    created_at=plan.created_at,
                    updated_at=plan.updated_at,
                    estimated_duration_minutes=plan.estimated_duration_minutes(),
                )
                for plan in plans
            ],
            pagination=Pagination(
                page=input.page,
                limit=input.limit,
                total=total,
                total_pages=-(-total // input.limit),
            ),
            limits_info=ListLimitsInfo(
                current=current,
                limit=limits.max_workout_plans,
                can_create_more=limits.can_create_workout_plan(current),
                is_premium=is_premium,
            ),
        )


# ========== Exercises ==========


class AddExerciseToWorkoutPlanInput(BaseModel):
    user_id: UUID
    plan_id: UUID
    name: str
    description: str | None = None
    target_muscle_group: str | None = None
    sets: int = 3
    reps: int = 10
    rest_time_seconds: int = 60


class PlanInfo(BaseModel):
    id: UUID
    name: str
    exercise_count: int
    can_add_more: bool


class AddExerciseToWorkoutPlanOutput(ExerciseDetails):
    plan_info: PlanInfo


class AddExerciseToWorkoutPlan:
    """Append an exercise to an active plan, enforcing the exercise limit."""

    def __init__(
        self,
        plans: WorkoutPlanRepository,
        exercises: ExerciseRepository,
        premium_source: PremiumStatusSource,
        limit_service: WorkoutLimitService,
        clock: Clock = utcnow,
    ):
        self.plans = plans
        self.exercises = exercises
        self.premium_source = premium_source
        self.limit_service = limit_service
        self.clock = clock

    def _validate_input(self, input: AddExerciseToWorkoutPlanInput) -> str:
        name = validate_name(input.name, "Exercise name")
        validate_description(input.description)
        validate_prescription(
            input.sets, input.reps, input.rest_time_seconds, input.target_muscle_group
        )
        return name

    def execute(
        self, input: AddExerciseToWorkoutPlanInput
    ) -> AddExerciseToWorkoutPlanOutput:
        name = self._validate_input(input)
        plan = _load_plan(self.plans, input.plan_id, input.user_id)

        if not plan.is_active:
            raise ConflictError(
                "Cannot add exercises to an inactive workout plan",
                details={"plan_id": str(plan.id)},
            )

        is_premium = self.premium_source.check_status(input.user_id).is_premium
        current = self.exercises.count_by_workout_plan_id(plan.id)
        result = self.limit_service.validate_can_add_exercise(current, is_premium)
        if not result.is_valid:
            raise LimitExceededError(result)

        if self.exercises.exists_by_name_and_workout_plan_id(name, plan.id):
            raise DuplicateNameError(
                f'An exercise named "{name}" already exists in this workout plan',
                details={"name": name},
            )

        now = self.clock()
        exercise = Exercise(
            workout_plan_id=plan.id,
            name=name,
            description=_clean(input.description),
            target_muscle_group=_clean(input.target_muscle_group),
            sets=input.sets,
            reps=input.reps,
            rest_time_seconds=input.rest_time_seconds,
            order=plan.next_exercise_order(),
            created_at=now,
            updated_at=now,
        )
        plan.add_exercise(exercise, now=now)
        exercise = self.exercises.save(exercise)
        plan = self.plans.save(plan)

        new_count = current + 1
        limits = self.limit_service.get_limits_for_user(is_premium)
        return AddExerciseToWorkoutPlanOutput(
            **ExerciseDetails.from_exercise(exercise).model_dump(),
            plan_info=PlanInfo(
                id=plan.id,
                name=plan.name,
                exercise_count=new_count,
                can_add_more=limits.can_add_exercise(new_count),
            ),
        )


class ListExercisesByPlanInput(BaseModel):
    user_id: UUID
    plan_id: UUID


class ExerciseListItem(ExerciseDetails):
    created_at: datetime
    updated_at: datetime


class ExercisePlanInfo(BaseModel):
    id: UUID
    name: str
    description: str | None
    is_active: bool
    total_exercises: int
    estimated_total_duration_minutes: int


class ExerciseListSummary(BaseModel):
    total_sets: int
    average_rest_time: int
    muscle_groups: list[str]


class ListExercisesByPlanOutput(BaseModel):
    exercises: list[ExerciseListItem]
    plan_info: ExercisePlanInfo
    summary: ExerciseListSummary


class ListExercisesByPlan:
    def __init__(self, plans: WorkoutPlanRepository, exercises: ExerciseRepository):
        self.plans = plans
        self.exercises = exercises

    def execute(self, input: ListExercisesByPlanInput) -> ListExercisesByPlanOutput:
        plan = _load_plan(self.plans, input.plan_id, input.user_id)
        exercises = self.exercises.find_by_workout_plan_id(plan.id)

        average_rest = (
            round_half_up(sum(e.rest_time_seconds for e in exercises) / len(exercises))
            if exercises
            else 0
        )
        muscle_groups = sorted(
            {e.target_muscle_group for e in exercises if e.target_muscle_group}
        )

        return ListExercisesByPlanOutput(
            exercises=[
                ExerciseListItem(
                    **ExerciseDetails.from_exercise(e).model_dump(),
                    created_at=e.created_at,
                    updated_at=e.updated_at,
                )
                for e in exercises
            ],
            plan_info=ExercisePlanInfo(
                id=plan.id,
                name=plan.name,
                description=plan.description,
                is_active=plan.is_active,
                total_exercises=len(exercises),
                estimated_total_duration_minutes=plan.estimated_duration_minutes(),
            ),
            summary=ExerciseListSummary(
                total_sets=sum(e.sets for e in exercises),
                average_rest_time=average_rest,
                muscle_groups=muscle_groups,
            ),
        )


class RemoveExerciseInput(BaseModel):
    user_id: UUID
    plan_id: UUID
    exercise_id: UUID


class ReorderExerciseInput(BaseModel):
    user_id: UUID
    plan_id: UUID
    exercise_id: UUID
    new_order: int


class PlanExercisesOutput(BaseModel):
    plan_id: UUID
    exercise_count: int
    exercises: list[ExerciseDetails]


def _plan_exercises_output(plan: WorkoutPlan) -> PlanExercisesOutput:
    return PlanExercisesOutput(
        plan_id=plan.id,
        exercise_count=len(plan.exercises),
        exercises=[
            ExerciseDetails.from_exercise(e) for e in plan.get_ordered_exercises()
        ],
    )


class RemoveExerciseFromWorkoutPlan:
    """Remove an exercise and close the gap in the remaining order."""

    def __init__(
        self,
        plans: WorkoutPlanRepository,
        exercises: ExerciseRepository,
        clock: Clock = utcnow,
    ):
        self.plans = plans
        self.exercises = exercises
        self.clock = clock

    def execute(self, input: RemoveExerciseInput) -> PlanExercisesOutput:
        plan = _load_plan(self.plans, input.plan_id, input.user_id)
        plan.remove_exercise(input.exercise_id, now=self.clock())

        self.exercises.delete(input.exercise_id)
        self.exercises.update_orders(plan.exercises)
        plan = self.plans.save(plan)
        return _plan_exercises_output(plan)


class ReorderExercise:
    """Move one exercise to ``new_order`` and persist every new position."""

    def __init__(
        self,
        plans: WorkoutPlanRepository,
        exercises: ExerciseRepository,
        clock: Clock = utcnow,
    ):
        self.plans = plans
        self.exercises = exercises
        self.clock = clock

    def execute(self, input: ReorderExerciseInput) -> PlanExercisesOutput:
        plan = _load_plan(self.plans, input.plan_id, input.user_id)
        plan.update_exercise_order(input.exercise_id, input.new_order, now=self.clock())

        self.exercises.update_orders(plan.exercises)
        plan = self.plans.save(plan)
        return _plan_exercises_output(plan)
