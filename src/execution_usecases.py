"""Use-cases for performing exercises and their sets inside a session."""

from datetime import datetime
from uuid import UUID

from loguru import logger
from pydantic import BaseModel

from errors import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    WorkoutValidationError,
)
from exercise_execution import ExecutionStatus, ExerciseExecution
from ports import (
    ExerciseExecutionRepository,
    ExerciseRepository,
    SetRepository,
    WorkoutPlanRepository,
    WorkoutSessionRepository,
)
from progression import (
    Recommendations,
    exercise_recommendations,
    rest_time_recommendation,
    suggest_next_set_weight,
)
from timeutils import Clock, utcnow
from workout_set import MAX_SET_NUMBER, WorkoutSet, validate_weight

MAX_EXECUTION_NOTES_LENGTH = 500
MAX_SKIP_REASON_LENGTH = 200


def _load_execution(
    executions: ExerciseExecutionRepository, execution_id: UUID, user_id: UUID
) -> ExerciseExecution:
    execution = executions.find_by_id_and_user_id(execution_id, user_id)
    if execution is None:
        raise NotFoundError(
            "Exercise execution not found",
            details={"execution_id": str(execution_id)},
        )
    return execution


class SetInfo(BaseModel):
    id: UUID
    set_number: int
    planned_reps: int
    actual_reps: int | None
    weight: float | None
    is_completed: bool
    formatted_description: str

    @classmethod
    def from_set(cls, workout_set: WorkoutSet) -> "SetInfo":
        return cls(
            id=workout_set.id,
            set_number=workout_set.set_number,
            planned_reps=workout_set.planned_reps,
            actual_reps=workout_set.actual_reps,
            weight=workout_set.weight,
            is_completed=workout_set.is_completed(),
            formatted_description=workout_set.formatted_description(),
        )


# ========== Start ==========


class StartExerciseExecutionInput(BaseModel):
    user_id: UUID
    session_id: UUID
    exercise_id: UUID
    starting_weight: float | None = None


class ExecutionExercise(BaseModel):
    id: UUID
    name: str
    description: str | None
    target_muscle_group: str | None
    sets: int
    reps: int
    rest_time_seconds: int


class WeightSuggestions(BaseModel):
    recommended_weight: float | None
    last_weight: float | None
    last_reps: int | None


class StartExecutionInfo(BaseModel):
    can_complete: bool
    can_skip: bool
    total_sets: int
    completed_sets: int


class StartExerciseExecutionOutput(BaseModel):
    id: UUID
    exercise_id: UUID
    status: ExecutionStatus
    started_at: datetime
    exercise: ExecutionExercise
    sets: list[SetInfo]
    suggestions: WeightSuggestions
    execution_info: StartExecutionInfo


class StartExerciseExecution:
    """Start an exercise of the session's plan and lay out its planned sets.

    Every set is pre-filled with the recommended weight: the starting weight
    when given, otherwise the last weight the user lifted for this exercise.
    """

    def __init__(
        self,
        sessions: WorkoutSessionRepository,
        plans: WorkoutPlanRepository,
        executions: ExerciseExecutionRepository,
        sets: SetRepository,
        clock: Clock = utcnow,
    ):
        self.sessions = sessions
        self.plans = plans
        self.executions = executions
        self.sets = sets
        self.clock = clock

    def execute(
        self, input: StartExerciseExecutionInput
    ) -> StartExerciseExecutionOutput:
        validate_weight(input.starting_weight)

        session = self.sessions.find_by_id_and_user_id(input.session_id, input.user_id)
        if session is None:
            raise NotFoundError(
                "Workout session not found",
                details={"session_id": str(input.session_id)},
            )
        if not session.is_active():
            raise InvalidStateTransitionError(
                "Cannot start an exercise in an inactive workout session",
                details={"status": session.status.value, "action": "start_exercise"},
            )

        plan = self.plans.find_by_id(session.workout_plan_id)
        if plan is None:
            raise NotFoundError(
                "Workout plan not found",
                details={"plan_id": str(session.workout_plan_id)},
            )
        exercise = next((e for e in plan.exercises if e.id == input.exercise_id), None)
        if exercise is None:
            raise NotFoundError(
                "Exercise not found in the workout plan",
                details={"exercise_id": str(input.exercise_id)},
            )

        if self.executions.find_by_session_and_exercise(session.id, exercise.id):
            raise ConflictError(
                "Exercise has already been started in this session",
                details={"exercise_id": str(exercise.id)},
            )

        last_set = self.sets.find_last_by_exercise_and_user(exercise.id, input.user_id)
        last_weight = last_set.weight if last_set else None
        last_reps = last_set.actual_reps if last_set else None
        recommended_weight = input.starting_weight or last_weight or None

        now = self.clock()
        execution = ExerciseExecution(
            session_id=session.id,
            exercise_id=exercise.id,
            created_at=now,
            updated_at=now,
        )
        execution.start(now=now)
        for set_number in range(1, exercise.sets + 1):
            execution.add_set(
                WorkoutSet(
                    execution_id=execution.id,
                    set_number=set_number,
                    planned_reps=exercise.reps,
                    weight=recommended_weight,
                    created_at=now,
                    updated_at=now,
                ),
                now=now,
            )

        execution = self.executions.save(execution)
        self.sets.save_many(execution.sets)
        logger.bind(
            session_id=str(session.id),
            execution_id=str(execution.id),
            exercise_id=str(exercise.id),
        ).info("Exercise execution started")

        return StartExerciseExecutionOutput(
            id=execution.id,
            exercise_id=exercise.id,
            status=execution.status,
            started_at=execution.started_at,
            exercise=ExecutionExercise(
                id=exercise.id,
                name=exercise.name,
                description=exercise.description,
                target_muscle_group=exercise.target_muscle_group,
                sets=exercise.sets,
                reps=exercise.reps,
                rest_time_seconds=exercise.rest_time_seconds,
            ),
            sets=[SetInfo.from_set(s) for s in execution.get_ordered_sets()],
            suggestions=WeightSuggestions(
                recommended_weight=recommended_weight,
                last_weight=last_weight or None,
                last_reps=last_reps or None,
            ),
            execution_info=StartExecutionInfo(
                can_complete=execution.can_be_completed(),
                can_skip=execution.can_be_skipped(),
                total_sets=len(execution.sets),
                completed_sets=execution.get_completed_sets_count(),
            ),
        )


# ========== Complete set ==========


class CompleteSetInput(BaseModel):
    user_id: UUID
    execution_id: UUID
    set_number: int
    actual_reps: int
    weight: float | None = None
    rest_time_seconds: int | None = None
    notes: str | None = None


class SetPerformance(BaseModel):
    reps_difference: int
    completion_percentage: int
    volume: float
    was_successful: bool


class CompleteSetExecutionInfo(BaseModel):
    total_sets: int
    completed_sets: int
    remaining_sets: int
    can_complete_exercise: bool
    next_set_number: int | None


class SetSuggestions(BaseModel):
    next_set_weight: float | None
    rest_time_recommendation: str


class CompleteSetOutput(BaseModel):
    set_id: UUID
    set_number: int
    planned_reps: int
    actual_reps: int
    weight: float | None
    rest_time_seconds: int | None
    completed_at: datetime
    formatted_description: str
    performance: SetPerformance
    execution_info: CompleteSetExecutionInfo
    suggestions: SetSuggestions


class CompleteSet:
    """Record the reps (and optionally weight and rest) of one set."""

    def __init__(
        self,
        executions: ExerciseExecutionRepository,
        sets: SetRepository,
        clock: Clock = utcnow,
    ):
        self.executions = executions
        self.sets = sets
        self.clock = clock

    def execute(self, input: CompleteSetInput) -> CompleteSetOutput:
        if input.set_number < 1 or input.set_number > MAX_SET_NUMBER:
            raise WorkoutValidationError(
                f"Set number must be between 1 and {MAX_SET_NUMBER}",
                details={"field": "set_number", "value": input.set_number},
            )

        execution = _load_execution(self.executions, input.execution_id, input.user_id)
        if not execution.is_active():
            raise InvalidStateTransitionError(
                "Cannot complete a set of an exercise execution that is not in "
                "progress",
                details={"status": execution.status.value, "action": "complete_set"},
            )

        workout_set = execution.update_set(
            input.set_number,
            input.actual_reps,
            input.weight,
            input.notes,
            input.rest_time_seconds,
            now=self.clock(),
        )
        self.sets.save(workout_set)
        execution = self.executions.save(execution)

        stats = workout_set.get_stats()
        total = len(execution.sets)
        completed = execution.get_completed_sets_count()
        next_set = execution.next_incomplete_set()

        return CompleteSetOutput(
            set_id=workout_set.id,
            set_number=workout_set.set_number,
            planned_reps=workout_set.planned_reps,
            actual_reps=workout_set.actual_reps,
            weight=workout_set.weight,
            rest_time_seconds=workout_set.rest_time_seconds,
            completed_at=workout_set.completed_at,
            formatted_description=workout_set.formatted_description(),
            performance=SetPerformance(
                reps_difference=stats.reps_difference,
                completion_percentage=stats.completion_percentage,
                volume=stats.volume,
                was_successful=stats.was_successful,
            ),
            execution_info=CompleteSetExecutionInfo(
                total_sets=total,
                completed_sets=completed,
                remaining_sets=total - completed,
                can_complete_exercise=execution.are_all_sets_completed(),
                next_set_number=next_set.set_number if next_set else None,
            ),
            suggestions=SetSuggestions(
                next_set_weight=suggest_next_set_weight(
                    workout_set.weight,
                    workout_set.actual_reps,
                    workout_set.planned_reps,
                ),
                rest_time_recommendation=rest_time_recommendation(
                    workout_set.actual_reps, workout_set.planned_reps, input.weight
                ),
            ),
        )


# ========== Finish / Skip ==========


class FinishExerciseExecutionInput(BaseModel):
    user_id: UUID
    execution_id: UUID
    notes: str | None = None
    force_complete: bool = False


class ExerciseReference(BaseModel):
    id: UUID
    name: str
    target_muscle_group: str | None


class ExecutionPerformance(BaseModel):
    total_sets: int
    completed_sets: int
    skipped_sets: int
    completion_rate: int
    total_reps: int
    average_weight: float | None
    total_volume: float


class FinishExerciseExecutionOutput(BaseModel):
    id: UUID
    exercise_id: UUID
    status: ExecutionStatus
    completed_at: datetime
    total_duration_ms: int
    formatted_duration: str
    notes: str | None
    exercise: ExerciseReference | None
    performance: ExecutionPerformance
    sets: list[SetInfo]
    recommendations: Recommendations


class FinishExerciseExecution:
    """Complete an execution. Unfinished sets need ``force_complete``."""

    def __init__(
        self,
        executions: ExerciseExecutionRepository,
        exercises: ExerciseRepository,
        clock: Clock = utcnow,
    ):
        self.executions = executions
        self.exercises = exercises
        self.clock = clock

    def execute(
        self, input: FinishExerciseExecutionInput
    ) -> FinishExerciseExecutionOutput:
        if input.notes is not None and len(input.notes) > MAX_EXECUTION_NOTES_LENGTH:
            raise WorkoutValidationError(
                f"Notes must be at most {MAX_EXECUTION_NOTES_LENGTH} characters",
                details={"field": "notes"},
            )

        execution = _load_execution(self.executions, input.execution_id, input.user_id)
        if not execution.is_active():
            raise InvalidStateTransitionError(
                "Exercise execution is not in progress",
                details={"status": execution.status.value, "action": "complete"},
            )

        if not execution.are_all_sets_completed() and not input.force_complete:
            completed = execution.get_completed_sets_count()
            total = len(execution.sets)
            raise InvalidStateTransitionError(
                f"Not every set has been completed ({completed}/{total}). "
                "Use force_complete=true to finish anyway.",
                details={"completed_sets": completed, "total_sets": total},
            )

        notes = input.notes.strip() if input.notes else None
        execution.complete(notes or None, now=self.clock())
        execution = self.executions.save(execution)

        sets = execution.get_ordered_sets()
        summary = execution.get_summary()
        total_volume = sum(s.get_volume() for s in sets)
        duration_ms = execution.get_total_duration_ms()

        exercise = self.exercises.find_by_id(execution.exercise_id)
        logger.bind(
            execution_id=str(execution.id),
            completed_sets=summary.completed_sets,
            total_sets=summary.total_sets,
        ).info("Exercise execution finished")

        return FinishExerciseExecutionOutput(
            id=execution.id,
            exercise_id=execution.exercise_id,
            status=execution.status,
            completed_at=execution.completed_at,
            total_duration_ms=duration_ms,
            formatted_duration=execution.get_formatted_duration(),
            notes=execution.notes,
            exercise=(
                ExerciseReference(
                    id=exercise.id,
                    name=exercise.name,
                    target_muscle_group=exercise.target_muscle_group,
                )
                if exercise
                else None
            ),
            performance=ExecutionPerformance(
                total_sets=summary.total_sets,
                completed_sets=summary.completed_sets,
                skipped_sets=summary.total_sets - summary.completed_sets,
                completion_rate=summary.completion_rate,
                total_reps=summary.total_reps,
                average_weight=summary.average_weight,
                total_volume=total_volume,
            ),
            sets=[SetInfo.from_set(s) for s in sets],
            recommendations=exercise_recommendations(sets, duration_ms),
        )


class SkipExerciseExecutionInput(BaseModel):
    user_id: UUID
    execution_id: UUID
    reason: str | None = None


class SkipExerciseExecutionOutput(BaseModel):
    id: UUID
    exercise_id: UUID
    status: ExecutionStatus
    completed_at: datetime
    notes: str | None
    completed_sets: int
    total_sets: int


class SkipExerciseExecution:
    def __init__(self, executions: ExerciseExecutionRepository, clock: Clock = utcnow):
        self.executions = executions
        self.clock = clock

    def execute(self, input: SkipExerciseExecutionInput) -> SkipExerciseExecutionOutput:
        if input.reason is not None and len(input.reason) > MAX_SKIP_REASON_LENGTH:
            raise WorkoutValidationError(
                f"Skip reason must be at most {MAX_SKIP_REASON_LENGTH} characters",
                details={"field": "reason"},
            )

        execution = _load_execution(self.executions, input.execution_id, input.user_id)
        reason = input.reason.strip() if input.reason else None
        execution.skip(reason or None, now=self.clock())
        execution = self.executions.save(execution)

        return SkipExerciseExecutionOutput(
            id=execution.id,
            exercise_id=execution.exercise_id,
            status=execution.status,
            completed_at=execution.completed_at,
            notes=execution.notes,
            completed_sets=execution.get_completed_sets_count(),
            total_sets=len(execution.sets),
        )
