"""FastAPI dependencies that wire repositories and services to a request.

Every repository shares the request's database session, so one commit in
the router persists everything a use-case wrote.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from database import get_db
from limits import WorkoutLimitService
from premium import SubscriptionPremiumStatusSource
from repositories import (
    SqlExerciseExecutionRepository,
    SqlExerciseRepository,
    SqlSetRepository,
    SqlWorkoutPlanRepository,
    SqlWorkoutSessionRepository,
)
from timeutils import Clock, utcnow


def get_clock() -> Clock:
    return utcnow


def get_limit_service() -> WorkoutLimitService:
    return WorkoutLimitService()


def get_premium_source(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> SubscriptionPremiumStatusSource:
    return SubscriptionPremiumStatusSource(db, clock)


def get_plan_repository(db: Session = Depends(get_db)) -> SqlWorkoutPlanRepository:
    return SqlWorkoutPlanRepository(db)


def get_exercise_repository(db: Session = Depends(get_db)) -> SqlExerciseRepository:
    return SqlExerciseRepository(db)


def get_session_repository(
    db: Session = Depends(get_db),
) -> SqlWorkoutSessionRepository:
    return SqlWorkoutSessionRepository(db)


def get_execution_repository(
    db: Session = Depends(get_db),
) -> SqlExerciseExecutionRepository:
    return SqlExerciseExecutionRepository(db)


def get_set_repository(db: Session = Depends(get_db)) -> SqlSetRepository:
    return SqlSetRepository(db)
