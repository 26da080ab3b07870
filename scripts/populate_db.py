#!/usr/bin/env python3
"""Script to populate the database with test workout data."""

import argparse
import os
import sys
from datetime import timedelta

from dotenv import load_dotenv

# Add src to path so we can import our modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from database import SessionLocal  # noqa: E402
from errors import WorkoutError  # noqa: E402
from execution_usecases import (  # noqa: E402
    CompleteSet,
    CompleteSetInput,
    FinishExerciseExecution,
    FinishExerciseExecutionInput,
    StartExerciseExecution,
    StartExerciseExecutionInput,
)
from limits import WorkoutLimitService  # noqa: E402
from models import UserDB, WorkoutPlanDB  # noqa: E402
from plan_usecases import (  # noqa: E402
    AddExerciseToWorkoutPlan,
    AddExerciseToWorkoutPlanInput,
    CreateWorkoutPlan,
    CreateWorkoutPlanInput,
)
from premium import SubscriptionPremiumStatusSource  # noqa: E402
from repositories import (  # noqa: E402
    SqlExerciseExecutionRepository,
    SqlExerciseRepository,
    SqlSetRepository,
    SqlWorkoutPlanRepository,
    SqlWorkoutSessionRepository,
)
from session_usecases import (  # noqa: E402
    CompleteWorkoutSession,
    CompleteWorkoutSessionInput,
    StartWorkoutSession,
    StartWorkoutSessionInput,
)
from timeutils import utcnow  # noqa: E402

# Load environment variables
load_dotenv()

SAMPLE_PLANS = {
    "Upper Body": [
        ("Bench Press", "Chest", 4, 8, 90),
        ("Barbell Row", "Back", 4, 8, 90),
        ("Overhead Press", "Shoulders", 3, 10, 60),
    ],
    "Lower Body": [
        ("Squat", "Legs", 4, 6, 120),
        ("Romanian Deadlift", "Legs", 3, 10, 90),
        ("Plank", "Core", 3, 1, 45),
    ],
}


class StepClock:
    """A clock that starts in the past and moves forward on demand."""

    def __init__(self, start):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)
        return self.current


def find_test_user(db):
    user = db.query(UserDB).filter(UserDB.email == "test@example.com").first()
    if not user:
        user = db.query(UserDB).first()
    if not user:
        print("No users found. Please create a test user first.")
        print("Use the Firebase Auth Emulator to create: test@example.com")
    return user


def create_test_plans(db, user):
    """Create the sample plans through the same use-cases the API calls."""
    plans = SqlWorkoutPlanRepository(db)
    exercises = SqlExerciseRepository(db)
    premium_source = SubscriptionPremiumStatusSource(db)
    limit_service = WorkoutLimitService()

    # Clear existing plans for this user (cascades to sessions)
    db.query(WorkoutPlanDB).filter(WorkoutPlanDB.user_id == user.id).delete()
    db.flush()
    print(f"Cleared existing plans for user {user.email}")

    create_plan = CreateWorkoutPlan(plans, premium_source, limit_service)
    add_exercise = AddExerciseToWorkoutPlan(
        plans, exercises, premium_source, limit_service
    )

    created = []
    for name, rows in SAMPLE_PLANS.items():
        plan = create_plan.execute(CreateWorkoutPlanInput(user_id=user.id, name=name))
        for exercise_name, muscle, sets, reps, rest in rows:
            add_exercise.execute(
                AddExerciseToWorkoutPlanInput(
                    user_id=user.id,
                    plan_id=plan.id,
                    name=exercise_name,
                    target_muscle_group=muscle,
                    sets=sets,
                    reps=reps,
                    rest_time_seconds=rest,
                )
            )
        print(f"Created plan: {plan.name} ({len(rows)} exercises)")
        created.append(plan)

    db.commit()
    return created


def create_test_session(db, user, plan_id, days_ago=2):
    """Log a completed session in the past, every set done at 40 kg."""
    plans = SqlWorkoutPlanRepository(db)
    sessions = SqlWorkoutSessionRepository(db)
    executions = SqlExerciseExecutionRepository(db)
    sets = SqlSetRepository(db)
    exercises = SqlExerciseRepository(db)
    clock = StepClock(utcnow() - timedelta(days=days_ago))

    session = StartWorkoutSession(plans, sessions, clock).execute(
        StartWorkoutSessionInput(user_id=user.id, workout_plan_id=plan_id)
    )
    for exercise in session.exercises:
        execution = StartExerciseExecution(
            sessions, plans, executions, sets, clock
        ).execute(
            StartExerciseExecutionInput(
                user_id=user.id,
                session_id=session.id,
                exercise_id=exercise.id,
                starting_weight=40,
            )
        )
        for workout_set in execution.sets:
            clock.advance(seconds=exercise.rest_time_seconds + 30)
            CompleteSet(executions, sets, clock).execute(
                CompleteSetInput(
                    user_id=user.id,
                    execution_id=execution.id,
                    set_number=workout_set.set_number,
                    actual_reps=exercise.reps,
                )
            )
        FinishExerciseExecution(executions, exercises, clock).execute(
            FinishExerciseExecutionInput(user_id=user.id, execution_id=execution.id)
        )

    completed = CompleteWorkoutSession(sessions, plans, executions, clock).execute(
        CompleteWorkoutSessionInput(
            user_id=user.id, session_id=session.id, notes="Seeded session"
        )
    )
    db.commit()
    print(
        f"Created completed session {completed.id} "
        f"({completed.formatted_duration}, "
        f"{completed.summary.exercises_completed} exercises)"
    )


def main():
    parser = argparse.ArgumentParser(description="Populate database with test data")
    parser.add_argument(
        "--plans",
        action="store_true",
        help="Create sample workout plans",
    )
    parser.add_argument(
        "--sessions",
        action="store_true",
        help="Also log a completed session for the first plan",
    )
    args = parser.parse_args()

    # If no args, create everything
    if not (args.plans or args.sessions):
        args.plans = args.sessions = True

    db = SessionLocal()
    try:
        user = find_test_user(db)
        if not user:
            return
        plans = create_test_plans(db, user)
        if args.sessions:
            create_test_session(db, user, plans[0].id)
        print("\nDatabase populated successfully!")
    except WorkoutError as e:
        print(f"Error populating database: {e.message}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
