"""Pytest configuration and shared fixtures."""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from auth import AuthenticatedUser, FirebaseUser, get_or_create_user
from database import Base, create_db_engine, get_db
from dependencies import get_clock
from limits import WorkoutLimitService
from main import app
from models import SubscriptionDB, UserDB
from plans import Exercise, WorkoutPlan
from ports import PremiumStatus
from repositories import (
    SqlExerciseExecutionRepository,
    SqlExerciseRepository,
    SqlSetRepository,
    SqlWorkoutPlanRepository,
    SqlWorkoutSessionRepository,
)

T0 = datetime(2025, 6, 2, 9, 0, 0, tzinfo=timezone.utc)


def get_test_db_url():
    """Get the test database URL from environment or use in-memory SQLite."""
    return os.environ.get("TEST_DATABASE_URL", "sqlite://")


def _run_admin_sql(db_url: str, statements: list[str]) -> None:
    base_url = db_url.rsplit("/", 1)[0]
    admin_engine = create_engine(f"{base_url}/postgres", isolation_level="AUTOCOMMIT")
    with admin_engine.connect() as conn:
        for statement in statements:
            conn.execute(text(statement))
    admin_engine.dispose()


@pytest.fixture(scope="session")
def test_engine():
    """Create a test database engine that persists for the entire test session.

    PostgreSQL URLs get a freshly created database that is dropped afterwards.
    SQLite runs in memory on a single shared connection.
    """
    db_url = get_test_db_url()
    is_postgres = db_url.startswith("postgresql")

    if is_postgres:
        db_name = db_url.rsplit("/", 1)[1]
        _run_admin_sql(
            db_url,
            [f"DROP DATABASE IF EXISTS {db_name}", f"CREATE DATABASE {db_name}"],
        )
        engine = create_db_engine(db_url)
    else:
        engine = create_db_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()

    if is_postgres:
        _run_admin_sql(db_url, [f"DROP DATABASE IF EXISTS {db_name}"])


@pytest.fixture
def db_session(test_engine):
    """Create a new database session for each test.

    The whole test runs inside one outer transaction that is rolled back
    afterwards; ``commit()`` inside the test only releases a SAVEPOINT.
    """
    connection = test_engine.connect()
    transaction = connection.begin()

    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=connection,
        join_transaction_mode="create_savepoint",
    )
    session = TestingSessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# Repository fixtures


@pytest.fixture
def plan_repo(db_session: Session) -> SqlWorkoutPlanRepository:
    return SqlWorkoutPlanRepository(db_session)


@pytest.fixture
def exercise_repo(db_session: Session) -> SqlExerciseRepository:
    return SqlExerciseRepository(db_session)


@pytest.fixture
def session_repo(db_session: Session) -> SqlWorkoutSessionRepository:
    return SqlWorkoutSessionRepository(db_session)


@pytest.fixture
def execution_repo(db_session: Session) -> SqlExerciseExecutionRepository:
    return SqlExerciseExecutionRepository(db_session)


@pytest.fixture
def set_repo(db_session: Session) -> SqlSetRepository:
    return SqlSetRepository(db_session)


@pytest.fixture
def limit_service() -> WorkoutLimitService:
    return WorkoutLimitService()


@pytest.fixture
def free_source() -> MagicMock:
    """Premium source reporting a free-tier user."""
    source = MagicMock()
    source.check_status.return_value = PremiumStatus(is_premium=False, status="none")
    return source


@pytest.fixture
def premium_source() -> MagicMock:
    """Premium source reporting an active subscription."""
    source = MagicMock()
    source.check_status.return_value = PremiumStatus(
        is_premium=True, status="active", expiry_date=T0 + timedelta(days=30)
    )
    return source


# Authentication fixtures


@pytest.fixture
def test_firebase_user() -> FirebaseUser:
    """Create a test Firebase user."""
    return FirebaseUser(
        uid="test_firebase_uid_123",
        email="test@example.com",
        email_verified=True,
        claims={"uid": "test_firebase_uid_123", "email": "test@example.com"},
    )


@pytest.fixture
def test_user(db_session: Session, test_firebase_user: FirebaseUser) -> UserDB:
    """Create a test user in the database."""
    user = UserDB(
        firebase_uid=test_firebase_user.uid,
        email=test_firebase_user.email,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session: Session) -> UserDB:
    """A second user, for ownership checks."""
    user = UserDB(firebase_uid="other_firebase_uid_456", email="other@example.com")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_authenticated_user(
    test_user: UserDB, test_firebase_user: FirebaseUser
) -> AuthenticatedUser:
    """Create a test authenticated user context."""
    return AuthenticatedUser(
        firebase_uid=test_user.firebase_uid,
        user_id=test_user.id,
        email=test_user.email,
        firebase_user=test_firebase_user,
    )


@pytest.fixture
def active_subscription(db_session: Session, test_user: UserDB) -> SubscriptionDB:
    """Give the test user a premium subscription that is still running."""
    subscription = SubscriptionDB(
        user_id=test_user.id,
        product_id="premium_monthly",
        purchase_token="token-active-123",
        status="active",
        expiry_date=datetime.now(timezone.utc) + timedelta(days=30),
        acknowledged=True,
    )
    db_session.add(subscription)
    db_session.commit()
    return subscription


@pytest.fixture
def saved_plan(
    test_user: UserDB,
    plan_repo: SqlWorkoutPlanRepository,
    exercise_repo: SqlExerciseRepository,
) -> WorkoutPlan:
    """A stored plan with Squat, Bench Press and Deadlift, in that order."""
    plan = plan_repo.save(WorkoutPlan(user_id=test_user.id, name="Treino A"))
    for name in ("Squat", "Bench Press", "Deadlift"):
        exercise = Exercise(workout_plan_id=plan.id, name=name)
        plan.add_exercise(exercise)
        exercise_repo.save(exercise)
    return plan_repo.save(plan)


@pytest.fixture
def client(db_session, test_authenticated_user, clock):
    """Create test client with database, auth and clock overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    def override_auth():
        return test_authenticated_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_or_create_user] = override_auth
    app.dependency_overrides[get_clock] = lambda: clock

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
