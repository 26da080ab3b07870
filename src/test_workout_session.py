"""Tests for the WorkoutSession state machine and duration tracking."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from errors import InvalidStateTransitionError
from workout_session import SessionStatus, WorkoutSession

T = datetime(2025, 6, 2, 9, 0, 0, tzinfo=timezone.utc)


def at(seconds: float) -> datetime:
    return T + timedelta(seconds=seconds)


def make_session() -> WorkoutSession:
    return WorkoutSession(user_id=uuid4(), workout_plan_id=uuid4(), started_at=T)


def test_pause_resume_complete_subtracts_pause():
    """Started at T, paused at T+5s, resumed at T+15s, completed at T+20s."""
    session = make_session()
    session.pause(now=at(5))
    session.resume(now=at(15))
    session.complete(now=at(20))

    assert session.status == SessionStatus.COMPLETED
    assert session.total_duration_ms == 10_000
    assert session.get_formatted_duration() == "00:10"


def test_never_paused_duration():
    session = make_session()
    session.complete(now=at(95))
    assert session.total_duration_ms == 95_000
    assert session.get_formatted_duration() == "01:35"


def test_duration_freezes_while_paused():
    session = make_session()
    session.pause(now=at(30))
    assert session.calculate_total_duration(now=at(600)) == 30_000


def test_repause_after_resume_freezes_at_latest_pause():
    session = make_session()
    session.pause(now=at(10))
    session.resume(now=at(20))
    session.pause(now=at(40))
    assert session.get_current_duration(now=at(100)) == 40_000


def test_repause_at_resume_instant_stays_frozen():
    session = make_session()
    session.pause(now=at(10))
    session.resume(now=at(20))
    session.pause(now=at(20))

    assert session.status == SessionStatus.PAUSED
    assert session.get_current_duration(now=at(100)) == 20_000

    session.cancel(now=at(100))
    assert session.total_duration_ms == 20_000


def test_cancel_while_paused():
    session = make_session()
    session.pause(now=at(60))
    session.cancel("Injury", now=at(120))

    assert session.status == SessionStatus.CANCELLED
    assert session.cancelled_at == at(120)
    assert session.total_duration_ms == 60_000
    assert session.notes == "Cancelled: Injury"


def test_cancel_without_reason_keeps_notes():
    session = make_session()
    session.update_notes("Morning session")
    session.cancel(now=at(10))
    assert session.notes == "Morning session"


def test_complete_overwrites_notes_only_when_given():
    session = make_session()
    session.update_notes("Start notes")
    session.complete(now=at(10))
    assert session.notes == "Start notes"

    other = make_session()
    other.update_notes("Start notes")
    other.complete("Great workout", now=at(10))
    assert other.notes == "Great workout"


def test_hour_long_session_format():
    session = make_session()
    session.complete(now=at(3723))
    assert session.get_formatted_duration() == "01:02:03"


@pytest.mark.parametrize(
    "setup, action",
    [
        ([], "resume"),
        (["pause"], "pause"),
        (["complete"], "pause"),
        (["complete"], "resume"),
        (["complete"], "complete"),
        (["complete"], "cancel"),
        (["cancel"], "complete"),
    ],
)
def test_illegal_transitions(setup, action):
    session = make_session()
    for step in setup:
        getattr(session, step)(now=at(1))

    status_before = session.status
    with pytest.raises(InvalidStateTransitionError):
        getattr(session, action)(now=at(2))
    assert session.status == status_before


def test_capability_flags():
    session = make_session()
    assert session.is_active()
    assert session.can_be_paused() and not session.can_be_resumed()
    assert session.can_be_completed() and session.can_be_cancelled()

    session.pause(now=at(1))
    assert session.can_be_resumed() and not session.can_be_paused()

    session.complete(now=at(2))
    assert session.is_finished() and not session.is_active()
    assert not any(
        [
            session.can_be_paused(),
            session.can_be_resumed(),
            session.can_be_completed(),
            session.can_be_cancelled(),
        ]
    )


def test_status_info():
    session = make_session()
    info = session.get_status_info(now=at(65))
    assert info.status == SessionStatus.IN_PROGRESS
    assert info.duration == "01:05"
    assert info.ended_at is None

    session.complete(now=at(70))
    assert session.get_status_info().ended_at == at(70)
