"""Workout session state machine.

A session is one timed attempt at working through a plan:

    IN_PROGRESS -> PAUSED -> IN_PROGRESS -> ... -> COMPLETED | CANCELLED

Only the most recent pause window (``paused_at``/``resumed_at``) is tracked,
so total duration subtracts a single pause gap.
"""

from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from errors import InvalidStateTransitionError
from timeutils import UTCDateTime, elapsed_ms, format_duration, utcnow


class SessionStatus(StrEnum):
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ACTIVE_SESSION_STATUSES = (SessionStatus.IN_PROGRESS, SessionStatus.PAUSED)
FINISHED_SESSION_STATUSES = (SessionStatus.COMPLETED, SessionStatus.CANCELLED)


class SessionStatusInfo(BaseModel):
    status: SessionStatus
    duration: str
    started_at: datetime
    ended_at: datetime | None


class WorkoutSession(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4, frozen=True)
    user_id: UUID = Field(frozen=True)
    workout_plan_id: UUID = Field(frozen=True)
    status: SessionStatus = SessionStatus.IN_PROGRESS
    started_at: UTCDateTime = Field(default_factory=utcnow, frozen=True)
    paused_at: UTCDateTime | None = None
    resumed_at: UTCDateTime | None = None
    completed_at: UTCDateTime | None = None
    cancelled_at: UTCDateTime | None = None
    total_duration_ms: int | None = None
    notes: str | None = None
    created_at: UTCDateTime = Field(default_factory=utcnow, frozen=True)
    updated_at: UTCDateTime = Field(default_factory=utcnow)
    version: int = 0

    def _transition(self, action: str, allowed: tuple[SessionStatus, ...]) -> None:
        if self.status not in allowed:
            logger.bind(session_id=str(self.id), status=self.status).warning(
                f"Rejected session {action}"
            )
            raise InvalidStateTransitionError(
                f"Cannot {action} a workout session with status {self.status}",
                details={"status": self.status.value, "action": action},
            )

    def pause(self, now: datetime | None = None) -> None:
        self._transition("pause", (SessionStatus.IN_PROGRESS,))
        now = now or utcnow()
        self.status = SessionStatus.PAUSED
        self.paused_at = now
        self.updated_at = now

    def resume(self, now: datetime | None = None) -> None:
        self._transition("resume", (SessionStatus.PAUSED,))
        now = now or utcnow()
        self.status = SessionStatus.IN_PROGRESS
        self.resumed_at = now
        self.updated_at = now

    def complete(self, notes: str | None = None, now: datetime | None = None) -> None:
        self._transition("complete", ACTIVE_SESSION_STATUSES)
        now = now or utcnow()
        self.total_duration_ms = self.calculate_total_duration(now)
        self.status = SessionStatus.COMPLETED
        self.completed_at = now
        if notes:
            self.notes = notes
        self.updated_at = now

    def cancel(self, reason: str | None = None, now: datetime | None = None) -> None:
        self._transition("cancel", ACTIVE_SESSION_STATUSES)
        now = now or utcnow()
        self.total_duration_ms = self.calculate_total_duration(now)
        self.status = SessionStatus.CANCELLED
        self.cancelled_at = now
        if reason:
            self.notes = f"Cancelled: {reason}"
        self.updated_at = now

    def update_notes(self, notes: str, now: datetime | None = None) -> None:
        self.notes = notes
        self.updated_at = now or utcnow()

    def is_active(self) -> bool:
        return self.status in ACTIVE_SESSION_STATUSES

    def is_finished(self) -> bool:
        return self.status in FINISHED_SESSION_STATUSES

    def can_be_paused(self) -> bool:
        return self.status == SessionStatus.IN_PROGRESS

    def can_be_resumed(self) -> bool:
        return self.status == SessionStatus.PAUSED

    def can_be_completed(self) -> bool:
        return self.is_active()

    def can_be_cancelled(self) -> bool:
        return self.is_active()

    def _is_paused(self) -> bool:
        return self.status == SessionStatus.PAUSED and self.paused_at is not None

    def calculate_total_duration(self, now: datetime | None = None) -> int:
        """Elapsed milliseconds excluding the most recent pause window.

        The end point is ``completed_at``, then ``cancelled_at``, then ``now``.
        While paused, the duration stops at the pause.
        """
        end = self.completed_at or self.cancelled_at or now or utcnow()

        if self._is_paused():
            duration = elapsed_ms(self.started_at, self.paused_at)
        elif (
            self.paused_at is not None
            and self.resumed_at is not None
            and self.resumed_at >= self.paused_at
        ):
            pause_gap = elapsed_ms(self.paused_at, self.resumed_at)
            duration = elapsed_ms(self.started_at, end) - pause_gap
        else:
            duration = elapsed_ms(self.started_at, end)

        return max(0, duration)

    def get_current_duration(self, now: datetime | None = None) -> int:
        if self.is_finished() and self.total_duration_ms is not None:
            return self.total_duration_ms
        return self.calculate_total_duration(now)

    def get_formatted_duration(self, now: datetime | None = None) -> str:
        return format_duration(self.get_current_duration(now))

    def get_status_info(self, now: datetime | None = None) -> SessionStatusInfo:
        return SessionStatusInfo(
            status=self.status,
            duration=self.get_formatted_duration(now),
            started_at=self.started_at,
            ended_at=self.completed_at or self.cancelled_at,
        )
