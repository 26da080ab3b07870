"""Typed domain errors.

Every failure raised by the entities and use-cases is a WorkoutError carrying
a machine-readable ``kind``. The HTTP layer picks the status code from the
kind, never from the message text.

Kinds:
- validation: malformed input (missing field, out-of-range number, overlong
  string, name pattern mismatch)
- not_found: referenced record does not exist or is not owned by the user
- invalid_state_transition: a state machine refused the requested transition
- limit_exceeded: a free-tier limit blocks the operation
- duplicate_name: case-insensitive name collision
- conflict: a concurrent write or the single-active-session rule
"""

from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from limits import ValidationResult


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    LIMIT_EXCEEDED = "limit_exceeded"
    DUPLICATE_NAME = "duplicate_name"
    CONFLICT = "conflict"


class WorkoutError(Exception):
    """Base class for all domain errors.

    Attributes:
        message: Human-readable description
        details: Extra machine-readable context for the caller
    """

    kind: ErrorKind

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class WorkoutValidationError(WorkoutError):
    kind = ErrorKind.VALIDATION


class NotFoundError(WorkoutError):
    kind = ErrorKind.NOT_FOUND


class InvalidStateTransitionError(WorkoutError):
    kind = ErrorKind.INVALID_STATE_TRANSITION


class DuplicateNameError(WorkoutError):
    kind = ErrorKind.DUPLICATE_NAME


class ConflictError(WorkoutError):
    kind = ErrorKind.CONFLICT


class ActiveSessionExistsError(ConflictError):
    """The user already has an in-progress or paused session."""


class ConcurrencyConflictError(ConflictError):
    """The stored row changed since the aggregate was loaded."""


class LimitExceededError(WorkoutError):
    """Raised when a limit validation result is not valid.

    Carries the full validation result so callers can report how far over
    the limit the user is.
    """

    kind = ErrorKind.LIMIT_EXCEEDED

    def __init__(self, result: "ValidationResult", message: str | None = None):
        self.result = result
        super().__init__(
            message or result.message or "Limit exceeded",
            details={"current": result.current, "limit": result.limit},
        )
