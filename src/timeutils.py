"""Clock, duration and rounding helpers shared by the entities."""

from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Callable

from pydantic import AfterValidator

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds between two instants (floored)."""
    return (ensure_utc(end) - ensure_utc(start)) // timedelta(milliseconds=1)


def format_duration(duration_ms: int) -> str:
    """Render a duration as MM:SS, or HH:MM:SS once it reaches an hour."""
    total_seconds = max(0, duration_ms) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def format_rest_time(seconds: int) -> str:
    """Render a rest period as 45s, 2min or 1min 30s."""
    if seconds < 60:
        return f"{seconds}s"

    minutes, remainder = divmod(seconds, 60)
    if remainder == 0:
        return f"{minutes}min"
    return f"{minutes}min {remainder}s"


def round_half_up(value: float, digits: int = 0) -> float | int:
    """Round halves away from zero: 62.5 -> 63, 23.625 -> 23.63.

    The value goes through its shortest decimal repr first, so a product such
    as ``22.5 * 1.05`` rounds as the 23.625 it prints as.
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)
