"""Weight and rest suggestions derived from completed sets.

Everything here is read-only advice returned to the client; none of it is
persisted.
"""

from collections.abc import Sequence

from pydantic import BaseModel

from timeutils import round_half_up
from workout_set import WorkoutSet

PROGRESSION_REPS_THRESHOLD = 2
WEIGHT_INCREASE_FACTOR = 1.05
WEIGHT_DECREASE_FACTOR = 0.95

LONG_EXERCISE_MINUTES = 15
SHORT_EXERCISE_MINUTES = 5


class Recommendations(BaseModel):
    next_workout_suggestions: list[str] = []
    performance_notes: list[str] = []


def suggest_next_set_weight(
    weight: float | None, actual_reps: int, planned_reps: int
) -> float | None:
    """Suggest the weight for the next set.

    Two or more reps over plan adds 5%, two or more under removes 5%,
    anything else keeps the weight. No weight (or zero) gives no suggestion.
    """
    if not weight:
        return None

    difference = actual_reps - planned_reps
    if difference >= PROGRESSION_REPS_THRESHOLD:
        return round_half_up(weight * WEIGHT_INCREASE_FACTOR, 2)
    if difference <= -PROGRESSION_REPS_THRESHOLD:
        return round_half_up(weight * WEIGHT_DECREASE_FACTOR, 2)
    return weight


def rest_time_recommendation(
    actual_reps: int, planned_reps: int, weight: float | None = None
) -> str:
    difference = actual_reps - planned_reps

    if difference <= -PROGRESSION_REPS_THRESHOLD:
        return "Recommended: extra rest (90-120s) - challenging set"
    if difference >= PROGRESSION_REPS_THRESHOLD:
        return "Recommended: normal rest (45-60s) - good performance"
    if weight and weight > 0:
        return "Recommended: standard rest (60-90s) - moderate weight"
    return "Recommended: standard rest (60s)"


def exercise_recommendations(
    sets: Sequence[WorkoutSet], total_duration_ms: int
) -> Recommendations:
    """Summarize a finished exercise into notes and next-workout advice."""
    result = Recommendations()
    completed = [s for s in sets if s.is_completed()]

    if not completed:
        result.performance_notes.append("Exercise was not performed")
        return result

    average_completion = sum(s.get_completion_percentage() for s in completed) / len(
        completed
    )

    if average_completion >= 110:
        result.performance_notes.append("Excellent performance! Exceeded the plan")
        result.next_workout_suggestions.append("Consider increasing weight by 5-10%")
    elif average_completion >= 100:
        result.performance_notes.append("Perfect performance! Hit every rep")
        result.next_workout_suggestions.append(
            "Keep the weight or increase it slightly"
        )
    elif average_completion >= 80:
        result.performance_notes.append("Good performance, close to the target")
        result.next_workout_suggestions.append("Keep the current weight")
    else:
        result.performance_notes.append("Performance below expectations")
        result.next_workout_suggestions.append("Consider reducing weight by 5-10%")

    weights = [s.weight for s in completed if s.weight is not None]
    if len(weights) > 1:
        progression = weights[-1] - weights[0]
        if progression > 0:
            result.performance_notes.append(
                f"Weight progression: +{progression:g}kg during the exercise"
            )

    # Whole minutes, rounding half up.
    duration_minutes = int(total_duration_ms / 60000 + 0.5)
    if duration_minutes > LONG_EXERCISE_MINUTES:
        result.next_workout_suggestions.append("Consider shortening your rest time")
    elif duration_minutes < SHORT_EXERCISE_MINUTES:
        result.next_workout_suggestions.append(
            "You can take more rest time if needed"
        )

    return result
