from datetime import datetime

from app.features.nudges.domain.models import InteractionType, TimingState
from app.utils.time_helpers import days_between

from .norms import shifted_window


def days_since_interaction(current_day: datetime, last_interaction: datetime) -> int:
    """Calendar days elapsed; 0 or negative when the interaction is today or later."""
    return days_between(current_day, last_interaction)


def classify_timing(
    days_since: int,
    interaction_type: InteractionType,
    window_shift: int = 0,
) -> TimingState:
    min_days, max_days = shifted_window(interaction_type, window_shift)

    if days_since < min_days:
        return "TOO_EARLY"
    if days_since > max_days:
        return "LATE"
    return "OPTIMAL"
