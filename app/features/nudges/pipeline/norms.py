"""Recruiting follow-up norms: optimal delay window per interaction type, in days."""

from app.features.nudges.domain.models import InteractionType

RECRUITING_NORMS: dict[str, tuple[int, int]] = {
    "Coffee Chat": (3, 6),
    "Referral Intro": (5, 10),
    "Recruiter Email": (7, 14),
    "Post-Interview": (2, 5),
}


def optimal_window(interaction_type: InteractionType) -> tuple[int, int]:
    return RECRUITING_NORMS[interaction_type]


def shifted_window(interaction_type: InteractionType, window_shift: int = 0) -> tuple[int, int]:
    """Base window moved by a learned shift. Negative shifts are allowed."""
    min_days, max_days = RECRUITING_NORMS[interaction_type]
    return min_days + window_shift, max_days + window_shift


def format_window(window: tuple[int, int]) -> str:
    return f"{window[0]}-{window[1]} days"
