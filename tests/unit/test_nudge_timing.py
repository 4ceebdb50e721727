from datetime import UTC, datetime, timedelta

import pytest

from app.features.nudges.pipeline.norms import (
    RECRUITING_NORMS,
    format_window,
    optimal_window,
    shifted_window,
)
from app.features.nudges.pipeline.timing import classify_timing, days_since_interaction


def test_norms_table_windows():
    assert optimal_window("Coffee Chat") == (3, 6)
    assert optimal_window("Referral Intro") == (5, 10)
    assert optimal_window("Recruiter Email") == (7, 14)
    assert optimal_window("Post-Interview") == (2, 5)
    assert len(RECRUITING_NORMS) == 4


def test_shifted_window_allows_negative_shift():
    assert shifted_window("Coffee Chat", 2) == (5, 8)
    assert shifted_window("Coffee Chat", -1) == (2, 5)
    assert format_window(shifted_window("Post-Interview", 1)) == "3-6 days"


@pytest.mark.parametrize("interaction_type", list(RECRUITING_NORMS))
def test_classify_timing_boundaries(interaction_type):
    min_days, max_days = RECRUITING_NORMS[interaction_type]

    assert classify_timing(min_days - 1, interaction_type) == "TOO_EARLY"
    assert classify_timing(min_days, interaction_type) == "OPTIMAL"
    assert classify_timing(max_days, interaction_type) == "OPTIMAL"
    assert classify_timing(max_days + 1, interaction_type) == "LATE"


def test_classify_timing_uses_learned_shift():
    # Day 3 is optimal for a Coffee Chat until the window moves out by one
    assert classify_timing(3, "Coffee Chat") == "OPTIMAL"
    assert classify_timing(3, "Coffee Chat", window_shift=1) == "TOO_EARLY"
    assert classify_timing(7, "Coffee Chat", window_shift=1) == "OPTIMAL"


def test_negative_days_are_too_early():
    assert classify_timing(-2, "Post-Interview") == "TOO_EARLY"


def test_days_since_counts_calendar_days():
    current = datetime(2024, 3, 15, 0, 30, tzinfo=UTC)
    last = datetime(2024, 3, 14, 23, 45, tzinfo=UTC)

    assert days_since_interaction(current, last) == 1


def test_days_since_future_interaction_is_negative():
    current = datetime(2024, 3, 15, tzinfo=UTC)

    assert days_since_interaction(current, current + timedelta(days=2)) == -2
    assert days_since_interaction(current, current) == 0


def test_days_since_treats_naive_as_utc():
    current = datetime(2024, 3, 15, 12, 0)
    last = datetime(2024, 3, 10, 9, 0, tzinfo=UTC)

    assert days_since_interaction(current, last) == 5
