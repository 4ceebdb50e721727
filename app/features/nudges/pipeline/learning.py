"""
Feedback-driven learning.

apply_feedback() is the only transition of LearningState. It takes the
current snapshot and returns a new one; the threshold, window shifts and
suppression set only ever move in one direction.
"""

from datetime import datetime, timedelta
from typing import get_args

from app.features.nudges.domain.models import (
    FeedbackKind,
    FrozenDict,
    InteractionType,
    LearningState,
    NudgeHistoryEntry,
    NudgeOutcome,
    NudgeRecord,
    ThreadOverride,
)
from app.utils.time_helpers import to_utc

DEFAULT_THRESHOLD = 0.75
THRESHOLD_STEP = 0.05
THRESHOLD_CEILING = 0.9
THREAD_COOLDOWN_DAYS = 7
MAX_NUDGE_RECORDS = 100

FEEDBACK_KINDS = frozenset(get_args(FeedbackKind))

# still_relevant only re-ranks fit and leaves no audit record
FEEDBACK_OUTCOMES: dict[str, NudgeOutcome] = {
    "follow_up": "accepted",
    "not_now": "ignored",
    "too_early": "ignored",
    "dismiss": "dismissed",
    "suppress": "dismissed",
}


def default_learning_state() -> LearningState:
    return LearningState(user_threshold=DEFAULT_THRESHOLD)


def apply_feedback(
    thread_id: str,
    feedback: FeedbackKind,
    interaction_type: InteractionType,
    state: LearningState,
    current_day: datetime,
    thread_name: str | None = None,
    prior_confidence: float | None = None,
) -> LearningState:
    """
    Apply one feedback event and return the next learning state.

    Args:
        thread_id: Thread the feedback is about
        feedback: What the user did with the suggestion
        interaction_type: Category whose window "too_early" shifts
        state: Current snapshot (left untouched)
        current_day: Simulated "today"
        thread_name: Display name for the audit record
        prior_confidence: Confidence shown with the suggestion

    Returns:
        New LearningState replacing the old one wholesale

    Raises:
        ValueError: If the feedback kind is unknown
    """
    if feedback not in FEEDBACK_KINDS:
        raise ValueError(f"Unknown feedback kind: {feedback}")

    today = to_utc(current_day)
    override = state.override_for(thread_id) or ThreadOverride()
    override_updates: dict = {}
    updates: dict = {}

    if feedback == "follow_up":
        override_updates["followup_already_sent"] = True

    elif feedback in ("not_now", "too_early"):
        if feedback == "not_now":
            updates["user_threshold"] = min(
                THRESHOLD_CEILING, round(state.user_threshold + THRESHOLD_STEP, 4)
            )
            override_updates["thread_cooldown_end"] = today + timedelta(days=THREAD_COOLDOWN_DAYS)
            updates["nudge_history"] = (
                *state.nudge_history,
                NudgeHistoryEntry(thread_id=thread_id, date=today),
            )
        else:
            window_shifts = dict(state.window_shifts)
            window_shifts[interaction_type] = window_shifts.get(interaction_type, 0) + 1
            updates["window_shifts"] = FrozenDict(window_shifts)
        override_updates["nudged_already"] = True
        override_updates["ignored_nudges_count"] = (override.ignored_nudges_count or 0) + 1

    elif feedback == "dismiss":
        override_updates["nudged_already"] = True

    elif feedback == "suppress":
        if not state.is_suppressed(thread_id):
            updates["suppressed_threads"] = (*state.suppressed_threads, thread_id)
        override_updates["suppress_thread"] = True

    elif feedback == "still_relevant":
        override_updates["override_fit"] = True

    thread_overrides = dict(state.thread_overrides)
    thread_overrides[thread_id] = override.model_copy(update=override_updates)
    updates["thread_overrides"] = FrozenDict(thread_overrides)

    outcome = FEEDBACK_OUTCOMES.get(feedback)
    if outcome is not None and thread_name and prior_confidence is not None:
        record = NudgeRecord(
            thread_id=thread_id,
            thread_name=thread_name,
            date=today,
            confidence_score=prior_confidence,
            outcome=outcome,
        )
        updates["nudge_records"] = (record, *state.nudge_records)[:MAX_NUDGE_RECORDS]

    return state.model_copy(update=updates)
