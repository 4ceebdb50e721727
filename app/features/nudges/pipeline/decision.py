"""
Decision policy - whether a thread gets a nudge today, and why.

A pure reduction over (thread, focus, current day, learning state, optional
AI fit). It never mutates its inputs and never fails on well-formed input.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

from app.features.nudges.domain.models import (
    Decision,
    FitAIOutput,
    LearningState,
    NudgeHistoryEntry,
    NudgeType,
    Thread,
    UserFocus,
)
from app.utils.time_helpers import ceil_days, to_utc

from .confidence import score_confidence
from .fit import STRONG_FIT, score_fit
from .norms import shifted_window
from .overrides import merge_thread
from .timing import classify_timing, days_since_interaction

GLOBAL_COOLDOWN_DAYS = 7
FIT_OVERRIDE_SCORE = 0.8
MAX_REASONS = 4

SUPPRESSED_REASON = "This thread has been suppressed."
NO_ACTION_REASON = "No specific action needed at this time."


def nudges_in_window(
    nudge_history: Iterable[NudgeHistoryEntry],
    current_day: datetime,
    days: int = GLOBAL_COOLDOWN_DAYS,
) -> int:
    """Count history entries in the trailing window ending at current_day, both ends inclusive."""
    today = to_utc(current_day)
    window_start = today - timedelta(days=days)
    return sum(1 for entry in nudge_history if window_start <= entry.date <= today)


def decide(
    thread: Thread,
    user_focus: UserFocus,
    current_day: datetime,
    learning_state: LearningState,
    ai_output: FitAIOutput | None = None,
) -> Decision:
    """
    Evaluate one thread.

    Args:
        thread: Base thread as stored by the caller
        user_focus: Recruiting focus used for fit
        current_day: Simulated "today"
        learning_state: Current adaptive state snapshot
        ai_output: Optional validated Fit Normalizer payload for this thread

    Returns:
        Decision with at most four reasons and the signals consulted
    """
    today = to_utc(current_day)
    override = learning_state.override_for(thread.id)
    effective = merge_thread(thread, override)

    if effective.suppress_thread or learning_state.is_suppressed(thread.id):
        return Decision(
            should_nudge=False,
            nudge_type="SILENT",
            reasons=[SUPPRESSED_REASON],
            inputs_used=["suppressThread"],
            confidence_score=0.0,
            fit_score=0.0,
            timing_state="TOO_EARLY",
            days_since=0,
        )

    days_since = days_since_interaction(today, effective.last_interaction_date)
    window_shift = learning_state.window_shift(effective.interaction_type)
    timing_state = classify_timing(days_since, effective.interaction_type, window_shift)

    fit = score_fit(effective, user_focus, ai_output)
    fit_score = FIT_OVERRIDE_SCORE if effective.override_fit else fit.score

    confidence_score = score_confidence(effective, timing_state, fit_score, learning_state)

    in_global_cooldown = nudges_in_window(learning_state.nudge_history, today) >= 1

    cooldown_end = override.thread_cooldown_end if override is not None else None
    in_thread_cooldown = cooldown_end is not None and cooldown_end > today

    should_nudge = (
        not in_global_cooldown
        and not in_thread_cooldown
        and not effective.nudged_already
        and confidence_score >= learning_state.user_threshold
        and fit_score >= STRONG_FIT
        and not effective.followup_already_sent
        and timing_state == "OPTIMAL"
        and not effective.suppress_thread
    )

    nudge_type: NudgeType = "SILENT"
    reasons: list[str] = []
    inputs_used = ["daysSince", "timingState", "fitScore", "confidenceScore"]

    if should_nudge:
        nudge_type = "FOLLOW_UP"
        reasons.append("Timing is within the optimal window for this interaction type.")
        if fit_score >= STRONG_FIT:
            reasons.append("Strong fit with your recruiting focus.")
        if effective.prior_engagement:
            reasons.append("You have prior engagement with this contact.")
        reasons.append("Now is within your usual follow-up window.")
    else:
        if in_global_cooldown:
            reasons.append(
                f"You recently received a nudge (max 1 per {GLOBAL_COOLDOWN_DAYS} days)."
            )
            inputs_used.append("globalCooldown")
        if in_thread_cooldown:
            days_remaining = ceil_days(cooldown_end - today)
            plural = "" if days_remaining == 1 else "s"
            reasons.append(f"This thread is in cooldown ({days_remaining} day{plural} remaining).")
            inputs_used.append("threadCooldown")
        if timing_state == "TOO_EARLY":
            nudge_type = "DO_NOTHING_YET"
            min_days, max_days = shifted_window(effective.interaction_type, window_shift)
            reasons.append(
                f"It's only been {days_since} days. "
                f"The optimal window is {min_days}-{max_days} days."
            )
            inputs_used.append("timingTooEarly")
        if timing_state == "LATE":
            reasons.append(f"It's been {days_since} days (optimal window ended).")
            inputs_used.append("timingLate")
        if fit_score < STRONG_FIT and not effective.override_fit:
            reasons.append(f"Fit score is below threshold ({STRONG_FIT:.2f}).")
            inputs_used.append("lowFit")
        if effective.followup_already_sent:
            reasons.append("You have already followed up with this contact.")
            inputs_used.append("alreadyFollowedUp")
        if effective.nudged_already:
            reasons.append("A nudge was already shown for this thread (max 1 per thread).")
            inputs_used.append("alreadyNudged")
        if confidence_score < learning_state.user_threshold:
            reasons.append(
                f"Confidence score ({confidence_score:.2f}) is below your threshold "
                f"({learning_state.user_threshold:.2f})."
            )
            inputs_used.append("lowConfidence")

    if not reasons:
        reasons.append(NO_ACTION_REASON)

    return Decision(
        should_nudge=should_nudge,
        nudge_type=nudge_type,
        reasons=reasons[:MAX_REASONS],
        inputs_used=inputs_used,
        confidence_score=confidence_score,
        fit_score=fit_score,
        timing_state=timing_state,
        days_since=days_since,
        fit_mode=fit.mode,
        fit_explanation=fit.explanation,
    )
