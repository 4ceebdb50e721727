from datetime import timedelta

from app.features.nudges.domain.models import Decision, LearningState, NudgeHistoryEntry
from app.features.nudges.pipeline.metrics import compute_restraint_metrics


def _decision(should_nudge: bool, reasons: list[str]) -> Decision:
    return Decision(
        should_nudge=should_nudge,
        nudge_type="FOLLOW_UP" if should_nudge else "SILENT",
        reasons=reasons,
        confidence_score=0.5,
        fit_score=0.5,
        timing_state="OPTIMAL" if should_nudge else "LATE",
        days_since=5,
    )


def test_empty_metrics(today):
    metrics = compute_restraint_metrics([], LearningState(), today)

    assert metrics.threads_tracked == 0
    assert metrics.silence_rate == 0
    assert metrics.top_silence_reason is None
    assert metrics.nudges_last_7_days == 0


def test_silence_rate_and_top_reason(today):
    decisions = [
        _decision(True, ["Timing is within the optimal window for this interaction type."]),
        _decision(False, ["It's been 9 days (optimal window ended).", "Fit score is below threshold (0.75)."]),
        _decision(False, ["It's been 12 days (optimal window ended).", "Fit score is below threshold (0.75)."]),
    ]
    state = LearningState(
        nudge_history=(
            NudgeHistoryEntry(thread_id="t-1", date=today - timedelta(days=2)),
            NudgeHistoryEntry(thread_id="t-2", date=today - timedelta(days=20)),
        )
    )

    metrics = compute_restraint_metrics(decisions, state, today)

    assert metrics.threads_tracked == 3
    assert metrics.silence_rate == 67
    assert metrics.nudges_last_7_days == 1
    assert metrics.top_silence_reason == "Fit score is below threshold (0.75)."


def test_silence_rate_rounds_half_up(today):
    decisions = [_decision(False, ["x"])] + [_decision(True, ["y"])] * 7

    assert compute_restraint_metrics(decisions, LearningState(), today).silence_rate == 13
