import pytest

from app.features.nudges.domain.models import LearningState, ThreadOverride
from app.features.nudges.pipeline.confidence import score_confidence


def test_full_signal_confidence(make_thread):
    score = score_confidence(make_thread(), "OPTIMAL", 1.0, LearningState())

    assert score == pytest.approx(0.9)


def test_late_timing_weight(make_thread):
    thread = make_thread(prior_engagement=False, typical_response_latency_days=9, shared_connection="None")

    assert score_confidence(thread, "LATE", 0.2, LearningState()) == pytest.approx(0.15)
    assert score_confidence(thread, "TOO_EARLY", 0.2, LearningState()) == 0.0


def test_penalties_clamp_to_zero(make_thread):
    thread = make_thread(ignored_nudges_count=5, followup_already_sent=True, nudged_already=True)

    assert score_confidence(thread, "OPTIMAL", 1.0, LearningState()) == 0.0


def test_override_penalties_apply_without_merge(make_thread):
    thread = make_thread()
    state = LearningState(
        thread_overrides={"t-1": ThreadOverride(ignored_nudges_count=1, nudged_already=True)}
    )

    assert score_confidence(thread, "OPTIMAL", 1.0, state) == pytest.approx(0.55)


@pytest.mark.parametrize("timing_state", ["TOO_EARLY", "OPTIMAL", "LATE"])
def test_raising_fit_never_lowers_confidence(make_thread, timing_state):
    thread = make_thread()
    state = LearningState()

    low = score_confidence(thread, timing_state, 0.74, state)
    high = score_confidence(thread, timing_state, 0.75, state)

    assert high >= low
    assert 0.0 <= low <= 1.0
    assert 0.0 <= high <= 1.0
