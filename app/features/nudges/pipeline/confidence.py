from app.features.nudges.domain.models import LearningState, Thread, TimingState

from .fit import STRONG_FIT

TIMING_WEIGHTS: dict[str, float] = {
    "OPTIMAL": 0.55,
    "LATE": 0.15,
    "TOO_EARLY": 0.0,
}
PRIOR_ENGAGEMENT_WEIGHT = 0.10
RESPONSIVE_WEIGHT = 0.10
RESPONSIVE_LATENCY_DAYS = 4
STRONG_FIT_WEIGHT = 0.10
SHARED_CONNECTION_WEIGHT = 0.05

IGNORED_NUDGE_PENALTY = 0.15
FOLLOWED_UP_PENALTY = 0.30
ALREADY_NUDGED_PENALTY = 0.20


def score_confidence(
    thread: Thread,
    timing_state: TimingState,
    fit_score: float,
    learning_state: LearningState,
) -> float:
    """
    Blend timing, fit, relationship signals and penalty history into [0, 1].

    Penalties read the stored override when one is present, so the result is
    the same whether or not the caller merged overrides first.
    """
    score = TIMING_WEIGHTS[timing_state]

    if thread.prior_engagement:
        score += PRIOR_ENGAGEMENT_WEIGHT
    if thread.typical_response_latency_days <= RESPONSIVE_LATENCY_DAYS:
        score += RESPONSIVE_WEIGHT
    if fit_score >= STRONG_FIT:
        score += STRONG_FIT_WEIGHT
    if thread.shared_connection != "None":
        score += SHARED_CONNECTION_WEIGHT

    override = learning_state.override_for(thread.id)

    ignored_count = thread.ignored_nudges_count
    followup_sent = thread.followup_already_sent
    nudged_already = thread.nudged_already
    if override is not None:
        if override.ignored_nudges_count is not None:
            ignored_count = override.ignored_nudges_count
        followup_sent = followup_sent or bool(override.followup_already_sent)
        nudged_already = nudged_already or bool(override.nudged_already)

    score -= IGNORED_NUDGE_PENALTY * ignored_count
    if followup_sent:
        score -= FOLLOWED_UP_PENALTY
    if nudged_already:
        score -= ALREADY_NUDGED_PENALTY

    return round(max(0.0, min(1.0, score)), 4)
