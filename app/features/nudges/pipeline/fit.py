"""
Fit scoring - how well a contact matches the user's recruiting focus.

Two modes share the same weights. AI mode reads a normalized assessment from
the Fit Normalizer and is used only when that assessment is confident enough;
otherwise the rule-based mode works from the raw strings. Relationship and
shared-connection bonuses are always rule-based.
"""

import re
from typing import Literal

from app.features.nudges.domain.models import FitAIOutput, FitResult, Thread, UserFocus

AI_CONFIDENCE_FLOOR = 0.75
STRONG_FIT = 0.75
MEDIUM_FIT = 0.5

INDUSTRY_WEIGHT = 0.4
ROLE_WEIGHT = 0.3
JUNIOR_SENIORITY_WEIGHT = 0.2
OTHER_SENIORITY_WEIGHT = 0.1
PRIOR_ENGAGEMENT_BONUS = 0.1

JUNIOR_BUCKETS = frozenset({"student", "analyst", "associate"})
JUNIOR_KEYWORDS = ("student", "analyst", "associate")

CONNECTION_BONUSES: dict[str, float] = {
    "Same school": 0.05,
    "Same hometown/country": 0.05,
    "Same student org": 0.08,
    "Friend-of-friend intro": 0.08,
    "Same previous company": 0.08,
    "None": 0.0,
}


def score_fit(
    thread: Thread,
    user_focus: UserFocus,
    ai_output: FitAIOutput | None = None,
) -> FitResult:
    """
    Compute the fit score and report which mode produced it.

    Args:
        thread: Thread to score (overrides already merged)
        user_focus: The user's target industry and role
        ai_output: Optional validated Fit Normalizer payload

    Returns:
        FitResult with score in [0, 1], the mode used and any AI explanation
    """
    use_ai = ai_output is not None and ai_output.confidence >= AI_CONFIDENCE_FLOOR

    if use_ai:
        score = _ai_component(ai_output)
    else:
        score = _rule_component(thread, user_focus)

    if thread.prior_engagement:
        score += PRIOR_ENGAGEMENT_BONUS
    score += CONNECTION_BONUSES.get(thread.shared_connection, 0.0)

    score = round(min(score, 1.0), 4)

    if use_ai:
        return FitResult(
            score=score,
            mode="ai",
            explanation=ai_output.explanation,
            ai_output=ai_output,
        )
    return FitResult(score=score, mode="rules")


def compute_fit_score(
    thread: Thread,
    user_focus: UserFocus,
    ai_output: FitAIOutput | None = None,
) -> float:
    return score_fit(thread, user_focus, ai_output).score


def fit_bucket(fit_score: float) -> Literal["High", "Med", "Low"]:
    if fit_score >= STRONG_FIT:
        return "High"
    if fit_score >= MEDIUM_FIT:
        return "Med"
    return "Low"


def _ai_component(ai_output: FitAIOutput) -> float:
    score = 0.0
    # "unknown" counts the same as a miss
    if ai_output.industry_match == 1:
        score += INDUSTRY_WEIGHT
    if ai_output.role_match == 1:
        score += ROLE_WEIGHT
    if ai_output.seniority_bucket in JUNIOR_BUCKETS:
        score += JUNIOR_SENIORITY_WEIGHT
    else:
        score += OTHER_SENIORITY_WEIGHT
    return score


def _rule_component(thread: Thread, user_focus: UserFocus) -> float:
    score = 0.0

    if thread.industry.lower() == user_focus.target_industry.lower():
        score += INDUSTRY_WEIGHT

    if _role_keywords_overlap(user_focus.target_role, thread.role_title):
        score += ROLE_WEIGHT

    role_lower = thread.role_title.lower()
    if any(keyword in role_lower for keyword in JUNIOR_KEYWORDS):
        score += JUNIOR_SENIORITY_WEIGHT
    else:
        score += OTHER_SENIORITY_WEIGHT

    return score


def _role_keywords_overlap(target_role: str, role_title: str) -> bool:
    thread_role = role_title.lower()
    # re.split keeps empty tokens, and an empty token matches any title
    for keyword in re.split(r"\s+", target_role.lower()):
        if keyword in thread_role or thread_role in keyword:
            return True
    return False
