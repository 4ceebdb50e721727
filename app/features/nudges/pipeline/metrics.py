"""Restraint metrics - how often the engine chose to stay quiet."""

import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from app.features.nudges.domain.models import Decision, LearningState

from .decision import nudges_in_window

REASON_GROUP_CHARS = 30


@dataclass(slots=True)
class RestraintMetrics:
    threads_tracked: int
    nudges_last_7_days: int
    silence_rate: int
    top_silence_reason: str | None


def compute_restraint_metrics(
    decisions: Sequence[Decision],
    learning_state: LearningState,
    current_day: datetime,
) -> RestraintMetrics:
    silent = [d for d in decisions if not d.should_nudge]
    silence_rate = math.floor(len(silent) / len(decisions) * 100 + 0.5) if decisions else 0

    return RestraintMetrics(
        threads_tracked=len(decisions),
        nudges_last_7_days=nudges_in_window(learning_state.nudge_history, current_day),
        silence_rate=silence_rate,
        top_silence_reason=_top_silence_reason(silent),
    )


def _top_silence_reason(silent: Sequence[Decision]) -> str | None:
    # Reasons with dynamic numbers are grouped by their leading text
    counts: Counter[str] = Counter()
    first_text: dict[str, str] = {}
    for decision in silent:
        for reason in decision.reasons:
            key = reason.lower()[:REASON_GROUP_CHARS]
            counts[key] += 1
            first_text.setdefault(key, reason)

    if not counts:
        return None
    top_key, _ = counts.most_common(1)[0]
    return first_text[top_key]
