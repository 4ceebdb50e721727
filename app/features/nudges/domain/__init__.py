"""
Domain subpackage for the nudges feature.
"""

from .models import (
    Decision,
    FeedbackKind,
    FitAINotes,
    FitAIOutput,
    FitResult,
    FrozenDict,
    InteractionType,
    LearningState,
    NudgeHistoryEntry,
    NudgeOutcome,
    NudgeRecord,
    NudgeType,
    PolishOutput,
    SharedConnection,
    Thread,
    ThreadOverride,
    TimingState,
    UserFocus,
)

__all__ = [
    "Decision",
    "FeedbackKind",
    "FitAINotes",
    "FitAIOutput",
    "FitResult",
    "FrozenDict",
    "InteractionType",
    "LearningState",
    "NudgeHistoryEntry",
    "NudgeOutcome",
    "NudgeRecord",
    "NudgeType",
    "PolishOutput",
    "SharedConnection",
    "Thread",
    "ThreadOverride",
    "TimingState",
    "UserFocus",
]
