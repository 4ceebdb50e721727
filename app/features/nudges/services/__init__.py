"""
Service layer for the nudge decision engine.
"""

from .nudge_service import (
    EvaluationResult,
    NormRow,
    NudgeService,
    SelectedThreadDetails,
    ThreadEvaluation,
    get_nudge_service,
)

__all__ = [
    "EvaluationResult",
    "NormRow",
    "NudgeService",
    "SelectedThreadDetails",
    "ThreadEvaluation",
    "get_nudge_service",
]
