"""
Pure decision pipeline: norms, timing, fit, confidence, policy and learning.
"""

from .confidence import score_confidence
from .decision import decide, nudges_in_window
from .fit import compute_fit_score, fit_bucket, score_fit
from .learning import apply_feedback, default_learning_state
from .metrics import RestraintMetrics, compute_restraint_metrics
from .norms import RECRUITING_NORMS, optimal_window, shifted_window
from .overrides import merge_thread
from .timing import classify_timing, days_since_interaction

__all__ = [
    "RECRUITING_NORMS",
    "RestraintMetrics",
    "apply_feedback",
    "classify_timing",
    "compute_fit_score",
    "compute_restraint_metrics",
    "days_since_interaction",
    "decide",
    "default_learning_state",
    "fit_bucket",
    "merge_thread",
    "nudges_in_window",
    "optimal_window",
    "score_confidence",
    "score_fit",
    "shifted_window",
]
