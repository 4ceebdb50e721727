"""HTTP request/response models for the nudges API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.features.nudges.domain.models import (
    Decision,
    FeedbackKind,
    FitAIOutput,
    FitMode,
    InteractionType,
    PolishOutput,
    Thread,
    UserFocus,
)


class EvaluateRequest(BaseModel):
    """Request for POST /nudges/evaluate"""

    threads: list[Thread] = Field(default_factory=list)
    focus: UserFocus = Field(default_factory=UserFocus)
    current_day: datetime
    selected_thread_id: str | None = None


class ThreadDecisionResponse(BaseModel):
    thread_id: str
    thread_name: str
    decision: Decision
    fit_bucket: Literal["High", "Med", "Low"]


class ActiveNudgeResponse(BaseModel):
    thread_id: str
    thread_name: str
    confidence_score: float
    reasons: list[str]


class RestraintMetricsResponse(BaseModel):
    threads_tracked: int
    nudges_last_7_days: int
    silence_rate: int
    top_silence_reason: str | None = None


class SelectedThreadResponse(BaseModel):
    thread_id: str
    fit_score: float
    fit_mode: FitMode
    fit_explanation: str | None = None
    ai_output: FitAIOutput | None = None
    polish: PolishOutput | None = None
    enrichment_pending: bool = False


class EvaluateResponse(BaseModel):
    """Response for POST /nudges/evaluate"""

    decisions: list[ThreadDecisionResponse]
    active_nudge: ActiveNudgeResponse | None = None
    metrics: RestraintMetricsResponse
    selected: SelectedThreadResponse | None = None
    user_threshold: float


class FeedbackRequest(BaseModel):
    """Request for POST /nudges/feedback"""

    thread_id: str = Field(..., min_length=1)
    feedback: FeedbackKind
    interaction_type: InteractionType
    current_day: datetime
    thread_name: str | None = None
    confidence_score: float | None = Field(default=None, ge=0.0, le=1.0)


class NormRowResponse(BaseModel):
    interaction_type: str
    base_window: tuple[int, int]
    window_shift: int
    effective_window: tuple[int, int]
    label: str


class NormsResponse(BaseModel):
    norms: list[NormRowResponse]
