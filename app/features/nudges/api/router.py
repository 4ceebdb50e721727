"""
Nudge decision routes.

Usage:
    1. POST /nudges/evaluate - Decide every tracked thread for "today"
    2. POST /nudges/feedback - Record what the user did with a suggestion
    3. GET /nudges/state - Current learning state
    4. DELETE /nudges/state - Reset learning state to defaults
    5. GET /nudges/records - Nudge audit trail, newest first
    6. GET /nudges/norms - Follow-up windows with learned shifts applied

The caller is identified by the X-User-Id header; a missing header maps to
the single local user.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.features.nudges.domain.models import LearningState, NudgeRecord
from app.features.nudges.pipeline.fit import fit_bucket
from app.features.nudges.pipeline.norms import format_window
from app.features.nudges.repository.state_repository import LearningStateRepositoryError
from app.features.nudges.services.nudge_service import (
    EvaluationResult,
    NudgeService,
    get_nudge_service,
)
from app.infrastructure.observability.logging import get_logger

from .schemas import (
    ActiveNudgeResponse,
    EvaluateRequest,
    EvaluateResponse,
    FeedbackRequest,
    NormRowResponse,
    NormsResponse,
    RestraintMetricsResponse,
    SelectedThreadResponse,
    ThreadDecisionResponse,
)

router = APIRouter(prefix="/nudges", tags=["nudges"])
logger = get_logger(__name__)

DEFAULT_USER_ID = "local"


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if x_user_id is None or not x_user_id.strip():
        return DEFAULT_USER_ID
    return x_user_id.strip()


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate_threads(
    request: EvaluateRequest,
    user_id: str = Depends(get_user_id),
    service: NudgeService = Depends(get_nudge_service),
):
    """
    Evaluate every thread and pick at most one active nudge.

    Returns:
        EvaluateResponse: Per-thread decisions, active nudge, restraint metrics
        and details for the selected thread
    """
    result = await service.evaluate(
        user_id,
        request.threads,
        request.focus,
        request.current_day,
        selected_thread_id=request.selected_thread_id,
    )
    return _to_evaluate_response(result)


@router.post("/feedback", response_model=LearningState)
async def submit_feedback(
    request: FeedbackRequest,
    user_id: str = Depends(get_user_id),
    service: NudgeService = Depends(get_nudge_service),
):
    """
    Apply feedback to the user's learning state.

    Raises:
        503: The new learning state could not be persisted
    """
    try:
        return await service.apply_feedback(
            user_id,
            request.thread_id,
            request.feedback,
            request.interaction_type,
            request.current_day,
            thread_name=request.thread_name,
            confidence_score=request.confidence_score,
        )
    except LearningStateRepositoryError as e:
        logger.error("Feedback not saved", user_id=user_id, thread_id=request.thread_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Learning state is temporarily unavailable",
        ) from e


@router.get("/state", response_model=LearningState)
async def get_learning_state(
    user_id: str = Depends(get_user_id),
    service: NudgeService = Depends(get_nudge_service),
):
    return await service.get_state(user_id)


@router.delete("/state", response_model=LearningState)
async def reset_learning_state(
    user_id: str = Depends(get_user_id),
    service: NudgeService = Depends(get_nudge_service),
):
    """Forget everything learned for this user."""
    return await service.reset(user_id)


@router.get("/records", response_model=list[NudgeRecord])
async def list_nudge_records(
    user_id: str = Depends(get_user_id),
    service: NudgeService = Depends(get_nudge_service),
):
    return list(await service.records(user_id))


@router.get("/norms", response_model=NormsResponse)
async def get_norms(
    user_id: str = Depends(get_user_id),
    service: NudgeService = Depends(get_nudge_service),
):
    rows = await service.norms(user_id)
    return NormsResponse(
        norms=[
            NormRowResponse(
                interaction_type=row.interaction_type,
                base_window=row.base_window,
                window_shift=row.window_shift,
                effective_window=row.effective_window,
                label=format_window(row.effective_window),
            )
            for row in rows
        ]
    )


def _to_evaluate_response(result: EvaluationResult) -> EvaluateResponse:
    decisions = [
        ThreadDecisionResponse(
            thread_id=evaluation.thread.id,
            thread_name=evaluation.thread.name,
            decision=evaluation.decision,
            fit_bucket=fit_bucket(evaluation.decision.fit_score),
        )
        for evaluation in result.evaluations
    ]

    active_nudge = None
    active = result.active
    if active is not None:
        active_nudge = ActiveNudgeResponse(
            thread_id=active.thread.id,
            thread_name=active.thread.name,
            confidence_score=active.decision.confidence_score,
            reasons=active.decision.reasons,
        )

    selected = None
    if result.selected is not None:
        fit = result.selected.fit
        selected = SelectedThreadResponse(
            thread_id=result.selected.thread_id,
            fit_score=fit.score,
            fit_mode=fit.mode,
            fit_explanation=fit.explanation,
            ai_output=fit.ai_output,
            polish=result.selected.polish,
            enrichment_pending=result.selected.enrichment_pending,
        )

    metrics = result.metrics
    return EvaluateResponse(
        decisions=decisions,
        active_nudge=active_nudge,
        metrics=RestraintMetricsResponse(
            threads_tracked=metrics.threads_tracked,
            nudges_last_7_days=metrics.nudges_last_7_days,
            silence_rate=metrics.silence_rate,
            top_silence_reason=metrics.top_silence_reason,
        ),
        selected=selected,
        user_threshold=result.state.user_threshold,
    )
