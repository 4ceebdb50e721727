"""
Nudge service - ties the pure pipeline to persistence and enrichment.

Evaluation never waits on the AI provider. It reads whatever enrichment is
already cached, schedules background requests for the selected thread, and
returns; a later evaluation picks the results up from the cache.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from app.features.nudges.domain.models import (
    Decision,
    FeedbackKind,
    FitAIOutput,
    FitResult,
    InteractionType,
    LearningState,
    NudgeRecord,
    PolishOutput,
    Thread,
    UserFocus,
)
from app.features.nudges.enrichment.cache import EnrichmentCache, fit_cache_key, tone_cache_key
from app.features.nudges.enrichment.providers import EnrichmentProvider, get_enrichment_provider
from app.features.nudges.pipeline.decision import FIT_OVERRIDE_SCORE, decide
from app.features.nudges.pipeline.fit import score_fit
from app.features.nudges.pipeline.learning import FEEDBACK_OUTCOMES, apply_feedback
from app.features.nudges.pipeline.metrics import RestraintMetrics, compute_restraint_metrics
from app.features.nudges.pipeline.norms import RECRUITING_NORMS, shifted_window
from app.features.nudges.pipeline.overrides import merge_thread
from app.features.nudges.repository.state_repository import LearningStateRepository
from app.infrastructure.observability.logging import get_logger, log_decision, log_feedback
from app.services.redis_client import fast_redis

logger = get_logger(__name__)


@dataclass(slots=True)
class ThreadEvaluation:
    thread: Thread
    decision: Decision


@dataclass(slots=True)
class SelectedThreadDetails:
    thread_id: str
    fit: FitResult
    polish: PolishOutput | None = None
    enrichment_pending: bool = False


@dataclass(slots=True)
class EvaluationResult:
    evaluations: list[ThreadEvaluation]
    metrics: RestraintMetrics
    active_thread_id: str | None = None
    selected: SelectedThreadDetails | None = None
    state: LearningState | None = field(default=None, repr=False)

    @property
    def active(self) -> ThreadEvaluation | None:
        for evaluation in self.evaluations:
            if evaluation.thread.id == self.active_thread_id:
                return evaluation
        return None


@dataclass(slots=True)
class NormRow:
    interaction_type: str
    base_window: tuple[int, int]
    window_shift: int
    effective_window: tuple[int, int]


class NudgeService:
    def __init__(
        self,
        repository: LearningStateRepository,
        provider: EnrichmentProvider,
        fit_cache: EnrichmentCache[FitAIOutput] | None = None,
        tone_cache: EnrichmentCache[PolishOutput] | None = None,
    ):
        self.repository = repository
        self.provider = provider
        self.fit_cache = fit_cache if fit_cache is not None else EnrichmentCache("fit")
        self.tone_cache = tone_cache if tone_cache is not None else EnrichmentCache("tone")
        # Feedback is load, transition, save; one writer per user at a time
        self._user_locks: dict[str, asyncio.Lock] = {}

    async def evaluate(
        self,
        user_id: str,
        threads: Sequence[Thread],
        user_focus: UserFocus,
        current_day: datetime,
        selected_thread_id: str | None = None,
    ) -> EvaluationResult:
        """
        Decide every thread against the user's stored learning state.

        The active nudge is the first thread (in input order) whose decision
        surfaces one. Details are returned for the selected thread, or the
        active thread when nothing is selected.
        """
        state = await self.repository.load(user_id)

        evaluations: list[ThreadEvaluation] = []
        for thread in threads:
            ai_output = self._cached_fit(thread, user_focus)
            decision = decide(thread, user_focus, current_day, state, ai_output)
            evaluations.append(ThreadEvaluation(thread=thread, decision=decision))
            log_decision(
                thread_id=thread.id,
                should_nudge=decision.should_nudge,
                nudge_type=decision.nudge_type,
                confidence_score=decision.confidence_score,
                fit_score=decision.fit_score,
                timing_state=decision.timing_state,
                user_id=user_id,
            )

        decisions = [evaluation.decision for evaluation in evaluations]
        metrics = compute_restraint_metrics(decisions, state, current_day)

        active_thread_id = next(
            (evaluation.thread.id for evaluation in evaluations if evaluation.decision.should_nudge),
            None,
        )

        focus_id = selected_thread_id or active_thread_id
        selected = None
        if focus_id is not None:
            match = next((e for e in evaluations if e.thread.id == focus_id), None)
            if match is None:
                logger.warning("Selected thread not in evaluation set", thread_id=focus_id, user_id=user_id)
            else:
                selected = self._selected_details(match, user_focus, state)

        logger.info(
            "Threads evaluated",
            user_id=user_id,
            threads_tracked=metrics.threads_tracked,
            silence_rate=metrics.silence_rate,
            active_thread_id=active_thread_id,
            ai_enabled=self.provider.enabled,
        )

        return EvaluationResult(
            evaluations=evaluations,
            metrics=metrics,
            active_thread_id=active_thread_id,
            selected=selected,
            state=state,
        )

    async def apply_feedback(
        self,
        user_id: str,
        thread_id: str,
        feedback: FeedbackKind,
        interaction_type: InteractionType,
        current_day: datetime,
        thread_name: str | None = None,
        confidence_score: float | None = None,
    ) -> LearningState:
        """
        Apply one feedback event and persist the resulting state.

        Raises:
            ValueError: Unknown feedback kind
            LearningStateRepositoryError: The new state could not be saved
        """
        async with self._lock_for(user_id):
            state = await self.repository.load(user_id)
            new_state = apply_feedback(
                thread_id,
                feedback,
                interaction_type,
                state,
                current_day,
                thread_name=thread_name,
                prior_confidence=confidence_score,
            )
            await self.repository.save(user_id, new_state)

        log_feedback(
            thread_id=thread_id,
            feedback=feedback,
            user_threshold=new_state.user_threshold,
            outcome=FEEDBACK_OUTCOMES.get(feedback),
            user_id=user_id,
        )
        return new_state

    async def get_state(self, user_id: str) -> LearningState:
        return await self.repository.load(user_id)

    async def reset(self, user_id: str) -> LearningState:
        async with self._lock_for(user_id):
            return await self.repository.reset(user_id)

    async def records(self, user_id: str) -> tuple[NudgeRecord, ...]:
        state = await self.repository.load(user_id)
        return state.nudge_records

    async def norms(self, user_id: str) -> list[NormRow]:
        """Norms table with the user's learned window shifts applied."""
        state = await self.repository.load(user_id)
        rows = []
        for interaction_type, base_window in RECRUITING_NORMS.items():
            shift = state.window_shift(interaction_type)
            rows.append(
                NormRow(
                    interaction_type=interaction_type,
                    base_window=base_window,
                    window_shift=shift,
                    effective_window=shifted_window(interaction_type, shift),
                )
            )
        return rows

    async def drain(self) -> None:
        """Wait for background enrichment. Called on shutdown and from tests."""
        await self.fit_cache.drain()
        await self.tone_cache.drain()

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        return self._user_locks.setdefault(user_id, asyncio.Lock())

    def _cached_fit(self, thread: Thread, user_focus: UserFocus) -> FitAIOutput | None:
        if not self.provider.enabled:
            return None
        return self.fit_cache.peek(fit_cache_key(thread, user_focus))

    def _selected_details(
        self,
        evaluation: ThreadEvaluation,
        user_focus: UserFocus,
        state: LearningState,
    ) -> SelectedThreadDetails:
        thread = evaluation.thread
        decision = evaluation.decision
        effective = merge_thread(thread, state.override_for(thread.id))

        fit = score_fit(effective, user_focus, self._cached_fit(thread, user_focus))
        if effective.override_fit:
            fit = fit.model_copy(update={"score": FIT_OVERRIDE_SCORE})
        details = SelectedThreadDetails(thread_id=thread.id, fit=fit)
        if not self.provider.enabled:
            return details

        fit_key = fit_cache_key(thread, user_focus)
        if self.fit_cache.peek(fit_key) is None:
            self.fit_cache.schedule(fit_key, lambda: self.provider.normalize_fit(effective, user_focus))
            details.enrichment_pending = True

        tone_key = tone_cache_key(thread, decision)
        details.polish = self.tone_cache.peek(tone_key)
        if details.polish is None and (decision.should_nudge or decision.nudge_type == "DO_NOTHING_YET"):
            window_shift = state.window_shift(effective.interaction_type)
            self.tone_cache.schedule(
                tone_key, lambda: self.provider.polish_tone(effective, decision, window_shift)
            )
            details.enrichment_pending = True

        return details


_nudge_service: NudgeService | None = None


def get_nudge_service() -> NudgeService:
    """Process-wide service used as a FastAPI dependency."""
    global _nudge_service
    if _nudge_service is None:
        _nudge_service = NudgeService(
            repository=LearningStateRepository(fast_redis),
            provider=get_enrichment_provider(),
        )
    return _nudge_service
