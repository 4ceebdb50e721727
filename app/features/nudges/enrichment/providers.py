"""
Enrichment providers.

The engine treats enrichment as optional: every provider method returns None
instead of raising, and NullEnrichmentProvider is a fully supported choice.
"""

from typing import Protocol

from app.config import settings
from app.features.nudges.domain.models import (
    Decision,
    FitAIOutput,
    PolishOutput,
    Thread,
    UserFocus,
)
from app.features.nudges.pipeline.fit import AI_CONFIDENCE_FLOOR
from app.features.nudges.pipeline.norms import format_window, shifted_window
from app.infrastructure.observability.logging import get_logger
from app.services.openai_service import OpenAIService, OpenAIServiceError, get_openai_service

from .prompts import FitPromptArgs, TonePromptArgs, build_fit_prompt, build_tone_prompt
from .schemas import validate_fit_payload, validate_polish_payload

logger = get_logger(__name__)


class EnrichmentProvider(Protocol):
    enabled: bool

    async def normalize_fit(self, thread: Thread, user_focus: UserFocus) -> FitAIOutput | None: ...

    async def polish_tone(
        self, thread: Thread, decision: Decision, window_shift: int = 0
    ) -> PolishOutput | None: ...


class NullEnrichmentProvider:
    """Always-absent enrichment. Used when AI assist is off or no key is set."""

    enabled = False

    async def normalize_fit(self, thread: Thread, user_focus: UserFocus) -> FitAIOutput | None:
        return None

    async def polish_tone(
        self, thread: Thread, decision: Decision, window_shift: int = 0
    ) -> PolishOutput | None:
        return None


class OpenAIEnrichmentProvider:
    """Fit Normalizer and Tone Polisher backed by OpenAI JSON completions."""

    enabled = True

    def __init__(self, service: OpenAIService | None = None):
        self._service = service

    @property
    def service(self) -> OpenAIService:
        if self._service is None:
            self._service = get_openai_service()
        return self._service

    async def normalize_fit(self, thread: Thread, user_focus: UserFocus) -> FitAIOutput | None:
        prompt = build_fit_prompt(
            FitPromptArgs(
                target_industry=user_focus.target_industry,
                target_role=user_focus.target_role,
                company=thread.company,
                role_title=thread.role_title,
                industry_text=thread.industry,
                seniority_text=thread.role_title,
            )
        )

        try:
            payload = await self.service.call_json(prompt)
        except OpenAIServiceError as e:
            logger.warning(
                "AI fit normalization failed", thread_id=thread.id, error=str(e), api_error=e.api_error
            )
            return None

        validated = validate_fit_payload(payload)
        if validated is None:
            logger.warning("AI fit normalization returned an invalid payload", thread_id=thread.id)
            return None

        if validated.confidence < AI_CONFIDENCE_FLOOR:
            logger.info(
                "AI fit normalization below confidence floor",
                thread_id=thread.id,
                confidence=validated.confidence,
            )
            return None

        return validated

    async def polish_tone(
        self, thread: Thread, decision: Decision, window_shift: int = 0
    ) -> PolishOutput | None:
        # Only suggestions the user actually sees get polished
        if not decision.should_nudge and decision.nudge_type != "DO_NOTHING_YET":
            return None

        if decision.should_nudge:
            raw_message = f"If you want, now is within your usual follow-up window for {thread.name}."
        else:
            raw_message = " ".join(decision.reasons)

        prompt = build_tone_prompt(
            TonePromptArgs(
                contact_name=thread.name,
                interaction_type=thread.interaction_type,
                days_since=decision.days_since,
                window=format_window(shifted_window(thread.interaction_type, window_shift)),
                shared_connection=thread.shared_connection,
                reasons=list(decision.reasons),
                raw_message=raw_message,
            )
        )

        try:
            payload = await self.service.call_json(prompt)
        except OpenAIServiceError as e:
            logger.warning("AI tone polishing failed", thread_id=thread.id, error=str(e))
            return None

        validated = validate_polish_payload(payload)
        if validated is None:
            logger.warning("AI tone polishing returned an invalid payload", thread_id=thread.id)
        return validated


def get_enrichment_provider() -> EnrichmentProvider:
    if not settings.ai_enabled():
        logger.info("AI enrichment disabled, using rule-based fit and literal reasons")
        return NullEnrichmentProvider()

    try:
        return OpenAIEnrichmentProvider(get_openai_service())
    except OpenAIServiceError as e:
        logger.warning("AI enrichment unavailable, falling back to rules", error=str(e))
        return NullEnrichmentProvider()
