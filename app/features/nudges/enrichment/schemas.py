"""
Strict validation of Fit Normalizer and Tone Polisher replies.

A single malformed field invalidates the whole payload; the caller then
treats the enrichment as absent.
"""

import math
from typing import Any, get_args

from pydantic import ValidationError

from app.features.nudges.domain.models import (
    FitAINotes,
    FitAIOutput,
    PolishOutput,
    SeniorityBucket,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

MATCH_VALUES = (0, 1, "unknown")
SENIORITY_BUCKETS = frozenset(get_args(SeniorityBucket))


def _is_match_value(value: Any) -> bool:
    # bool is an int subclass; True must not pass as 1
    if isinstance(value, bool):
        return False
    return value in MATCH_VALUES


def _coerce_confidence(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        confidence = float(value)
    elif isinstance(value, str):
        try:
            confidence = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if math.isnan(confidence) or not 0.0 <= confidence <= 1.0:
        return None
    return confidence


def validate_fit_payload(payload: Any) -> FitAIOutput | None:
    """Return a FitAIOutput for a well-formed payload, otherwise None."""
    if not isinstance(payload, dict):
        return None

    if not _is_match_value(payload.get("industry_match")):
        return None
    if not _is_match_value(payload.get("role_match")):
        return None
    if payload.get("seniority_bucket") not in SENIORITY_BUCKETS:
        return None

    notes = payload.get("notes")
    if not isinstance(notes, dict):
        return None

    confidence = _coerce_confidence(payload.get("confidence"))
    if confidence is None:
        return None

    explanation = payload.get("explanation")
    if not isinstance(explanation, str):
        return None

    try:
        return FitAIOutput(
            industry_match=payload["industry_match"],
            role_match=payload["role_match"],
            seniority_bucket=payload["seniority_bucket"],
            notes=FitAINotes.model_validate(
                {
                    "normalized_industry": notes.get("normalized_industry"),
                    "normalized_role": notes.get("normalized_role"),
                }
            ),
            confidence=confidence,
            explanation=explanation,
        )
    except ValidationError as e:
        logger.debug("Fit payload rejected", errors=e.error_count())
        return None


def validate_polish_payload(payload: Any) -> PolishOutput | None:
    """Return a PolishOutput with trimmed, non-empty title and body, otherwise None."""
    if not isinstance(payload, dict):
        return None

    title = payload.get("title")
    body = payload.get("body")
    if not isinstance(title, str) or not title.strip():
        return None
    if not isinstance(body, str) or not body.strip():
        return None

    return PolishOutput(title=title.strip(), body=body.strip())
