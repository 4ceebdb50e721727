"""
Structured logging setup for the follow-up guardrail service.
Provides JSON-formatted logs with consistent fields for nudge decisions and feedback.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging with JSON output for production.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_trace_context,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _add_trace_context(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add trace context to log entries if available."""
    # TODO: bind the X-User-Id header through structlog.contextvars once requests carry a trace id
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Convenience functions for common log patterns
def log_decision(
    thread_id: str,
    should_nudge: bool,
    nudge_type: str,
    confidence_score: float,
    fit_score: float,
    timing_state: str,
    user_id: str = None,
):
    """Log a nudge decision with consistent fields."""
    logger = get_logger("nudges.decision")

    log_data = {
        "thread_id": thread_id,
        "should_nudge": should_nudge,
        "nudge_type": nudge_type,
        "confidence_score": confidence_score,
        "fit_score": fit_score,
        "timing_state": timing_state,
        "event_type": "nudge_decision",
    }

    if user_id:
        log_data["user_id"] = user_id

    if should_nudge:
        logger.info("Nudge surfaced", **log_data)
    else:
        logger.debug("Nudge withheld", **log_data)


def log_feedback(
    thread_id: str,
    feedback: str,
    user_threshold: float,
    outcome: str | None = None,
    user_id: str = None,
):
    """Log a feedback-driven learning transition with consistent fields."""
    logger = get_logger("nudges.learning")

    log_data = {
        "thread_id": thread_id,
        "feedback": feedback,
        "user_threshold": user_threshold,
        "event_type": "nudge_feedback",
    }

    if outcome:
        log_data["outcome"] = outcome
    if user_id:
        log_data["user_id"] = user_id

    logger.info("Feedback applied", **log_data)
