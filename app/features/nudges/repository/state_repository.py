"""
Durable storage for per-user LearningState.

The whole state is one JSON blob per user. Saves replace the blob in a single
SET so a reader never sees a partially written state. A blob that fails to
parse or validate is discarded in favor of the defaults.
"""

import json
from typing import Protocol

from pydantic import ValidationError

from app.config import settings
from app.features.nudges.domain.models import LearningState
from app.features.nudges.pipeline.learning import default_learning_state
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool: ...

    async def delete(self, key: str) -> bool: ...


class LearningStateRepositoryError(Exception):
    """Raised when a state write does not reach the store."""

    def __init__(self, message: str, user_id: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.user_id = user_id
        self.recoverable = recoverable


def serialize_state(state: LearningState) -> str:
    return json.dumps(state.model_dump(mode="json"), sort_keys=True)


def deserialize_state(raw: str) -> LearningState:
    """
    Parse a stored blob.

    Raises:
        ValueError: If the blob is not valid JSON or not a valid LearningState
    """
    try:
        return LearningState.model_validate_json(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid learning state blob: {e.error_count()} errors") from e


class LearningStateRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def load(self, user_id: str) -> LearningState:
        key = settings.state_key(user_id)
        raw = await self.store.get(key)
        if raw is None:
            return default_learning_state()

        try:
            return deserialize_state(raw)
        except ValueError as e:
            logger.warning(
                "Corrupt learning state blob, reverting to defaults",
                user_id=user_id,
                error=str(e),
            )
            return default_learning_state()

    async def save(self, user_id: str, state: LearningState) -> None:
        key = settings.state_key(user_id)
        ok = await self.store.set_with_ttl(key, serialize_state(state))
        if not ok:
            logger.error("Failed to persist learning state", user_id=user_id)
            raise LearningStateRepositoryError("Learning state was not persisted", user_id=user_id)

        logger.debug(
            "Learning state persisted",
            user_id=user_id,
            user_threshold=state.user_threshold,
            records=len(state.nudge_records),
        )

    async def reset(self, user_id: str) -> LearningState:
        """Drop the stored blob; the next load returns defaults."""
        await self.store.delete(settings.state_key(user_id))
        logger.info("Learning state reset", user_id=user_id)
        return default_learning_state()
