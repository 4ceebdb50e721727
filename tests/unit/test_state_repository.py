import json
from datetime import timedelta

import pytest

from app.config import settings
from app.features.nudges.domain.models import LearningState
from app.features.nudges.pipeline.learning import apply_feedback, default_learning_state
from app.features.nudges.repository.state_repository import (
    LearningStateRepositoryError,
    deserialize_state,
    serialize_state,
)


@pytest.mark.asyncio
async def test_missing_blob_returns_defaults(state_repository):
    assert await state_repository.load("nobody") == default_learning_state()


@pytest.mark.asyncio
async def test_save_and_load_preserve_state(state_repository, fake_redis, today):
    state = default_learning_state()
    state = apply_feedback("t-1", "not_now", "Coffee Chat", state, today, thread_name="Priya", prior_confidence=0.9)
    state = apply_feedback("t-2", "suppress", "Referral Intro", state, today + timedelta(days=1))

    await state_repository.save("user-123", state)

    assert settings.state_key("user-123") in fake_redis.store
    assert await state_repository.load("user-123") == state


@pytest.mark.asyncio
async def test_corrupt_blob_reverts_to_defaults(state_repository, fake_redis):
    fake_redis.store[settings.state_key("user-123")] = "{not json"

    assert await state_repository.load("user-123") == default_learning_state()


@pytest.mark.asyncio
async def test_invalid_shape_reverts_to_defaults(state_repository, fake_redis):
    fake_redis.store[settings.state_key("user-123")] = json.dumps({"user_threshold": "very high"})

    assert await state_repository.load("user-123") == default_learning_state()


@pytest.mark.asyncio
async def test_failed_write_raises(state_repository, fake_redis):
    fake_redis.fail_writes = True

    with pytest.raises(LearningStateRepositoryError):
        await state_repository.save("user-123", default_learning_state())


@pytest.mark.asyncio
async def test_reset_deletes_blob(state_repository, fake_redis, today):
    state = apply_feedback("t-1", "too_early", "Coffee Chat", default_learning_state(), today)
    await state_repository.save("user-123", state)

    reset = await state_repository.reset("user-123")

    assert reset == default_learning_state()
    assert fake_redis.store == {}


def test_suppressed_threads_serialize_as_ordered_list(today):
    state = LearningState(suppressed_threads=("t-2", "t-1", "t-2"))

    blob = json.loads(serialize_state(state))

    assert blob["suppressed_threads"] == ["t-2", "t-1"]
    assert deserialize_state(serialize_state(state)).suppressed_threads == ("t-2", "t-1")


def test_deserialize_rejects_bad_blob():
    with pytest.raises(ValueError):
        deserialize_state('{"nudge_records": [{"thread_id": 1}]}')


def test_loaded_state_mappings_are_read_only(today):
    state = apply_feedback("t-1", "not_now", "Coffee Chat", default_learning_state(), today)
    state = apply_feedback("t-1", "too_early", "Coffee Chat", state, today)

    loaded = deserialize_state(serialize_state(state))

    assert loaded == state
    with pytest.raises(TypeError):
        loaded.thread_overrides.pop("t-1")
    with pytest.raises(TypeError):
        loaded.window_shifts["Coffee Chat"] = 0
    assert json.loads(serialize_state(loaded))["window_shifts"] == {"Coffee Chat": 1}
