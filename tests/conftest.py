from datetime import UTC, datetime, timedelta

import pytest

from app.features.nudges.domain.models import Thread, UserFocus
from app.features.nudges.enrichment.providers import NullEnrichmentProvider
from app.features.nudges.repository.state_repository import LearningStateRepository
from app.features.nudges.services.nudge_service import NudgeService, get_nudge_service

TODAY = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}
        self.fail_writes = False

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool:
        if self.fail_writes:
            return False
        self.store[key] = value
        return True

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def delete(self, key: str) -> bool:
        return self.store.pop(key, None) is not None

    async def ping(self) -> bool:
        return True


def build_thread(**overrides) -> Thread:
    """A Coffee Chat that nudges on TODAY under default learning state."""
    data = {
        "id": "t-1",
        "name": "Priya Shah",
        "company": "Evercore",
        "role_title": "TMT Analyst",
        "industry": "Investment Banking",
        "interaction_type": "Coffee Chat",
        "last_interaction_date": TODAY - timedelta(days=4),
        "prior_engagement": True,
        "typical_response_latency_days": 2,
        "shared_connection": "Same school",
    }
    data.update(overrides)
    return Thread(**data)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def focus():
    return UserFocus(target_industry="Investment Banking", target_role="TMT")


@pytest.fixture
def make_thread():
    return build_thread


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def state_repository(fake_redis):
    return LearningStateRepository(fake_redis)


@pytest.fixture
def nudge_service(state_repository):
    return NudgeService(repository=state_repository, provider=NullEnrichmentProvider())


@pytest.fixture
def apply_service_override(nudge_service):
    def _apply(app):
        app.dependency_overrides[get_nudge_service] = lambda: nudge_service

    return _apply
