"""
Memoizing cache for enrichment results.

Requests are fire-and-forget asyncio tasks keyed by a request fingerprint.
At most one task per key is in flight, successful results are kept for the
process lifetime, and failures are dropped so a later request can retry.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from app.features.nudges.domain.models import Decision, Thread, UserFocus
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def fit_cache_key(thread: Thread, user_focus: UserFocus) -> str:
    return f"{thread.id}-{user_focus.target_industry}-{user_focus.target_role}"


def tone_cache_key(thread: Thread, decision: Decision) -> str:
    return f"{thread.id}-{decision.days_since}-{decision.should_nudge}"


class EnrichmentCache(Generic[T]):
    def __init__(self, name: str):
        self.name = name
        self._results: dict[str, T] = {}
        self._in_flight: dict[str, asyncio.Task] = {}

    def peek(self, key: str) -> T | None:
        """Cached result or None. Never waits."""
        return self._results.get(key)

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def schedule(self, key: str, factory: Callable[[], Awaitable[T | None]]) -> asyncio.Task | None:
        """
        Start a background request for key unless it is cached or already running.

        Must be called from a running event loop. Returns the task that owns
        the key, or None when a cached result already exists.
        """
        if key in self._results:
            return None
        existing = self._in_flight.get(key)
        if existing is not None:
            return existing

        task = asyncio.create_task(self._run(key, factory))
        self._in_flight[key] = task
        return task

    async def resolve(self, key: str, factory: Callable[[], Awaitable[T | None]]) -> T | None:
        """Like schedule(), but wait for the result (joining any in-flight request)."""
        cached = self._results.get(key)
        if cached is not None:
            return cached
        task = self.schedule(key, factory)
        if task is None:
            return self._results.get(key)
        return await asyncio.shield(task)

    async def drain(self) -> None:
        """Wait for every in-flight request. Used on shutdown and in tests."""
        pending = list(self._in_flight.values())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _run(self, key: str, factory: Callable[[], Awaitable[T | None]]) -> T | None:
        try:
            result = await factory()
        except Exception as e:
            logger.warning(
                "Enrichment request failed", cache=self.name, key=key, error=str(e), error_type=type(e).__name__
            )
            result = None
        finally:
            self._in_flight.pop(key, None)

        if result is not None:
            self._results[key] = result
        return result

    def __len__(self) -> int:
        return len(self._results)
