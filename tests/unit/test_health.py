"""
Tests for health check endpoints.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


def test_readyz_endpoint_all_services_healthy():
    """Test readiness endpoint when Redis answers and config is complete."""
    with (
        patch("app.routes.health.fast_redis.ping", new=AsyncMock(return_value=True)),
        patch("app.routes.health.settings.OPENAI_API_KEY", "sk-test"),
    ):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["redis"]["ok"] is True
    assert data["checks"]["configuration"]["ok"] is True
    assert data["checks"]["configuration"]["issues"] is None


def test_readyz_endpoint_redis_unhealthy():
    """Test readiness endpoint when Redis is down."""
    with patch("app.routes.health.fast_redis.ping", new=AsyncMock(return_value=False)):
        response = client.get("/readyz")

    # Should still return 200, but overall_ok should be False
    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["redis"]["ok"] is False


def test_readyz_endpoint_redis_error():
    """Test readiness endpoint when the Redis check itself raises."""
    with patch("app.routes.health.fast_redis.ping", new=AsyncMock(side_effect=ConnectionError("refused"))):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is False
    assert "ConnectionError" in data["checks"]["redis"]["error"]


def test_readyz_missing_ai_key_does_not_fail_readiness():
    """AI assist without a key degrades to rules and stays ready."""
    with (
        patch("app.routes.health.fast_redis.ping", new=AsyncMock(return_value=True)),
        patch("app.routes.health.settings.AI_ASSIST_ENABLED", True),
        patch("app.routes.health.settings.OPENAI_API_KEY", None),
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["configuration"]["ai_enabled"] is False
    assert data["checks"]["configuration"]["issues"] == [
        "OPENAI_API_KEY not set, AI assist falls back to rules"
    ]
