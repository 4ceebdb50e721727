from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from app.services.openai_service import (
    OpenAIService,
    OpenAIServiceError,
    extract_json_object,
    parse_json_reply,
)


def _completion(content: str):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=42),
    )


def _client(create: AsyncMock):
    client = MagicMock()
    client.chat.completions.create = create
    return client


def test_parse_plain_json():
    assert parse_json_reply('{"title": "Hi", "body": "There"}') == {"title": "Hi", "body": "There"}


def test_parse_strips_markdown_fences():
    reply = '```json\n{"industry_match": 1, "notes": {"normalized_role": "TMT"}}\n```'

    assert parse_json_reply(reply)["notes"] == {"normalized_role": "TMT"}


def test_parse_ignores_chatter_around_object():
    reply = 'Sure! Here it is: {"explanation": "uses {braces} in text"} Hope that helps.'

    assert parse_json_reply(reply) == {"explanation": "uses {braces} in text"}


def test_extract_returns_none_without_object():
    assert extract_json_object("no json here") is None
    assert extract_json_object('{"unterminated": 1') is None


@pytest.mark.parametrize("reply", ["not json", "[1, 2]", '{"a": }'])
def test_parse_rejects_invalid_replies(reply):
    with pytest.raises(OpenAIServiceError):
        parse_json_reply(reply)


@pytest.mark.asyncio
async def test_call_json_requests_json_object():
    create = AsyncMock(return_value=_completion('{"title": "t", "body": "b"}'))
    service = OpenAIService(client=_client(create))

    assert await service.call_json("prompt") == {"title": "t", "body": "b"}
    kwargs = create.await_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["temperature"] == 0.1


@pytest.mark.asyncio
async def test_timeout_is_retried_then_succeeds(monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr("app.services.openai_service.asyncio.sleep", sleep)
    monkeypatch.setattr("app.services.openai_service.settings.ENRICHMENT_MAX_RETRIES", 2)
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    create = AsyncMock(side_effect=[openai.APITimeoutError(request=request), _completion('{"ok": true}')])
    service = OpenAIService(client=_client(create))

    assert await service.call_json("prompt") == {"ok": True}
    assert create.await_count == 2
    sleep.assert_awaited_once_with(1)


@pytest.mark.asyncio
async def test_repeated_timeouts_back_off_between_attempts(monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr("app.services.openai_service.asyncio.sleep", sleep)
    monkeypatch.setattr("app.services.openai_service.settings.ENRICHMENT_MAX_RETRIES", 3)
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    create = AsyncMock(side_effect=openai.APITimeoutError(request=request))
    service = OpenAIService(client=_client(create))

    with pytest.raises(OpenAIServiceError):
        await service.call_json("prompt")

    assert create.await_count == 3
    assert [c.args for c in sleep.await_args_list] == [(1,), (2,)]


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(400, request=request)
    create = AsyncMock(side_effect=openai.BadRequestError("bad request", response=response, body=None))
    service = OpenAIService(client=_client(create))

    with pytest.raises(OpenAIServiceError) as exc_info:
        await service.call_json("prompt")

    assert create.await_count == 1
    assert exc_info.value.api_error is not None


@pytest.mark.asyncio
async def test_empty_reply_raises():
    create = AsyncMock(return_value=_completion(""))
    service = OpenAIService(client=_client(create))

    with pytest.raises(OpenAIServiceError):
        await service.call_json("prompt")


def test_missing_api_key_is_not_recoverable(monkeypatch):
    monkeypatch.setattr("app.services.openai_service.settings.OPENAI_API_KEY", None)

    with pytest.raises(OpenAIServiceError) as exc_info:
        OpenAIService()

    assert exc_info.value.recoverable is False
