# app/services/openai_service.py
"""
OpenAI Service for JSON-only enrichment calls.
Backs the Fit Normalizer and the Tone Polisher with one chat-completions client.
"""

import asyncio
import json
from typing import Any

import openai
from openai import AsyncOpenAI

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class OpenAIServiceError(Exception):
    """Base exception for OpenAI service errors."""

    def __init__(self, message: str, api_error: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.api_error = api_error
        self.recoverable = recoverable


class OpenAIService:
    """
    Thin JSON client over OpenAI chat completions.

    Every call asks for a single JSON object and returns it parsed. Callers
    decide what a failure means; this class only raises OpenAIServiceError.
    """

    def __init__(self, client: AsyncOpenAI | None = None):
        self.client = client
        if self.client is None:
            self._initialize_client()
        logger.info("OpenAI service initialized for enrichment")

    def _initialize_client(self):
        """Initialize OpenAI async client with configuration."""
        if not settings.OPENAI_API_KEY:
            raise OpenAIServiceError("OPENAI_API_KEY not configured in settings", recoverable=False)

        try:
            self.client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                base_url=settings.OPENAI_BASE_URL,
                timeout=settings.ENRICHMENT_TIMEOUT_SECONDS,
                max_retries=0,  # retries are handled in _call_openai_with_retry
            )

            logger.info(
                "OpenAI client initialized",
                model=settings.OPENAI_MODEL,
                timeout=settings.ENRICHMENT_TIMEOUT_SECONDS,
            )

        except Exception as e:
            logger.error("Failed to initialize OpenAI client", error=str(e))
            raise OpenAIServiceError(f"OpenAI client initialization failed: {e}") from e

    async def call_json(self, prompt: str) -> dict[str, Any]:
        """
        Send a user prompt and return the first JSON object in the reply.

        Raises:
            OpenAIServiceError: On transport failure, empty reply or unparseable JSON
        """
        logger.debug("Starting enrichment call", model=settings.OPENAI_MODEL, prompt_length=len(prompt))

        content = await self._call_openai_with_retry(prompt)
        parsed = parse_json_reply(content)

        logger.debug("Enrichment call succeeded", response_length=len(content))
        return parsed

    async def _call_openai_with_retry(self, prompt: str) -> str:
        """Call OpenAI API with retry logic for transient failures."""

        last_error = None
        max_retries = max(1, settings.ENRICHMENT_MAX_RETRIES)

        for attempt in range(max_retries):
            try:
                response = await self.client.chat.completions.create(
                    model=settings.OPENAI_MODEL,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=settings.OPENAI_MAX_TOKENS,
                    temperature=settings.OPENAI_TEMPERATURE,
                    response_format={"type": "json_object"},
                )

                if not response.choices or not response.choices[0].message.content:
                    raise OpenAIServiceError("Empty response from OpenAI API")

                result = response.choices[0].message.content.strip()

                logger.info(
                    "OpenAI API call successful",
                    attempt=attempt + 1,
                    response_length=len(result),
                    usage_tokens=response.usage.total_tokens if response.usage else 0,
                )

                return result

            except OpenAIServiceError:
                raise

            except openai.RateLimitError as e:
                last_error = e
                wait_time = min(2**attempt, 30)  # Exponential backoff, max 30s

                logger.warning(
                    "OpenAI rate limit hit, retrying",
                    attempt=attempt + 1,
                    wait_time=wait_time,
                    error=str(e),
                )

                if attempt < max_retries - 1:
                    await asyncio.sleep(wait_time)

            except openai.APITimeoutError as e:
                last_error = e
                wait_time = min(2**attempt, 30)

                logger.warning(
                    "OpenAI API timeout, retrying",
                    attempt=attempt + 1,
                    wait_time=wait_time,
                    timeout=settings.ENRICHMENT_TIMEOUT_SECONDS,
                    error=str(e),
                )

                if attempt < max_retries - 1:
                    await asyncio.sleep(wait_time)

            except openai.APIStatusError as e:
                last_error = e
                # Don't retry on client errors (4xx)
                if 400 <= e.status_code < 500:
                    logger.error("OpenAI client error (not retrying)", error=str(e))
                    break

                logger.warning("OpenAI API error, retrying", attempt=attempt + 1, error=str(e))

            except openai.APIError as e:
                last_error = e
                logger.warning("OpenAI API error, retrying", attempt=attempt + 1, error=str(e))

        logger.error(
            "OpenAI API call failed after all retries",
            max_retries=max_retries,
            final_error=str(last_error),
        )

        raise OpenAIServiceError(
            f"OpenAI API failed after {max_retries} attempts",
            api_error=str(last_error),
        ) from last_error


def extract_json_object(text: str) -> str | None:
    """Return the first balanced {...} block in text, honoring JSON strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape_next = False

    for index in range(start, len(text)):
        char = text[index]

        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    return None


def parse_json_reply(content: str) -> dict[str, Any]:
    """Parse a model reply that should hold one JSON object, tolerating fences and chatter."""
    text = content.strip()

    # Strip ```json fences if the model added them anyway
    if text.startswith("```"):
        lines = text.split("\n")
        start_line = next((i for i, line in enumerate(lines) if "{" in line), -1)
        end_line = next((i for i in range(len(lines) - 1, -1, -1) if "}" in lines[i]), -1)
        if start_line >= 0 and end_line >= start_line:
            text = "\n".join(lines[start_line : end_line + 1])

    candidate = extract_json_object(text) or text

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse OpenAI response as JSON", error=str(e), raw_result=content[:200])
        raise OpenAIServiceError("OpenAI returned invalid JSON") from e

    if not isinstance(parsed, dict):
        raise OpenAIServiceError("OpenAI returned JSON that is not an object")
    return parsed


_openai_service: OpenAIService | None = None


def get_openai_service() -> OpenAIService:
    """Lazily build the shared service so importing this module never needs a key."""
    global _openai_service
    if _openai_service is None:
        _openai_service = OpenAIService()
    return _openai_service
