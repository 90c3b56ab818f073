"""Relay compiled chat turns to the OpenAI-compatible AI gateway."""

import logging
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from app.core.chat_errors import (
    ConfigurationError,
    QuotaExhaustedError,
    RateLimitedError,
    UpstreamError,
)
from app.core.config import Settings, get_settings
from app.core.logging import get_logger, log_with_context

logger = get_logger(__name__)


def get_completion_client(settings: Settings, http_client: httpx.AsyncClient | None = None) -> AsyncOpenAI:
    """
    Build a gateway client that makes exactly one attempt per call.

    Args:
        settings: Settings carrying the gateway key, base URL and timeout
        http_client: Optional transport override

    Returns:
        AsyncOpenAI client with SDK retries disabled
    """
    return AsyncOpenAI(
        api_key=settings.AI_GATEWAY_API_KEY,
        base_url=settings.AI_GATEWAY_BASE_URL,
        timeout=settings.CHAT_TIMEOUT_SECONDS,
        max_retries=0,
        http_client=http_client,
    )


async def relay_completion(
    messages: list[dict[str, str]],
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """
    Forward one chat turn to the completion endpoint.

    Args:
        messages: System directive followed by the conversation turns
        settings: Optional settings override
        http_client: Optional transport override

    Returns:
        The gateway's raw JSON body

    Raises:
        ConfigurationError: Gateway key missing or rejected (401)
        RateLimitedError: Gateway answered 429
        QuotaExhaustedError: Gateway answered 402
        UpstreamError: Any other failure; details are logged, not returned
    """
    settings = settings or get_settings()

    if not settings.AI_GATEWAY_API_KEY:
        logger.error("AI_GATEWAY_API_KEY is not configured")
        raise ConfigurationError("AI_GATEWAY_API_KEY is not configured")

    # An injected transport belongs to the caller and stays open
    client = get_completion_client(settings, http_client)
    try:
        raw = await client.chat.completions.with_raw_response.create(
            model=settings.CHAT_MODEL,
            messages=messages,
        )
        return raw.http_response.json()
    except openai.AuthenticationError as e:
        logger.error(f"AI gateway rejected credentials: {e}")
        raise ConfigurationError(str(e)) from e
    except openai.RateLimitError as e:
        logger.warning("AI gateway rate limit hit")
        raise RateLimitedError(str(e)) from e
    except openai.APIStatusError as e:
        if e.status_code == 402:
            logger.warning("AI gateway credits exhausted")
            raise QuotaExhaustedError(str(e)) from e
        log_with_context(
            logger,
            logging.ERROR,
            "AI gateway error",
            status=e.status_code,
            body=e.response.text[:500],
        )
        raise UpstreamError(f"status {e.status_code}") from e
    except openai.APIError as e:
        logger.error(f"AI gateway request failed: {e}")
        raise UpstreamError(str(e)) from e
    except ValueError as e:
        logger.error(f"AI gateway returned a non-JSON body: {e}")
        raise UpstreamError(str(e)) from e
    finally:
        if http_client is None:
            await client.close()
