"""Grounded support chat turn: assemble context, compile directive, relay."""

import asyncio
from typing import Any

import httpx

from app.core.chat_errors import ContextUnavailableError
from app.core.completion_relay import relay_completion
from app.core.config import Settings, get_settings
from app.core.grounding_prompt import (
    SWITCH_PRODUCT_MARKER,
    build_completion_messages,
    compile_system_directive,
)
from app.core.logging import get_logger
from app.core.reference_context import TurnContext, assemble_turn_context
from app.core.reference_tags import validate_reference_tags
from app.core.schemas_chat import ChatRequest

logger = get_logger(__name__)


def _reply_message(data: dict[str, Any]) -> dict[str, Any] | None:
    choices = data.get("choices") or []
    if not choices:
        return None
    return choices[0].get("message")


def finalize_completion(data: dict[str, Any], context: TurnContext) -> dict[str, Any]:
    """
    Annotate the raw completion with what callers need to render it.

    Adds:
        needs_product_switch: the reply asked to switch product (marker stripped)
        needs_product_selection: no product was in scope for this turn
        references: reference tags in the reply, each checked against this
            turn's listing
    """
    message = _reply_message(data)
    content = (message or {}).get("content") or ""

    needs_switch = SWITCH_PRODUCT_MARKER in content
    if needs_switch and message is not None:
        content = content.replace(SWITCH_PRODUCT_MARKER, "").rstrip()
        message["content"] = content

    references = validate_reference_tags(content, context.listing)
    invalid = [tag.raw for tag in references if not tag.valid]
    if invalid:
        logger.warning(f"Reply cited {len(invalid)} reference(s) outside the listing: {invalid}")

    data["needs_product_switch"] = needs_switch
    data["needs_product_selection"] = context.needs_product_selection
    data["references"] = [tag.model_dump(mode="json") for tag in references]
    return data


async def run_chat_turn(
    request: ChatRequest,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """
    Run one grounded chat turn end to end.

    Steps are strictly sequential; a failure at any step aborts the turn and
    no partial directive is sent.

    Args:
        request: Conversation turns plus optional product scope
        settings: Optional settings override
        http_client: Optional transport override for the gateway

    Returns:
        Raw completion JSON annotated by finalize_completion

    Raises:
        ChatTurnError: Typed failure (context, configuration, rate limit,
            quota or upstream)
    """
    settings = settings or get_settings()
    product_id = request.product_id or None

    try:
        context = await asyncio.to_thread(assemble_turn_context, product_id, settings)
    except Exception as e:
        logger.exception(f"Failed to assemble reference context for product {product_id}")
        raise ContextUnavailableError(str(e)) from e

    directive = compile_system_directive(context)
    messages = build_completion_messages(directive, request.messages)

    logger.info(
        f"Chat turn: product={product_id or 'none'}, history_msgs={len(request.messages)}, "
        f"directive_chars={len(directive)}"
    )

    data = await relay_completion(messages, settings=settings, http_client=http_client)
    return finalize_completion(data, context)
