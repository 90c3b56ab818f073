"""Support assistant chat endpoint."""

from typing import Any

from fastapi import APIRouter, HTTPException

from app.chains.support_chat import run_chat_turn
from app.core.chat_errors import ChatTurnError
from app.core.logging import get_logger
from app.core.schemas_chat import ChatRequest

logger = get_logger(__name__)

router = APIRouter()


@router.post("/chat")
async def chat_with_assistant(request: ChatRequest) -> dict[str, Any]:
    """
    Answer one chat turn grounded in the selected product's content.

    This endpoint:
    1. Builds the reference listing for request.product_id (fresh every turn)
    2. Compiles the grounded system directive
    3. Relays directive + conversation to the AI gateway (single attempt)
    4. Returns the gateway JSON plus validated reference tags

    Without a product_id the assistant is instructed to ask which product the
    user needs, and needs_product_selection is true.

    Errors are returned as {"detail": {"kind": ..., "message": ...}} with status
    500 (configuration/upstream/context), 429 (rate limited) or 402 (credits).
    """
    try:
        return await run_chat_turn(request)
    except ChatTurnError as e:
        logger.info(f"Chat turn failed: kind={e.kind.value} status={e.status_code}")
        raise HTTPException(status_code=e.status_code, detail=e.to_detail()) from e
