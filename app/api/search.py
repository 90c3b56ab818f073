"""Cross-collection search endpoints."""

import asyncio
import json
from typing import Any

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from app.core.logging import get_logger
from app.core.schemas_search import SearchHit, SearchResponse, SearchResult, SearchState
from app.core.search_dispatcher import SearchDispatcher
from app.core.search_fanout import search_content
from app.core.search_results import resolve_navigation

logger = get_logger(__name__)

router = APIRouter()


@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query("", description="Free-text query; fewer than 2 characters returns nothing"),
) -> SearchResponse:
    """
    One-shot search across documents, resources, changelog and videos.

    Results are in source order, each paired with its navigation target.
    A failing collection contributes no results; the request still succeeds.
    """
    term = q.strip()
    results = await search_content(term)
    return SearchResponse(
        query=term,
        results=[SearchHit(result=r, navigation=resolve_navigation(r, term)) for r in results],
    )


def _find_result(results: list[SearchResult], result_type: Any, result_id: Any) -> SearchResult | None:
    for result in results:
        if result.key == (result_type, result_id):
            return result
    return None


async def _pump(websocket: WebSocket, outbox: "asyncio.Queue[dict[str, Any]]") -> None:
    while True:
        message = await outbox.get()
        await websocket.send_json(message)


@router.websocket("/search/ws")
async def search_session(websocket: WebSocket) -> None:
    """
    Interactive search-as-you-type session.

    Inbound:
        {"action": "query", "q": "..."}         every edit of the search box
        {"action": "select", "type": "...", "id": "..."}
    Outbound:
        {"event": "state", "query", "results", "is_searching", "is_visible"}
        {"event": "navigate", "route", "params", "url"}
        {"event": "error", "message"}
    """
    await websocket.accept()
    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def on_change(state: SearchState) -> None:
        outbox.put_nowait({"event": "state", **state.model_dump(mode="json")})

    dispatcher = SearchDispatcher(on_change=on_change)
    sender = asyncio.create_task(_pump(websocket, outbox))

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                message = None
            if not isinstance(message, dict):
                outbox.put_nowait({"event": "error", "message": "Malformed message"})
                continue

            action = message.get("action")

            if action == "query":
                dispatcher.update_query(str(message.get("q") or ""))
            elif action == "select":
                result = _find_result(dispatcher.results, message.get("type"), message.get("id"))
                if result is None:
                    outbox.put_nowait({"event": "error", "message": "Result not in current results"})
                    continue
                target = dispatcher.select(result)
                outbox.put_nowait({"event": "navigate", **target.model_dump(mode="json"), "url": target.url})
            else:
                outbox.put_nowait({"event": "error", "message": f"Unknown action: {action}"})
    except WebSocketDisconnect:
        logger.debug("Search session closed by client")
    finally:
        await dispatcher.aclose()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
