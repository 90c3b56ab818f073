"""Concurrent search across the four help-center content collections."""

import asyncio
import logging
from typing import Any, Callable

from app.core.config import Settings, get_settings
from app.core.content_text import contains_term, flatten_body
from app.core.logging import get_logger, log_with_context
from app.core.schemas_search import SearchResult
from app.core.search_results import aggregate_results
from app.db.content import search_changelog, search_documents, search_resources, search_videos

logger = get_logger(__name__)


async def _query_source(
    source: str,
    lookup: Callable[[str, int], list[dict[str, Any]]],
    term: str,
    limit: int,
) -> list[dict[str, Any]]:
    """Run one blocking store lookup off the event loop; an outage yields no rows."""
    try:
        return await asyncio.to_thread(lookup, term, limit)
    except Exception as e:
        log_with_context(
            logger,
            logging.WARNING,
            "Search source unavailable, continuing without it",
            source=source,
            error=str(e),
        )
        return []


def keep_body_matches(
    rows: list[dict[str, Any]],
    term: str,
    extra_fields: tuple[str, ...] = (),
) -> list[dict[str, Any]]:
    """
    Keep rows whose title, extra fields, or flattened body contain the term.

    The store match on rich bodies runs against serialized editor JSON, so it
    also hits block keys and markup, and a `*` in the term reaches the store as
    a one-character wildcard. This pass checks the visible text literally.
    """
    kept = []
    for row in rows:
        if contains_term(row.get("title"), term):
            kept.append(row)
        elif any(contains_term(row.get(field), term) for field in extra_fields):
            kept.append(row)
        elif contains_term(flatten_body(row.get("content")), term):
            kept.append(row)
    return kept


async def search_content(query: str, settings: Settings | None = None) -> list[SearchResult]:
    """
    Fan a query out to documents, resources, changelog and videos.

    Args:
        query: Raw user query; surrounding whitespace is ignored
        settings: Optional settings override (defaults to cached settings)

    Returns:
        Normalized results in source order (documents, resources, changelog,
        videos). Empty when the query is below the minimum length. Never raises
        for a failing source; that source simply contributes nothing.
    """
    settings = settings or get_settings()
    term = query.strip()
    if len(term) < settings.SEARCH_MIN_QUERY_LENGTH:
        return []

    documents, resources, changelog, videos = await asyncio.gather(
        _query_source("documents", search_documents, term, settings.SEARCH_DOCUMENT_LIMIT),
        _query_source("resources", search_resources, term, settings.SEARCH_RESOURCE_LIMIT),
        _query_source("changelog", search_changelog, term, settings.SEARCH_CHANGELOG_LIMIT),
        _query_source("videos", search_videos, term, settings.SEARCH_VIDEO_LIMIT),
    )

    documents = keep_body_matches(documents, term)
    resources = keep_body_matches(resources, term, extra_fields=("description",))
    changelog = keep_body_matches(changelog, term, extra_fields=("version",))
    videos = keep_body_matches(videos, term, extra_fields=("caption",))

    results = aggregate_results(documents, resources, changelog, videos)
    logger.debug(
        f"Search '{term}': documents={len(documents)} resources={len(resources)} "
        f"changelog={len(changelog)} videos={len(videos)}"
    )
    return results
