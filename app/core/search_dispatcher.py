"""Debounced, generation-checked search sessions.

A dispatcher owns one interactive search box: it receives every edit, waits
for a quiet period, fans the final query out, and commits results only if no
newer edit arrived meanwhile. Lookups already issued are never aborted; their
late results are recognised as stale and dropped.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from app.core.config import Settings, get_settings
from app.core.logging import get_logger, log_with_context
from app.core.schemas_search import NavigationTarget, SearchResult, SearchState
from app.core.search_fanout import search_content
from app.core.search_results import resolve_navigation

logger = get_logger(__name__)

SearchFn = Callable[[str], Awaitable[list[SearchResult]]]
ChangeCallback = Callable[[SearchState], None]


class SearchDispatcher:
    """Owns the current query, its debounce timer and the committed results."""

    def __init__(
        self,
        search_fn: SearchFn | None = None,
        on_change: ChangeCallback | None = None,
        debounce_seconds: float | None = None,
        min_query_length: int | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize a search session.

        Args:
            search_fn: Coroutine function running one fan-out (defaults to search_content)
            on_change: Called with a state snapshot after every state change
            debounce_seconds: Quiet period override (defaults to SEARCH_DEBOUNCE_MS)
            min_query_length: Minimum trimmed query length override
            settings: Optional settings override
        """
        settings = settings or get_settings()
        self._search_fn = search_fn or search_content
        self._on_change = on_change
        self.debounce_seconds = (
            debounce_seconds if debounce_seconds is not None else settings.SEARCH_DEBOUNCE_MS / 1000
        )
        self.min_query_length = (
            min_query_length if min_query_length is not None else settings.SEARCH_MIN_QUERY_LENGTH
        )

        self._query = ""
        self._results: list[SearchResult] = []
        self._is_searching = False
        self._is_visible = False

        self._generation = 0
        self._timer: asyncio.TimerHandle | None = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def query(self) -> str:
        return self._query

    @property
    def results(self) -> list[SearchResult]:
        return list(self._results)

    @property
    def is_searching(self) -> bool:
        return self._is_searching

    @property
    def is_visible(self) -> bool:
        return self._is_visible

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> SearchState:
        return SearchState(
            query=self._query,
            results=list(self._results),
            is_searching=self._is_searching,
            is_visible=self._is_visible,
        )

    def update_query(self, text: str) -> None:
        """
        Accept an edit of the search box. Must be called from the event loop.

        Short queries clear and hide immediately with no lookup. Longer ones
        (re)arm the debounce timer; only the last edit in a quiet period is
        searched.
        """
        self._query = text
        self._generation += 1
        self._cancel_timer()

        term = text.strip()
        if len(term) < self.min_query_length:
            self._results = []
            self._is_searching = False
            self._is_visible = False
            self._notify()
            return

        self._is_visible = True
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._dispatch, term, self._generation)
        self._notify()

    def select(self, result: SearchResult) -> NavigationTarget:
        """Resolve where a result leads and end the session."""
        target = resolve_navigation(result, self._query.strip())
        self.clear()
        return target

    def clear(self) -> None:
        """Reset query, results and visibility; in-flight results become stale."""
        self._generation += 1
        self._cancel_timer()
        self._query = ""
        self._results = []
        self._is_searching = False
        self._is_visible = False
        self._notify()

    async def aclose(self) -> None:
        """Stop the session, discarding the timer and any unfinished fan-outs."""
        self._generation += 1
        self._cancel_timer()
        self._on_change = None
        tasks = list(self._in_flight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _dispatch(self, term: str, generation: int) -> None:
        self._timer = None
        if generation != self._generation:
            return

        self._is_searching = True
        self._notify()
        task = asyncio.get_running_loop().create_task(self._run(term, generation))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run(self, term: str, generation: int) -> None:
        try:
            results = await self._search_fn(term)
        except Exception as e:
            log_with_context(
                logger, logging.WARNING, "Search fan-out failed", generation=generation, error=str(e)
            )
            results = []

        if generation != self._generation:
            log_with_context(
                logger,
                logging.DEBUG,
                "Dropping stale search results",
                generation=generation,
                current=self._generation,
            )
            return

        self._results = list(results)
        self._is_searching = False
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.snapshot())
