"""Application state: the layer that ties cache, API, aggregator and history.

Every user action runs as a coroutine on a single asyncio event loop, so
state mutations never interleave except at the awaited API calls. Three
rules hold for every action:

    1. Cache first: show details, season data and search results are
       looked up in the TTL cache before any request; a hit skips the
       request, a miss fetches and then caches with the namespace's TTL.
    2. History: a user-initiated move between browse and detail views
       pushes exactly one ViewState (the view being left) before visible
       state changes. back/forward restore a stored state and never push.
    3. Latest action wins: each action takes a new generation number and
       only applies results while it is still the newest, so a slow
       response for a superseded show or query cannot overwrite the
       state of a later one.

The history stack holds the views the user left. The view on screen is
either the live "tip" beyond the last entry, or (after going back) the
entry at the cursor. When a view reached through history is left, the
cursor steps back one slot before the push so that view is recorded once
and the abandoned forward branch is dropped.

Remote failures arrive as TMDBError and become search_error/show_error;
retry() re-runs the failed action. They never touch cache or history.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Protocol

from episode_heatmap.aggregation import build_heatmap
from episode_heatmap.cache import TTLCache
from episode_heatmap.config import CacheConfig, SearchConfig
from episode_heatmap.debounce import SearchDebouncer
from episode_heatmap.errors import TMDBError
from episode_heatmap.models import (
    BrowseState,
    DetailState,
    Episode,
    HeatmapModel,
    ShowSummary,
    ViewState,
)
from episode_heatmap.navigation import NavigationStack

logger = logging.getLogger(__name__)

HOME = "home"
BROWSE = "browse"
DETAIL = "detail"

TOP_RATED_LABEL = "Top 100 TV Shows"
POPULAR_LABEL = "Popular Now"


class ShowsAPI(Protocol):
    async def search_shows(self, query: str, page: int = 1) -> dict: ...

    async def get_show_details(self, show_id: int) -> dict: ...

    async def get_season_details(self, show_id: int, season_number: int) -> dict: ...

    async def get_watch_providers(self, show_id: int) -> dict | None: ...

    async def get_top_rated_shows(self, page: int = 1) -> dict: ...

    async def get_popular_shows(self, page: int = 1) -> dict: ...

    async def get_random_show(self, rng: random.Random | None = None) -> dict: ...

    def close(self) -> None: ...


def _summaries(page: Any) -> list[ShowSummary]:
    """Build ShowSummary objects from a listing page, skipping bad rows."""
    results = page.get("results") if isinstance(page, dict) else None
    summaries = []
    for result in results or []:
        try:
            summaries.append(ShowSummary.from_api(result))
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed listing entry: %r", result)
    return summaries


def _season_count(details: Any) -> int:
    try:
        return max(int(details.get("number_of_seasons") or 0), 0)
    except (AttributeError, TypeError, ValueError):
        return 0


class AppState:
    """Visible application state plus the actions that change it."""

    def __init__(
        self,
        api: ShowsAPI,
        cache: TTLCache,
        cache_config: CacheConfig | None = None,
        search_config: SearchConfig | None = None,
        navigation: NavigationStack | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._api = api
        self._cache = cache
        self._cache_config = cache_config or CacheConfig()
        self._search_config = search_config or SearchConfig()
        self._navigation = navigation or NavigationStack()
        self._rng = rng or random.Random()
        self._debouncer = SearchDebouncer(
            self._search_config.debounce_ms, self.search
        )

        self._generation = 0
        self._at_tip = True
        self._tip: ViewState | None = None
        self._last_failed: Callable[[], Awaitable[None]] | None = None

        self.view = HOME

        self.search_query = ""
        self.search_results: list[ShowSummary] = []
        self.is_searching = False
        self.search_error: str | None = None

        self.selected_show: ShowSummary | None = None
        self.show_details: dict | None = None
        self.seasons_data: list[dict] = []
        self.watch_providers: dict | None = None
        self.heatmap: HeatmapModel | None = None
        self.is_loading_show = False
        self.show_error: str | None = None

        self.selected_episode: Episode | None = None
        self.is_modal_open = False

    @property
    def navigation(self) -> NavigationStack:
        return self._navigation

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, token: int) -> bool:
        return token == self._generation

    # -- history -----------------------------------------------------------

    def visible_state(self) -> ViewState | None:
        """Snapshot of what is on screen; None on the home view."""
        if self.view == BROWSE:
            return BrowseState(
                query=self.search_query, results=tuple(self.search_results)
            )
        if self.view == DETAIL and self.selected_show is not None:
            return DetailState(show=self.selected_show)
        return None

    def _leave_current_view(self) -> None:
        left = self.visible_state()
        if left is None:
            return
        if not self._at_tip and not self._navigation.back():
            self._navigation.reset()
        self._navigation.push(left)
        self._at_tip = True
        self._tip = None

    def can_go_back(self) -> bool:
        if self._at_tip:
            return self._navigation.current is not None
        return self._navigation.can_go_back()

    def can_go_forward(self) -> bool:
        if self._at_tip:
            return False
        return self._navigation.can_go_forward() or self._tip is not None

    async def go_back(self) -> ViewState | None:
        """Restore the previous view. None (and no change) at the start."""
        if self._at_tip:
            target = self._navigation.current
            if target is None:
                return None
            self._tip = self.visible_state()
            self._at_tip = False
        else:
            target = self._navigation.back()
            if target is None:
                return None
        await self._restore(target)
        return target

    async def go_forward(self) -> ViewState | None:
        """Redo a go_back(). None (and no change) at the end."""
        if self._at_tip:
            return None
        target = self._navigation.forward()
        if target is None:
            target = self._tip
            if target is None:
                return None
            self._tip = None
            self._at_tip = True
        await self._restore(target)
        return target

    async def _restore(self, state: ViewState) -> None:
        self._next_generation()
        self._last_failed = None
        if isinstance(state, BrowseState):
            self._clear_show()
            self.view = BROWSE
            self.search_query = state.query
            self.search_results = list(state.results)
            self.search_error = None
            self.is_searching = False
            return
        self.view = DETAIL
        await self._load_show(state.show)

    # -- browse ------------------------------------------------------------

    def _enter_browse(self) -> None:
        if self.view == DETAIL:
            self._leave_current_view()
            self._clear_show()
        self.view = BROWSE

    async def search(self, query: str) -> None:
        """Search shows by name, cache first.

        Queries shorter than min_search_length clear the results without
        any lookup.
        """
        if len(query) < self._search_config.min_search_length:
            self._cancel_search()
            self.search_query = query
            self.search_results = []
            return

        self._enter_browse()
        token = self._next_generation()
        self.search_query = query
        self.is_searching = True
        self.search_error = None
        self._last_failed = None

        try:
            data = self._cache.get_search(query)
            if data is None:
                data = await self._api.search_shows(query)
                self._cache.set_search(
                    query, data, self._cache_config.search_ttl_ms
                )
                if not self._is_current(token):
                    logger.info("Discarding stale search results for %r", query)
                    return
            else:
                logger.debug("Search cache hit for %r", query)
            self.search_results = _summaries(data)
        except TMDBError as exc:
            if not self._is_current(token):
                return
            logger.error("Search for %r failed: %s", query, exc.message)
            self.search_error = exc.message
            self.search_results = []
            self._last_failed = lambda: self.search(query)
        finally:
            if self._is_current(token):
                self.is_searching = False

    def search_debounced(self, query: str) -> asyncio.Future | None:
        """Record a keystroke; the search runs after the quiet period.

        Returns the debouncer's future, or None when the query is too
        short and any pending search was cancelled instead.
        """
        self.search_query = query
        if len(query) < self._search_config.min_search_length:
            self._cancel_search()
            self.search_results = []
            return None
        return self._debouncer.trigger(query)

    def _cancel_search(self) -> None:
        """Drop the pending debounced search and any search still in flight."""
        self._debouncer.cancel()
        if self.is_searching:
            self._next_generation()
            self.is_searching = False

    def clear_search(self) -> None:
        self._cancel_search()
        self.search_query = ""
        self.search_results = []
        self.search_error = None

    async def _browse_listing(
        self, label: str, fetch: Callable[[], Awaitable[list[ShowSummary]]]
    ) -> None:
        self._debouncer.cancel()
        self._enter_browse()
        token = self._next_generation()
        self.search_query = label
        self.is_searching = True
        self.search_error = None
        self._last_failed = None
        try:
            results = await fetch()
            if not self._is_current(token):
                logger.info("Discarding stale %s listing", label)
                return
            self.search_results = results
        except TMDBError as exc:
            if not self._is_current(token):
                return
            logger.error("Loading %s failed: %s", label, exc.message)
            self.search_error = exc.message
            self.search_results = []
            self._last_failed = lambda: self._browse_listing(label, fetch)
        finally:
            if self._is_current(token):
                self.is_searching = False

    async def browse_top_rated(self) -> None:
        """List the top rated shows (first pages, capped at the limit)."""
        pages = self._search_config.top_rated_pages
        limit = self._search_config.top_rated_limit

        async def fetch() -> list[ShowSummary]:
            responses = await asyncio.gather(
                *(self._api.get_top_rated_shows(p) for p in range(1, pages + 1))
            )
            shows = [show for page in responses for show in _summaries(page)]
            return shows[:limit]

        await self._browse_listing(TOP_RATED_LABEL, fetch)

    async def browse_popular(self) -> None:
        async def fetch() -> list[ShowSummary]:
            return _summaries(await self._api.get_popular_shows(1))

        await self._browse_listing(POPULAR_LABEL, fetch)

    # -- detail ------------------------------------------------------------

    def _clear_show(self) -> None:
        self.selected_show = None
        self.show_details = None
        self.seasons_data = []
        self.watch_providers = None
        self.heatmap = None
        self.is_loading_show = False
        self.show_error = None
        self.selected_episode = None
        self.is_modal_open = False

    async def select_show(self, show: ShowSummary) -> None:
        """Open a show's heatmap, recording the current view in history."""
        self._debouncer.cancel()
        self._leave_current_view()
        self.view = DETAIL
        await self._load_show(show)

    async def select_random_show(self) -> None:
        token = self._next_generation()
        self.is_searching = True
        self.search_error = None
        self.show_error = None
        self._last_failed = None
        try:
            raw = await self._api.get_random_show(self._rng)
            show = ShowSummary.from_api(raw)
        except TMDBError as exc:
            if not self._is_current(token):
                return
            logger.error("Random show failed: %s", exc.message)
            self.search_error = exc.message
            self.show_error = exc.message
            self.is_searching = False
            self._last_failed = self.select_random_show
            return
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            if not self._is_current(token):
                return
            logger.error("Random show payload unusable: %s", exc)
            self.search_error = "Failed to fetch random show"
            self.is_searching = False
            self._last_failed = self.select_random_show
            return
        if not self._is_current(token):
            return
        self.is_searching = False
        await self.select_show(show)

    async def _load_show(self, show: ShowSummary) -> None:
        """Fetch-or-cache the show, its providers and seasons, then aggregate.

        Seasons are gathered completely before the aggregator runs once.
        Results are applied only while this load is the newest action.
        """
        token = self._next_generation()
        self._clear_show()
        self.selected_show = show
        self.is_loading_show = True
        self.is_searching = False
        self._last_failed = None
        logger.info("Loading show %s (%s)", show.id, show.name)

        try:
            details = self._cache.get_show(show.id)
            if details is None:
                details = await self._api.get_show_details(show.id)
                self._cache.set_show(
                    show.id, details, self._cache_config.show_ttl_ms
                )
                if not self._is_current(token):
                    logger.info("Discarding stale details for show %s", show.id)
                    return
            self.show_details = details

            providers = self._cache.get_providers(show.id)
            if providers is None:
                providers = await self._api.get_watch_providers(show.id)
                if providers is not None:
                    self._cache.set_providers(
                        show.id, providers, self._cache_config.providers_ttl_ms
                    )
                if not self._is_current(token):
                    logger.info("Discarding stale providers for show %s", show.id)
                    return
            self.watch_providers = providers

            seasons = await self._load_seasons(show.id, _season_count(details))
            if not self._is_current(token):
                logger.info("Discarding stale seasons for show %s", show.id)
                return
            self.seasons_data = seasons
            self.heatmap = build_heatmap(seasons)
        except TMDBError as exc:
            if not self._is_current(token):
                return
            logger.error("Loading show %s failed: %s", show.id, exc.message)
            self.show_error = exc.message
            self._last_failed = lambda: self._load_show(show)
        finally:
            if self._is_current(token):
                self.is_loading_show = False

    async def _load_seasons(self, show_id: int, count: int) -> list[dict]:
        """Seasons 1..count in order; only cache misses are requested."""
        seasons: dict[int, Any] = {
            number: self._cache.get_season(show_id, number)
            for number in range(1, count + 1)
        }
        missing = [number for number, data in seasons.items() if data is None]
        if missing:
            logger.debug(
                "Fetching %d of %d seasons for show %s",
                len(missing),
                count,
                show_id,
            )
            fetched = await asyncio.gather(
                *(self._api.get_season_details(show_id, n) for n in missing),
                return_exceptions=True,
            )
            failure: BaseException | None = None
            for number, data in zip(missing, fetched):
                if isinstance(data, BaseException):
                    failure = failure or data
                    continue
                self._cache.set_season(
                    show_id, number, data, self._cache_config.season_ttl_ms
                )
                seasons[number] = data
            # Seasons that did arrive stay cached for the retry.
            if failure is not None:
                raise failure
        return [seasons[number] for number in range(1, count + 1)]

    # -- misc --------------------------------------------------------------

    async def retry(self) -> bool:
        """Re-run the last failed action. False when nothing failed."""
        action = self._last_failed
        if action is None:
            return False
        self._last_failed = None
        await action()
        return True

    def select_episode(self, episode: Episode) -> None:
        self.selected_episode = episode
        self.is_modal_open = True

    def close_modal(self) -> None:
        self.is_modal_open = False
        self.selected_episode = None

    def close(self) -> None:
        """Release the API client's worker threads."""
        self._api.close()

    def reset(self) -> None:
        """Return to the home view, forgetting history and in-flight work."""
        self._next_generation()
        self._debouncer.cancel()
        self._navigation.reset()
        self._at_tip = True
        self._tip = None
        self._last_failed = None
        self._clear_show()
        self.view = HOME
        self.search_query = ""
        self.search_results = []
        self.search_error = None
        self.is_searching = False
