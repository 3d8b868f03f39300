"""Non-blocking facade over TMDBClient for the asyncio application state.

Each call runs the blocking requests-based client in a small thread pool
so the event loop stays responsive; the await is the only suspension
point the application state ever sees.
"""

from __future__ import annotations

import asyncio
import functools
import random
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from episode_heatmap.fetchers.tmdb_client import TMDBClient


class AsyncTMDBClient:
    def __init__(self, client: TMDBClient, max_workers: int = 4) -> None:
        self._client = client
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="tmdb"
        )

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, functools.partial(func, *args)
        )

    async def search_shows(self, query: str, page: int = 1) -> dict:
        return await self._run(self._client.search_shows, query, page)

    async def get_show_details(self, show_id: int) -> dict:
        return await self._run(self._client.get_show_details, show_id)

    async def get_season_details(self, show_id: int, season_number: int) -> dict:
        return await self._run(
            self._client.get_season_details, show_id, season_number
        )

    async def get_episode_details(
        self, show_id: int, season_number: int, episode_number: int
    ) -> dict:
        return await self._run(
            self._client.get_episode_details,
            show_id,
            season_number,
            episode_number,
        )

    async def get_trending_shows(self, time_window: str = "week") -> dict:
        return await self._run(self._client.get_trending_shows, time_window)

    async def get_watch_providers(self, show_id: int) -> dict | None:
        return await self._run(self._client.get_watch_providers, show_id)

    async def get_top_rated_shows(self, page: int = 1) -> dict:
        return await self._run(self._client.get_top_rated_shows, page)

    async def get_popular_shows(self, page: int = 1) -> dict:
        return await self._run(self._client.get_popular_shows, page)

    async def get_random_show(self, rng: random.Random | None = None) -> dict:
        return await self._run(self._client.get_random_show, rng)

    def close(self) -> None:
        """Shut down the worker threads."""
        self._executor.shutdown(wait=False)
