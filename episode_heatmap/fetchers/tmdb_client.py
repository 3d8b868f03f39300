"""Thin client for the TMDb v3 TV endpoints.

Every call goes through _get(), which spaces requests at least
min_request_interval apart (TMDb allows roughly 40 requests per 10
seconds), and turns any transport or HTTP failure into a TMDBError whose
message is safe to show the user. TMDb error bodies carry a
"status_message" that is preferred over the generic text.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from typing import Any

import requests

from episode_heatmap.config import TMDBConfig
from episode_heatmap.errors import (
    API_ERROR,
    INVALID_API_KEY,
    NETWORK_ERROR,
    RATE_LIMIT,
    TMDBError,
)

logger = logging.getLogger(__name__)

RANDOM_SHOW_PAGES = 5


def _status_message(response: requests.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("status_message")
        if isinstance(message, str) and message:
            return message
    return None


class TMDBClient:
    """Blocking TMDb client built on a shared requests.Session."""

    def __init__(self, session: requests.Session, config: TMDBConfig) -> None:
        self._session = session
        self._config = config
        self._lock = threading.Lock()
        self._last_request = 0.0

    def _wait_turn(self) -> None:
        with self._lock:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self._config.min_request_interval:
                time.sleep(self._config.min_request_interval - elapsed)
            self._last_request = time.monotonic()

    def _get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        fallback: str = API_ERROR,
    ) -> dict:
        """GET an endpoint and return its decoded JSON body.

        Raises:
            TMDBError: On network failure, non-2xx status or a body that
                is not a JSON object.
        """
        self._wait_turn()
        url = f"{self._config.base_url}{endpoint}"
        try:
            response = self._session.get(
                url, params=params, timeout=self._config.request_timeout
            )
        except requests.RequestException as exc:
            logger.error("TMDb request to %s failed: %s", endpoint, exc)
            raise TMDBError(NETWORK_ERROR) from exc

        if not response.ok:
            message = _status_message(response)
            if message is None:
                if response.status_code == 401:
                    message = INVALID_API_KEY
                elif response.status_code == 429:
                    message = RATE_LIMIT
                else:
                    message = fallback
            logger.error(
                "TMDb %s returned %d: %s",
                endpoint,
                response.status_code,
                message,
            )
            raise TMDBError(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            logger.error("TMDb %s returned invalid JSON", endpoint)
            raise TMDBError(fallback) from exc
        if not isinstance(body, dict):
            raise TMDBError(fallback)
        logger.debug("TMDb request successful: %s", endpoint)
        return body

    def search_shows(self, query: str, page: int = 1) -> dict:
        return self._get(
            "/search/tv",
            {"query": query, "page": page},
            fallback="Failed to search shows",
        )

    def get_show_details(self, show_id: int) -> dict:
        return self._get(
            f"/tv/{show_id}", fallback="Failed to fetch show details"
        )

    def get_season_details(self, show_id: int, season_number: int) -> dict:
        """Season payload, including its episodes with ratings."""
        return self._get(
            f"/tv/{show_id}/season/{season_number}",
            fallback=f"Failed to fetch season {season_number}",
        )

    def get_all_seasons(self, show_id: int, season_count: int) -> list[dict]:
        """Fetch seasons 1..season_count in order."""
        return [
            self.get_season_details(show_id, number)
            for number in range(1, season_count + 1)
        ]

    def get_episode_details(
        self, show_id: int, season_number: int, episode_number: int
    ) -> dict:
        return self._get(
            f"/tv/{show_id}/season/{season_number}/episode/{episode_number}",
            fallback="Failed to fetch episode details",
        )

    def get_watch_providers(self, show_id: int) -> dict | None:
        """Streaming availability; None when unavailable.

        Providers are optional decoration, so a failure here never fails
        the caller.
        """
        try:
            return self._get(f"/tv/{show_id}/watch/providers")
        except TMDBError as exc:
            logger.warning(
                "Watch providers unavailable for show %s: %s",
                show_id,
                exc.message,
            )
            return None

    def get_top_rated_shows(self, page: int = 1) -> dict:
        return self._get(
            "/tv/top_rated",
            {"page": page},
            fallback="Failed to fetch top rated shows",
        )

    def get_popular_shows(self, page: int = 1) -> dict:
        return self._get(
            "/tv/popular",
            {"page": page},
            fallback="Failed to fetch popular shows",
        )

    def get_trending_shows(self, time_window: str = "week") -> dict:
        return self._get(
            f"/trending/tv/{time_window}",
            {"page": 1},
            fallback="Failed to fetch trending shows",
        )

    def get_random_show(self, rng: random.Random | None = None) -> dict:
        """Pick a random show from a random page of the popular list.

        Raises:
            TMDBError: If the page cannot be fetched or is empty.
        """
        rng = rng or random.Random()
        page = rng.randint(1, RANDOM_SHOW_PAGES)
        try:
            shows = self.get_popular_shows(page).get("results") or []
        except TMDBError as exc:
            raise TMDBError("Failed to fetch random show", exc.status_code) from exc
        if not shows:
            raise TMDBError("No shows available")
        return rng.choice(shows)

    def image_url(self, path: str | None, size: str = "w500") -> str | None:
        if not path:
            return None
        return f"{self._config.image_base_url}/{size}{path}"
