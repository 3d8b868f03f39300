import asyncio
import json
import os
from collections import defaultdict

import pytest

from episode_heatmap.cache import MemoryStore, TTLCache
from episode_heatmap.errors import TMDBError

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def read_fixture(filename: str):
    path = os.path.join(FIXTURES_DIR, filename)
    with open(path, "r") as f:
        return json.load(f)


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeShowsAPI:
    """In-memory stand-in for AsyncTMDBClient.

    Every call is recorded in ``calls`` as (method, *args). ``errors`` maps
    a method name, or a full (method, *args) call, to a TMDBError to raise. ``gates`` maps (method, *args)
    to an asyncio.Event the call waits on before answering, so tests can
    control the order responses resolve in.
    """

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.shows: dict[int, dict] = {}
        self.seasons: dict[tuple[int, int], dict] = {}
        self.providers: dict[int, dict] = {}
        self.search_pages: dict[str, dict] = {}
        self.top_rated_pages: dict[int, dict] = {}
        self.popular_pages: dict[int, dict] = {}
        self.random_show: dict | None = None
        self.errors: dict[str | tuple, TMDBError] = {}
        self.gates: dict[tuple, asyncio.Event] = {}
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    async def _answer(self, key: tuple, value):
        self.calls.append(key)
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        error = self.errors.get(key) or self.errors.get(key[0])
        if error is not None:
            raise error
        return value

    def add_show(self, details: dict, seasons: list[dict]) -> None:
        self.shows[details["id"]] = details
        for season in seasons:
            self.seasons[(details["id"], season["season_number"])] = season
        self.providers[details["id"]] = {"id": details["id"], "results": {}}

    async def search_shows(self, query, page=1):
        return await self._answer(
            ("search_shows", query),
            self.search_pages.get(query, {"results": []}),
        )

    async def get_show_details(self, show_id):
        return await self._answer(
            ("get_show_details", show_id), self.shows.get(show_id)
        )

    async def get_season_details(self, show_id, season_number):
        return await self._answer(
            ("get_season_details", show_id, season_number),
            self.seasons.get((show_id, season_number)),
        )

    async def get_watch_providers(self, show_id):
        return await self._answer(
            ("get_watch_providers", show_id), self.providers.get(show_id)
        )

    async def get_top_rated_shows(self, page=1):
        return await self._answer(
            ("get_top_rated_shows", page),
            self.top_rated_pages.get(page, {"results": []}),
        )

    async def get_popular_shows(self, page=1):
        return await self._answer(
            ("get_popular_shows", page),
            self.popular_pages.get(page, {"results": []}),
        )

    async def get_random_show(self, rng=None):
        return await self._answer(("get_random_show",), self.random_show)


def make_season(season_number: int, ratings: list, votes: int = 100) -> dict:
    return {
        "season_number": season_number,
        "name": f"Season {season_number}",
        "episodes": [
            {
                "episode_number": i,
                "name": f"S{season_number}E{i}",
                "vote_average": rating,
                "vote_count": votes if rating else 0,
            }
            for i, rating in enumerate(ratings, start=1)
        ],
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cache(store, clock):
    return TTLCache(store, clock=clock)


@pytest.fixture
def api():
    return FakeShowsAPI()


@pytest.fixture
def breaking_bad(api):
    details = read_fixture("show_details.json")
    api.add_show(
        details,
        [read_fixture("season_1.json"), read_fixture("season_2.json")],
    )
    return details
