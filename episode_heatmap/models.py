"""Immutable data models for the episode heatmap core.

All dataclasses are frozen (immutable) so derived entities built by the
aggregator can never be mutated in place. CacheEntry carries the
to_document()/from_document() pair used to persist cache entries as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Union

from episode_heatmap.color_scale import ColorBucket


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload with its write time and time-to-live.

    Attributes:
        data: JSON-serializable payload (show, season or search page).
        stored_at: Milliseconds since epoch when the entry was written.
        ttl_ms: Milliseconds after which the entry is stale.
    """

    data: Any
    stored_at: int
    ttl_ms: int

    def is_valid(self, now_ms: int) -> bool:
        """True while now - stored_at <= ttl_ms."""
        return now_ms - self.stored_at <= self.ttl_ms

    def to_document(self) -> dict:
        """Convert to the persisted JSON shape."""
        return {
            "data": self.data,
            "timestamp": self.stored_at,
            "ttl": self.ttl_ms,
        }

    @classmethod
    def from_document(cls, doc: Any) -> CacheEntry:
        """Rebuild an entry from its persisted shape.

        Raises:
            ValueError: If the document is not an object or its timestamp
                or ttl is missing or not an integer.
        """
        if not isinstance(doc, dict):
            raise ValueError("cache entry is not an object")
        timestamp = doc.get("timestamp")
        ttl = doc.get("ttl")
        for name, value in (("timestamp", timestamp), ("ttl", ttl)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"cache entry has invalid {name}: {value!r}")
        return cls(data=doc.get("data"), stored_at=timestamp, ttl_ms=ttl)


@dataclass(frozen=True)
class Episode:
    """One heatmap cell.

    Attributes:
        episode_number: Position within the season.
        name: Episode title.
        air_date: First air date, None when unknown.
        rating: TMDb vote average, 0 when unrated.
        vote_count: Number of votes behind the rating.
        overview: Synopsis, possibly empty.
        still_path: TMDb image path of the episode still.
        color_bucket: Bucket derived from rating and vote_count.
        season_number: Season the episode belongs to.
    """

    episode_number: int
    name: str
    air_date: date | None
    rating: float
    vote_count: int
    overview: str
    still_path: str | None
    color_bucket: ColorBucket
    season_number: int

    @property
    def is_rated(self) -> bool:
        return self.rating > 0 and self.vote_count > 0


@dataclass(frozen=True)
class Season:
    season_number: int
    name: str
    air_date: date | None
    episodes: tuple[Episode, ...]

    @property
    def episode_count(self) -> int:
        return len(self.episodes)


@dataclass(frozen=True)
class HeatmapStats:
    """Summary statistics over the rated episodes of a show."""

    total_episode_count: int = 0
    average_rating: float = 0
    highest_rated_episode: Episode | None = None
    lowest_rated_episode: Episode | None = None
    rated_episode_count: int = 0


@dataclass(frozen=True)
class HeatmapModel:
    """Renderable season x episode matrix plus statistics.

    Attributes:
        max_episodes_per_season: Length of the longest season.
        seasons: Seasons in the order received (season number ascending).
        stats: Aggregate statistics over rated episodes.
    """

    max_episodes_per_season: int = 0
    seasons: tuple[Season, ...] = ()
    stats: HeatmapStats = field(default_factory=HeatmapStats)

    def get_episode(
        self, season_number: int, episode_number: int
    ) -> Episode | None:
        """Look up a cell by season and episode number."""
        for season in self.seasons:
            if season.season_number != season_number:
                continue
            for episode in season.episodes:
                if episode.episode_number == episode_number:
                    return episode
            return None
        return None


@dataclass(frozen=True)
class ShowSummary:
    """Listing-level identity of a TV show, as returned by search/browse."""

    id: int
    name: str
    first_air_date: str = ""
    vote_average: float = 0
    poster_path: str | None = None
    overview: str = ""

    @classmethod
    def from_api(cls, result: dict) -> ShowSummary:
        """Build from a TMDb search/listing result dict."""
        return cls(
            id=int(result["id"]),
            name=result.get("name") or result.get("original_name") or "",
            first_air_date=result.get("first_air_date") or "",
            vote_average=result.get("vote_average") or 0,
            poster_path=result.get("poster_path"),
            overview=result.get("overview") or "",
        )


@dataclass(frozen=True)
class BrowseState:
    """A listing the user was looking at: query label plus its results."""

    query: str
    results: tuple[ShowSummary, ...]
    kind: str = field(default="browse", init=False)


@dataclass(frozen=True)
class DetailState:
    """A show's heatmap page. Only the identity is kept; data is reloaded."""

    show: ShowSummary
    kind: str = field(default="detail", init=False)


ViewState = Union[BrowseState, DetailState]
