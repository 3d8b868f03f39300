"""Turn raw TMDb season payloads into a renderable heatmap.

The aggregator is a pure function of its input: no I/O, no hidden state.
Raw records come straight from the season endpoint, e.g.

    {"season_number": 1, "name": "Season 1", "air_date": "2008-01-20",
     "episodes": [{"episode_number": 1, "vote_average": 8.2,
                   "vote_count": 120, ...}, ...]}

Field anomalies never fail the aggregation; each bad field falls back to
its default (0 for numbers, "" for text, None for optional values).

Statistics only consider rated episodes (rating > 0 and vote_count > 0).
Highest/lowest use a strict comparison while scanning in season-then-
episode order, so the first episode reaching the extreme is kept on ties.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from episode_heatmap.color_scale import color_bucket
from episode_heatmap.models import Episode, HeatmapModel, HeatmapStats, Season

logger = logging.getLogger(__name__)


def _parse_number(value: Any) -> float:
    """Parse a non-negative finite number, returning 0 on failure."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (ValueError, TypeError):
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return number


def _parse_int(value: Any) -> int:
    """Parse a non-negative integer, returning 0 on failure."""
    return int(_parse_number(value))


def _parse_date(value: Any) -> date | None:
    """Parse an ISO date string (YYYY-MM-DD); None if absent or invalid."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def build_episode(raw: Any, season_number: int) -> Episode:
    """Map one raw episode record to an Episode with defaults applied."""
    if not isinstance(raw, dict):
        raw = {}
    rating = _parse_number(raw.get("vote_average"))
    vote_count = _parse_int(raw.get("vote_count"))
    return Episode(
        episode_number=_parse_int(raw.get("episode_number")),
        name=_text(raw.get("name")),
        air_date=_parse_date(raw.get("air_date")),
        rating=rating,
        vote_count=vote_count,
        overview=_text(raw.get("overview")),
        still_path=_optional_str(raw.get("still_path")),
        color_bucket=color_bucket(rating, vote_count),
        season_number=season_number,
    )


def build_season(raw: Any) -> Season:
    """Map one raw season record, keeping episodes in received order."""
    if not isinstance(raw, dict):
        raw = {}
    season_number = _parse_int(raw.get("season_number"))
    raw_episodes = raw.get("episodes")
    if not isinstance(raw_episodes, list):
        raw_episodes = []
    return Season(
        season_number=season_number,
        name=_text(raw.get("name")),
        air_date=_parse_date(raw.get("air_date")),
        episodes=tuple(
            build_episode(ep, season_number) for ep in raw_episodes
        ),
    )


def _round_half_up(value: float) -> float:
    # Decimal(float) is exact, so an exact tie rounds up.
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def compute_stats(seasons: Iterable[Season]) -> HeatmapStats:
    """Compute totals, average and extremes over rated episodes.

    Args:
        seasons: Seasons in display order.

    Returns:
        HeatmapStats. average_rating is rounded to 2 decimal places and
        is 0 with both extremes None when nothing is rated.
    """
    total = 0
    rated_count = 0
    rating_sum = 0.0
    highest: Episode | None = None
    lowest: Episode | None = None

    for season in seasons:
        for episode in season.episodes:
            total += 1
            if not episode.is_rated:
                continue
            rated_count += 1
            rating_sum += episode.rating
            if highest is None or episode.rating > highest.rating:
                highest = episode
            if lowest is None or episode.rating < lowest.rating:
                lowest = episode

    average = _round_half_up(rating_sum / rated_count) if rated_count else 0
    return HeatmapStats(
        total_episode_count=total,
        average_rating=average,
        highest_rated_episode=highest,
        lowest_rated_episode=lowest,
        rated_episode_count=rated_count,
    )


def build_heatmap(seasons_data: Iterable[Any] | None) -> HeatmapModel:
    """Aggregate the complete, ordered season list of a show.

    Args:
        seasons_data: Raw season payloads ordered by season number.

    Returns:
        HeatmapModel. A show with no seasons or no episodes yields the
        empty model (no seasons, zeroed stats, None extremes).
    """
    seasons = tuple(build_season(raw) for raw in seasons_data or ())
    if not any(season.episodes for season in seasons):
        return HeatmapModel()

    max_episodes = max(season.episode_count for season in seasons)
    stats = compute_stats(seasons)
    logger.debug(
        "Aggregated %d seasons, %d episodes (%d rated)",
        len(seasons),
        stats.total_episode_count,
        stats.rated_episode_count,
    )
    return HeatmapModel(
        max_episodes_per_season=max_episodes,
        seasons=seasons,
        stats=stats,
    )
