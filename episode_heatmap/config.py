"""Configuration for the episode heatmap client.

Centralizes all configuration: TMDb API settings, cache TTL classes,
search behaviour and the optional MongoDB backing store. All config is
loaded from environment variables at runtime (no hardcoded secrets).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlparse

HOUR_MS = 60 * 60 * 1000


@dataclass(frozen=True)
class TMDBConfig:
    api_key: str = ""
    base_url: str = "https://api.themoviedb.org/3"
    image_base_url: str = "https://image.tmdb.org/t/p"
    user_agent: str = "EpisodeHeatmap/1.0"
    request_timeout: int = 30
    retry_count: int = 3
    min_request_interval: float = 0.1


@dataclass(frozen=True)
class CacheConfig:
    """TTL classes handed to the cache by AppState.

    Show metadata and season data rarely change, so they live for a day.
    Search listings and streaming availability are kept short to stay
    fresh.
    """

    prefix: str = "tmdb_"
    show_ttl_ms: int = 24 * HOUR_MS
    season_ttl_ms: int = 24 * HOUR_MS
    search_ttl_ms: int = HOUR_MS
    providers_ttl_ms: int = HOUR_MS


@dataclass(frozen=True)
class MongoConfig:
    uri: str = ""
    database: str = "episode_heatmap"
    cache_collection: str = "cache_entries"
    max_pool_size: int = 1
    server_selection_timeout_ms: int = 5000


@dataclass(frozen=True)
class SearchConfig:
    debounce_ms: int = 500
    min_search_length: int = 2
    top_rated_pages: int = 5
    top_rated_limit: int = 100


@dataclass(frozen=True)
class AppConfig:
    tmdb: TMDBConfig
    cache: CacheConfig
    mongo: MongoConfig
    search: SearchConfig


def load_config() -> AppConfig:
    """Load and validate configuration from environment variables.

    Reads TMDB_API_KEY (required), TMDB_BASE_URL (optional) and
    MONGODB_URI (optional). When MONGODB_URI is set it must have a
    MongoDB scheme (mongodb:// or mongodb+srv://).

    Returns:
        AppConfig bundling the frozen per-concern configs.

    Raises:
        ValueError: If TMDB_API_KEY is missing or MONGODB_URI has an
            invalid scheme.
    """
    api_key = os.environ.get("TMDB_API_KEY", "")
    if not api_key:
        raise ValueError("TMDB_API_KEY environment variable is required")

    tmdb = TMDBConfig(api_key=api_key)
    base_url = os.environ.get("TMDB_BASE_URL", "")
    if base_url:
        tmdb = TMDBConfig(api_key=api_key, base_url=base_url.rstrip("/"))

    mongo_uri = os.environ.get("MONGODB_URI", "")
    if mongo_uri:
        parsed = urlparse(mongo_uri)
        if parsed.scheme not in ("mongodb", "mongodb+srv"):
            raise ValueError(
                f"Invalid MongoDB URI scheme: '{parsed.scheme}'. "
                "Expected 'mongodb' or 'mongodb+srv'."
            )

    return AppConfig(
        tmdb=tmdb,
        cache=CacheConfig(),
        mongo=MongoConfig(uri=mongo_uri),
        search=SearchConfig(),
    )
