from episode_heatmap.fetchers.async_client import AsyncTMDBClient
from episode_heatmap.fetchers.http_client import create_session
from episode_heatmap.fetchers.tmdb_client import TMDBClient

__all__ = ["AsyncTMDBClient", "TMDBClient", "create_session"]
