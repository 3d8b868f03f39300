from episode_heatmap.cache.stores import CacheStore, MemoryStore
from episode_heatmap.cache.ttl_cache import PROVIDERS, SEARCH, SEASON, SHOW, TTLCache

__all__ = [
    "CacheStore",
    "MemoryStore",
    "PROVIDERS",
    "SEARCH",
    "SEASON",
    "SHOW",
    "TTLCache",
]
