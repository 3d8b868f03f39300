"""Namespaced, expiring key/value cache in front of the TMDb API.

Entries are stored as JSON documents

    {"data": <payload>, "timestamp": <ms since epoch>, "ttl": <ms>}

under the key "<prefix><namespace>_<id>", e.g. "tmdb_season_1396_2".
An entry is valid while now - timestamp <= ttl. Expired and corrupt
entries are never returned; they are deleted when read and by
sweep_expired().

Caching is an optimization, not a correctness dependency: no method
raises because of the backing store or a bad entry. Failures are logged
and treated as a miss (reads) or dropped (writes).
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable

from episode_heatmap.cache.stores import CacheStore
from episode_heatmap.models import CacheEntry

logger = logging.getLogger(__name__)

SHOW = "show"
SEASON = "season"
SEARCH = "search"
PROVIDERS = "providers"

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Current wall-clock time in milliseconds since epoch."""
    return int(time.time() * 1000)


class TTLCache:
    """Expiring cache over an injected CacheStore.

    The cache is TTL-agnostic: callers pass the TTL on every write. The
    clock is injectable so expiry can be tested without real delays.
    """

    def __init__(
        self,
        store: CacheStore,
        clock: Clock | None = None,
        prefix: str = "tmdb_",
    ) -> None:
        self._store = store
        self._clock = clock or wall_clock_ms
        self._prefix = prefix

    def _key(self, namespace: str, id_: Any) -> str:
        return f"{self._prefix}{namespace}_{id_}"

    def _discard(self, key: str) -> None:
        try:
            self._store.delete(key)
        except Exception as exc:
            logger.error("Failed to delete cache key %s: %s", key, exc)

    def _load(self, key: str) -> CacheEntry | None:
        """Read and decode one entry; corrupt entries are deleted."""
        try:
            raw = self._store.get(key)
        except Exception as exc:
            logger.error("Failed to read cache key %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return CacheEntry.from_document(json.loads(raw))
        except (ValueError, TypeError) as exc:
            logger.warning("Removing corrupt cache entry %s: %s", key, exc)
            self._discard(key)
            return None

    def get(self, namespace: str, id_: Any) -> Any | None:
        """Return the cached payload, or None when missing or stale.

        A stale or corrupt entry is deleted as a side effect.
        """
        key = self._key(namespace, id_)
        entry = self._load(key)
        if entry is None:
            return None
        if not entry.is_valid(self._clock()):
            logger.debug("Cache entry %s expired", key)
            self._discard(key)
            return None
        return entry.data

    def set(self, namespace: str, id_: Any, value: Any, ttl_ms: int) -> None:
        """Store value, overwriting any existing entry.

        Serialization and store failures (e.g. quota exceeded) are logged
        and swallowed.
        """
        key = self._key(namespace, id_)
        entry = CacheEntry(data=value, stored_at=self._clock(), ttl_ms=ttl_ms)
        try:
            self._store.set(key, json.dumps(entry.to_document()))
        except Exception as exc:
            logger.error("Failed to write cache key %s: %s", key, exc)

    def remove(self, namespace: str, id_: Any) -> None:
        self._discard(self._key(namespace, id_))

    def _clear_prefix(self, prefix: str) -> int:
        try:
            keys = self._store.keys(prefix)
        except Exception as exc:
            logger.error("Failed to list cache keys under %s: %s", prefix, exc)
            return 0
        for key in keys:
            self._discard(key)
        return len(keys)

    def clear_namespace(self, namespace: str) -> int:
        """Delete every entry in one namespace. Returns the count."""
        cleared = self._clear_prefix(f"{self._prefix}{namespace}_")
        logger.info("Cleared %d cache entries from namespace %s", cleared, namespace)
        return cleared

    def clear_all(self) -> int:
        """Delete every entry under this cache's prefix. Returns the count."""
        cleared = self._clear_prefix(self._prefix)
        logger.info("Cleared %d cache entries", cleared)
        return cleared

    def sweep_expired(self) -> int:
        """Delete every expired or corrupt entry under this cache's prefix.

        Meant to run once at start-up. Valid entries are left untouched.

        Returns:
            Number of entries removed.
        """
        try:
            keys = self._store.keys(self._prefix)
        except Exception as exc:
            logger.error("Failed to list cache keys for sweep: %s", exc)
            return 0

        now = self._clock()
        removed = 0
        for key in keys:
            try:
                raw = self._store.get(key)
            except Exception as exc:
                logger.error("Failed to read cache key %s: %s", key, exc)
                continue
            if raw is None:
                continue
            try:
                entry = CacheEntry.from_document(json.loads(raw))
            except (ValueError, TypeError):
                entry = None
            if entry is None or not entry.is_valid(now):
                self._discard(key)
                removed += 1

        logger.info("Swept %d expired cache entries", removed)
        return removed

    def get_show(self, show_id: int) -> Any | None:
        return self.get(SHOW, show_id)

    def set_show(self, show_id: int, data: Any, ttl_ms: int) -> None:
        self.set(SHOW, show_id, data, ttl_ms)

    def get_season(self, show_id: int, season_number: int) -> Any | None:
        return self.get(SEASON, f"{show_id}_{season_number}")

    def set_season(
        self, show_id: int, season_number: int, data: Any, ttl_ms: int
    ) -> None:
        self.set(SEASON, f"{show_id}_{season_number}", data, ttl_ms)

    def get_search(self, query: str) -> Any | None:
        return self.get(SEARCH, query.lower())

    def set_search(self, query: str, data: Any, ttl_ms: int) -> None:
        self.set(SEARCH, query.lower(), data, ttl_ms)

    def get_providers(self, show_id: int) -> Any | None:
        return self.get(PROVIDERS, show_id)

    def set_providers(self, show_id: int, data: Any, ttl_ms: int) -> None:
        self.set(PROVIDERS, show_id, data, ttl_ms)
