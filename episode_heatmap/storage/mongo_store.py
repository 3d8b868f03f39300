"""MongoDB-backed key/value store for the TTL cache.

One document per cache key:

    {"_id": "tmdb_show_1396", "value": "<serialized CacheEntry JSON>"}

The value is kept as the exact text TTLCache wrote, so a damaged document
reads back as corrupt and gets removed instead of crashing the reader.
Keys from different namespaces never collide, so writes never need a
cross-document transaction.
"""

from __future__ import annotations

import logging
import re

from pymongo.database import Database

from episode_heatmap.config import MongoConfig

logger = logging.getLogger(__name__)


class MongoCacheStore:
    """CacheStore implementation over a single MongoDB collection.

    pymongo errors propagate to the caller; TTLCache logs and absorbs
    them.
    """

    def __init__(self, db: Database, config: MongoConfig) -> None:
        """Initialize with database handle and collection name from config."""
        self._entries = db[config.cache_collection]

    def get(self, key: str) -> str | None:
        doc = self._entries.find_one({"_id": key})
        if doc is None:
            return None
        return doc.get("value")

    def set(self, key: str, value: str) -> None:
        """Upsert the value so re-fetches overwrite the existing entry."""
        self._entries.replace_one(
            {"_id": key},
            {"_id": key, "value": value},
            upsert=True,
        )

    def delete(self, key: str) -> None:
        self._entries.delete_one({"_id": key})

    def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with prefix (anchored regex on _id)."""
        query = {"_id": {"$regex": f"^{re.escape(prefix)}"}} if prefix else {}
        keys = [doc["_id"] for doc in self._entries.find(query, {"_id": 1})]
        logger.debug("Found %d cache keys under prefix %r", len(keys), prefix)
        return keys
