"""Shared MongoDB client for the durable cache store.

One MongoClient per process, opened on the first get_database() call.
The CLI closes it when a command finishes. Only the connection is
process-wide; each TTLCache gets its store injected.
"""

from __future__ import annotations

import logging

from pymongo import MongoClient
from pymongo.database import Database

from episode_heatmap.config import MongoConfig

logger = logging.getLogger(__name__)

_client: MongoClient | None = None


def get_database(config: MongoConfig) -> Database:
    """Return the cache database, connecting on first use.

    Server selection is bounded by config.server_selection_timeout_ms so
    an unreachable server surfaces as a PyMongoError on the first cache
    operation instead of hanging the command.
    """
    global _client
    if _client is None:
        logger.info("Connecting to MongoDB database %s", config.database)
        _client = MongoClient(
            config.uri,
            maxPoolSize=config.max_pool_size,
            serverSelectionTimeoutMS=config.server_selection_timeout_ms,
            appname="episode-heatmap",
        )
    return _client[config.database]


def close_connection() -> None:
    """Close the shared client. No-op when nothing is connected."""
    global _client
    if _client is None:
        return
    _client.close()
    _client = None
    logger.debug("MongoDB connection closed")
