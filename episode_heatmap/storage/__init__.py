from episode_heatmap.storage.mongo_client import close_connection, get_database
from episode_heatmap.storage.mongo_store import MongoCacheStore

__all__ = ["MongoCacheStore", "close_connection", "get_database"]
