from unittest.mock import MagicMock, patch

from episode_heatmap.cache import TTLCache
from episode_heatmap.config import MongoConfig
from episode_heatmap.storage.mongo_client import close_connection, get_database
from episode_heatmap.storage.mongo_store import MongoCacheStore


def _make_config():
    return MongoConfig(
        uri="mongodb://localhost:27017",
        database="test_db",
    )


class TestMongoCacheStore:
    def test_get_returns_value(self):
        mock_db = MagicMock()
        config = _make_config()
        collection = mock_db[config.cache_collection]
        collection.find_one.return_value = {"_id": "tmdb_show_1", "value": "{}"}

        store = MongoCacheStore(mock_db, config)

        assert store.get("tmdb_show_1") == "{}"
        collection.find_one.assert_called_once_with({"_id": "tmdb_show_1"})

    def test_get_missing(self):
        mock_db = MagicMock()
        config = _make_config()
        mock_db[config.cache_collection].find_one.return_value = None

        assert MongoCacheStore(mock_db, config).get("tmdb_show_1") is None

    def test_set_upserts(self):
        mock_db = MagicMock()
        config = _make_config()
        store = MongoCacheStore(mock_db, config)

        store.set("tmdb_show_1", '{"data": 1}')

        mock_db[config.cache_collection].replace_one.assert_called_once_with(
            {"_id": "tmdb_show_1"},
            {"_id": "tmdb_show_1", "value": '{"data": 1}'},
            upsert=True,
        )

    def test_delete(self):
        mock_db = MagicMock()
        config = _make_config()
        MongoCacheStore(mock_db, config).delete("tmdb_show_1")
        mock_db[config.cache_collection].delete_one.assert_called_once_with(
            {"_id": "tmdb_show_1"}
        )

    def test_keys_uses_anchored_escaped_regex(self):
        mock_db = MagicMock()
        config = _make_config()
        collection = mock_db[config.cache_collection]
        collection.find.return_value = [
            {"_id": "tmdb_search_a.b"},
            {"_id": "tmdb_search_c"},
        ]

        keys = MongoCacheStore(mock_db, config).keys("tmdb_search_a.")

        assert keys == ["tmdb_search_a.b", "tmdb_search_c"]
        query, projection = collection.find.call_args.args
        assert query == {"_id": {"$regex": r"^tmdb_search_a\."}}
        assert projection == {"_id": 1}

    def test_cache_absorbs_database_errors(self):
        mock_db = MagicMock()
        config = _make_config()
        collection = mock_db[config.cache_collection]
        collection.find_one.side_effect = Exception("server selection timeout")
        collection.replace_one.side_effect = Exception("server selection timeout")

        cache = TTLCache(MongoCacheStore(mock_db, config), clock=lambda: 0)
        cache.set("show", 1, {"id": 1}, 1000)
        assert cache.get("show", 1) is None


class TestMongoClient:
    @patch("episode_heatmap.storage.mongo_client.MongoClient")
    def test_client_is_shared_until_closed(self, mock_client_cls):
        config = _make_config()

        first = get_database(config)
        second = get_database(config)

        assert first is second
        mock_client_cls.assert_called_once_with(
            "mongodb://localhost:27017",
            maxPoolSize=1,
            serverSelectionTimeoutMS=5000,
            appname="episode-heatmap",
        )

        close_connection()
        mock_client_cls.return_value.close.assert_called_once()
        get_database(config)
        assert mock_client_cls.call_count == 2
        close_connection()

    def test_close_without_connection(self):
        close_connection()
