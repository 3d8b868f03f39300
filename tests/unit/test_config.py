import os
from unittest.mock import patch

import pytest

from episode_heatmap.config import HOUR_MS, load_config


class TestLoadConfig:
    @patch.dict(os.environ, {"TMDB_API_KEY": "key"}, clear=True)
    def test_defaults(self):
        config = load_config()
        assert config.tmdb.api_key == "key"
        assert config.tmdb.base_url == "https://api.themoviedb.org/3"
        assert config.mongo.uri == ""
        assert config.cache.prefix == "tmdb_"
        assert config.cache.show_ttl_ms == 24 * HOUR_MS
        assert config.cache.season_ttl_ms == 24 * HOUR_MS
        assert config.cache.search_ttl_ms == HOUR_MS
        assert config.search.debounce_ms == 500
        assert config.search.min_search_length == 2

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_api_key(self):
        with pytest.raises(ValueError, match="TMDB_API_KEY"):
            load_config()

    @patch.dict(
        os.environ,
        {"TMDB_API_KEY": "key", "TMDB_BASE_URL": "http://localhost:8080/3/"},
        clear=True,
    )
    def test_base_url_override(self):
        assert load_config().tmdb.base_url == "http://localhost:8080/3"

    @patch.dict(
        os.environ,
        {"TMDB_API_KEY": "key", "MONGODB_URI": "mongodb+srv://user:pw@cluster/"},
        clear=True,
    )
    def test_mongo_uri(self):
        assert load_config().mongo.uri == "mongodb+srv://user:pw@cluster/"

    @patch.dict(
        os.environ,
        {"TMDB_API_KEY": "key", "MONGODB_URI": "postgres://localhost"},
        clear=True,
    )
    def test_invalid_mongo_scheme(self):
        with pytest.raises(ValueError, match="Invalid MongoDB URI scheme"):
            load_config()

    @patch.dict(os.environ, {"TMDB_API_KEY": "key"}, clear=True)
    def test_frozen(self):
        config = load_config()
        try:
            config.tmdb.api_key = "other"
            assert False, "Should have raised FrozenInstanceError"
        except AttributeError:
            pass
