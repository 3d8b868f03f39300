import pytest

from episode_heatmap.models import (
    BrowseState,
    CacheEntry,
    DetailState,
    HeatmapModel,
    ShowSummary,
)


class TestCacheEntry:
    def test_to_document(self):
        entry = CacheEntry(data={"id": 1}, stored_at=1000, ttl_ms=60)
        assert entry.to_document() == {
            "data": {"id": 1},
            "timestamp": 1000,
            "ttl": 60,
        }

    def test_from_document(self):
        entry = CacheEntry.from_document(
            {"data": [1, 2], "timestamp": 5, "ttl": 10}
        )
        assert entry == CacheEntry(data=[1, 2], stored_at=5, ttl_ms=10)

    @pytest.mark.parametrize(
        "doc",
        [
            None,
            "text",
            {"data": 1},
            {"data": 1, "timestamp": 5},
            {"data": 1, "timestamp": "5", "ttl": 10},
            {"data": 1, "timestamp": 5, "ttl": 1.5},
            {"data": 1, "timestamp": True, "ttl": 10},
        ],
    )
    def test_from_document_rejects_bad_shapes(self, doc):
        with pytest.raises(ValueError):
            CacheEntry.from_document(doc)

    def test_validity_window(self):
        entry = CacheEntry(data=None, stored_at=1000, ttl_ms=100)
        assert entry.is_valid(1100) is True
        assert entry.is_valid(1101) is False

    def test_frozen(self):
        entry = CacheEntry(data=1, stored_at=1, ttl_ms=1)
        try:
            entry.ttl_ms = 2
            assert False, "Should have raised FrozenInstanceError"
        except AttributeError:
            pass


class TestShowSummary:
    def test_from_api(self):
        show = ShowSummary.from_api({
            "id": 1396,
            "name": "Breaking Bad",
            "first_air_date": "2008-01-20",
            "vote_average": 8.9,
            "poster_path": "/bb.jpg",
            "overview": "Chemistry.",
            "popularity": 400.1,
        })
        assert show == ShowSummary(
            id=1396,
            name="Breaking Bad",
            first_air_date="2008-01-20",
            vote_average=8.9,
            poster_path="/bb.jpg",
            overview="Chemistry.",
        )

    def test_from_api_defaults(self):
        show = ShowSummary.from_api(
            {"id": "7", "original_name": "Original", "first_air_date": None}
        )
        assert show.id == 7
        assert show.name == "Original"
        assert show.first_air_date == ""
        assert show.vote_average == 0

    def test_from_api_requires_id(self):
        with pytest.raises(KeyError):
            ShowSummary.from_api({"name": "No id"})


class TestViewState:
    def test_browse_state_equality(self):
        show = ShowSummary(id=1, name="A")
        assert BrowseState("q", (show,)) == BrowseState("q", (show,))
        assert BrowseState("q", (show,)).kind == "browse"

    def test_detail_state_kind_not_settable(self):
        with pytest.raises(TypeError):
            DetailState(show=ShowSummary(id=1, name="A"), kind="browse")


class TestHeatmapModel:
    def test_empty_defaults(self):
        model = HeatmapModel()
        assert model.max_episodes_per_season == 0
        assert model.seasons == ()
        assert model.stats.highest_rated_episode is None
        assert model.get_episode(1, 1) is None
