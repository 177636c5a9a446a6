import pytest

from app.models.hospital import SurgeryType
from app.schemas.hospital import SearchFilters, SortKey
from app.services.browse_state import (
    COMPARE_LIMIT, BrowseState, RemoveFavorite, ResetFilters, SetFilters, ToggleCompare, ToggleFavorite, reduce,
)


class TestFilters:
    def test_set_filters_merges_changes(self):
        state = reduce(BrowseState(), SetFilters({"region": "Mysuru"}))
        state = reduce(state, SetFilters({"min_rating": 4.0}))
        assert state.filters.region == "Mysuru"
        assert state.filters.min_rating == 4.0

    def test_reset_keeps_query_and_clears_the_rest(self):
        state = BrowseState(filters=SearchFilters(
            query="knee", region="Mysuru", surgery_type=SurgeryType.CURATIVE, sort_by=SortKey.NEAREST,
        ))
        state = reduce(state, ResetFilters())
        assert state.filters == SearchFilters(query="knee")
        assert state.filters.sort_by == SortKey.BEST_MATCH

    def test_input_state_is_not_mutated(self):
        before = BrowseState()
        reduce(before, SetFilters({"region": "Mysuru"}))
        assert before.filters.region is None


class TestFavorites:
    def test_toggle_adds_then_removes(self):
        state = reduce(BrowseState(), ToggleFavorite("h1"))
        assert state.favorites == ("h1",)
        assert reduce(state, ToggleFavorite("h1")).favorites == ()

    def test_remove_favorite_also_leaves_compare(self):
        state = BrowseState(favorites=("h1", "h2"), compare=("h1", "h2"))
        state = reduce(state, RemoveFavorite("h1"))
        assert state.favorites == ("h2",)
        assert state.compare == ("h2",)


class TestCompare:
    def test_compare_is_capped(self):
        state = BrowseState()
        for i in range(COMPARE_LIMIT):
            state = reduce(state, ToggleCompare(f"h{i}"))
        full = state
        state = reduce(state, ToggleCompare("h-extra"))
        assert state is full
        assert len(state.compare) == COMPARE_LIMIT == 4

    def test_adding_twice_keeps_one_entry(self):
        state = reduce(reduce(BrowseState(), ToggleCompare("h1")), ToggleCompare("h1"))
        assert state.compare == ("h1",)

    def test_deselect_removes(self):
        state = BrowseState(compare=("h1", "h2"))
        assert reduce(state, ToggleCompare("h1", selected=False)).compare == ("h2",)


def test_unknown_action_is_rejected():
    with pytest.raises(TypeError):
        reduce(BrowseState(), object())
