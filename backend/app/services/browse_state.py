"""Browse state — filters, favorites and the compare list as one value

Transitions are pure: `reduce(state, action)` returns a new BrowseState and
never mutates its input. The compare list is capped here, not by callers.
"""
from dataclasses import dataclass, field, replace

from app.schemas.hospital import SearchFilters, SortKey

COMPARE_LIMIT = 4


@dataclass(frozen=True)
class BrowseState:
    filters: SearchFilters = field(default_factory=SearchFilters)
    favorites: tuple[str, ...] = ()
    compare: tuple[str, ...] = ()


# ── Actions ──────────────────────────────────────────────────────
@dataclass(frozen=True)
class SetFilters:
    changes: dict


@dataclass(frozen=True)
class ResetFilters:
    pass


@dataclass(frozen=True)
class ToggleFavorite:
    hospital_id: str


@dataclass(frozen=True)
class RemoveFavorite:
    hospital_id: str


@dataclass(frozen=True)
class ToggleCompare:
    hospital_id: str
    selected: bool = True


Action = SetFilters | ResetFilters | ToggleFavorite | RemoveFavorite | ToggleCompare


def _without(items: tuple[str, ...], value: str) -> tuple[str, ...]:
    return tuple(i for i in items if i != value)


def reduce(state: BrowseState, action: Action) -> BrowseState:
    if isinstance(action, SetFilters):
        merged = {**state.filters.model_dump(), **action.changes}
        return replace(state, filters=SearchFilters(**merged))

    if isinstance(action, ResetFilters):
        # the search box text survives a reset
        return replace(state, filters=SearchFilters(query=state.filters.query, sort_by=SortKey.BEST_MATCH))

    if isinstance(action, ToggleFavorite):
        if action.hospital_id in state.favorites:
            return replace(state, favorites=_without(state.favorites, action.hospital_id))
        return replace(state, favorites=state.favorites + (action.hospital_id,))

    if isinstance(action, RemoveFavorite):
        return replace(
            state,
            favorites=_without(state.favorites, action.hospital_id),
            compare=_without(state.compare, action.hospital_id),
        )

    if isinstance(action, ToggleCompare):
        if not action.selected:
            return replace(state, compare=_without(state.compare, action.hospital_id))
        if action.hospital_id in state.compare or len(state.compare) >= COMPARE_LIMIT:
            return state
        return replace(state, compare=state.compare + (action.hospital_id,))

    raise TypeError(f"Unknown browse action: {action!r}")
