"""Hospital search — filter + sort over an in-memory list

Pure function of (hospitals, filters). Every predicate that is set must hold;
sorting happens after filtering and is stable, so hospitals with equal keys
keep their input order.
"""
from collections.abc import Iterable, Sequence

from app.schemas.hospital import HospitalRecord, SearchFilters, SortKey

# Stands in for "no distance" / "no surgeries" so those hospitals sort last
MISSING_SENTINEL = 999_999_999


def _matches_query(h: HospitalRecord, query: str) -> bool:
    if query in h.name.lower():
        return True
    if any(query in s.name.lower() for s in h.surgeries):
        return True
    return any(query in d.name.lower() for d in h.doctors)


def _matches_price(h: HospitalRecord, min_price: int | None, max_price: int | None) -> bool:
    low = min_price if min_price is not None else 0
    high = max_price if max_price is not None else MISSING_SENTINEL
    return any(s.max_cost >= low and s.min_cost <= high for s in h.surgeries)


def _predicates(filters: SearchFilters):
    query = filters.query.strip().lower()
    if query:
        yield lambda h: _matches_query(h, query)
    if filters.surgery_type is not None:
        yield lambda h: filters.surgery_type in h.surgery_types
    if filters.min_price is not None or filters.max_price is not None:
        yield lambda h: _matches_price(h, filters.min_price, filters.max_price)
    if filters.region:
        yield lambda h: h.region == filters.region
    if filters.district:
        yield lambda h: h.district == filters.district
    if filters.min_rating is not None:
        yield lambda h: h.rating >= filters.min_rating
    if filters.min_experience is not None:
        yield lambda h: any(d.experience >= filters.min_experience for d in h.doctors)
    if filters.insurance:
        wanted = filters.insurance.strip().lower()
        yield lambda h: any(i.lower() == wanted for i in h.insurance_accepted)
    if filters.max_distance is not None:
        # no computed distance means the hospital can't be shown as "within" range
        yield lambda h: h.distance is not None and h.distance <= filters.max_distance


def _sort_key(sort_by: SortKey):
    if sort_by == SortKey.LOWEST_COST:
        return lambda h: h.lowest_cost if h.lowest_cost is not None else MISSING_SENTINEL
    if sort_by == SortKey.HIGHEST_RATED:
        return lambda h: -h.rating
    if sort_by == SortKey.NEAREST:
        return lambda h: h.distance if h.distance is not None else MISSING_SENTINEL
    return None


def apply_filters(hospitals: Iterable[HospitalRecord], filters: SearchFilters) -> list[HospitalRecord]:
    predicates = list(_predicates(filters))
    results = [h for h in hospitals if all(p(h) for p in predicates)]

    key = _sort_key(filters.sort_by)
    if key is not None:
        results = sorted(results, key=key)   # sorted() is stable
    return results


def active_filter_count(filters: SearchFilters) -> int:
    """Number of active predicates besides the free-text query"""
    values = [
        filters.surgery_type,
        filters.min_price,
        filters.max_price,
        filters.region,
        filters.district,
        filters.min_rating,
        filters.min_experience,
        filters.insurance,
        filters.max_distance,
    ]
    return sum(1 for v in values if v not in (None, ""))


def find_by_ids(hospitals: Sequence[HospitalRecord], ids: Sequence[str]) -> list[HospitalRecord]:
    by_id = {h.id: h for h in hospitals}
    return [by_id[i] for i in ids if i in by_id]
