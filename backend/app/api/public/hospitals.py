"""
Public API — hospital directory
GET /api/v1/public/hospitals                     — search + filter + sort
GET /api/v1/public/hospitals/compare?ids=a,b     — side-by-side (2–4 hospitals)
GET /api/v1/public/hospitals/{slug}              — hospital detail
GET /api/v1/public/hospitals/{slug}/reviews      — patient reviews (newest first)
GET /api/v1/public/surgery-types                 — surgery type metadata
GET /api/v1/public/regions                       — Karnataka regions
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.models.hospital import KARNATAKA_REGIONS, SURGERY_TYPES, SurgeryType
from app.schemas.hospital import HospitalRecord, ReviewRecord, SearchFilters, SearchResponse, SortKey
from app.services import search_engine
from app.services.browse_state import COMPARE_LIMIT, BrowseState, ToggleCompare, reduce
from app.services.catalog_store import CatalogStore, get_catalog_store
from app.services.geo import with_distances

router = APIRouter(prefix="/public", tags=["Public — Hospitals"])


@router.get("/hospitals", response_model=SearchResponse)
async def search_hospitals(
    q: str = Query(default="", max_length=200),
    surgery_type: Optional[SurgeryType] = Query(default=None, alias="surgeryType"),
    min_price: Optional[int] = Query(default=None, alias="minPrice", ge=0),
    max_price: Optional[int] = Query(default=None, alias="maxPrice", ge=0),
    region: Optional[str] = Query(default=None),
    district: Optional[str] = Query(default=None),
    min_rating: Optional[float] = Query(default=None, alias="minRating", ge=0, le=5),
    min_experience: Optional[int] = Query(default=None, alias="minExperience", ge=0),
    insurance: Optional[str] = Query(default=None),
    max_distance: Optional[float] = Query(default=None, alias="maxDistance", gt=0),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    sort_by: SortKey = Query(default=SortKey.BEST_MATCH, alias="sortBy"),
    store: CatalogStore = Depends(get_catalog_store),
):
    """Filters are ANDed; distances are only known when lat+lng are given"""
    filters = SearchFilters(
        query=q,
        surgery_type=surgery_type,
        min_price=min_price,
        max_price=max_price,
        region=region or None,
        district=district or None,
        min_rating=min_rating,
        min_experience=min_experience,
        insurance=insurance or None,
        max_distance=max_distance,
        sort_by=sort_by,
    )
    origin = (lat, lng) if lat is not None and lng is not None else None
    hospitals = with_distances(await store.list_hospitals(), origin)
    results = search_engine.apply_filters(hospitals, filters)
    return SearchResponse(
        total=len(results),
        active_filters=search_engine.active_filter_count(filters),
        filters=filters,
        hospitals=results,
    )


@router.get("/hospitals/compare", response_model=list[HospitalRecord])
async def compare_hospitals(
    ids: str = Query(..., description="Comma-separated hospital ids"),
    store: CatalogStore = Depends(get_catalog_store),
):
    """Hospitals in the order requested"""
    requested = [i.strip() for i in ids.split(",") if i.strip()]
    state = BrowseState()
    for hospital_id in requested:
        state = reduce(state, ToggleCompare(hospital_id))

    if len(set(requested)) > COMPARE_LIMIT:
        raise HTTPException(status_code=422, detail=f"You can compare up to {COMPARE_LIMIT} hospitals")
    if len(state.compare) < 2:
        raise HTTPException(status_code=422, detail="Select at least 2 hospitals to compare")

    found = search_engine.find_by_ids(await store.list_hospitals(), state.compare)
    if len(found) != len(state.compare):
        raise HTTPException(status_code=404, detail="Hospital not found")
    return found


@router.get("/hospitals/{slug}", response_model=HospitalRecord)
async def get_hospital(slug: str, store: CatalogStore = Depends(get_catalog_store)):
    return await _get_or_404(store, slug)


@router.get("/hospitals/{slug}/reviews", response_model=list[ReviewRecord])
async def list_reviews(slug: str, store: CatalogStore = Depends(get_catalog_store)):
    h = await _get_or_404(store, slug)
    return await store.list_reviews(h.id)


@router.get("/surgery-types")
async def list_surgery_types():
    return [{"value": t.value, **meta} for t, meta in SURGERY_TYPES.items()]


@router.get("/regions")
async def list_regions():
    return KARNATAKA_REGIONS


# ── Helpers ──────────────────────────────────────────────────────
async def _get_or_404(store: CatalogStore, key: str) -> HospitalRecord:
    h = await store.get_hospital(key)
    if not h:
        raise HTTPException(status_code=404, detail="Hospital not found")
    return h
