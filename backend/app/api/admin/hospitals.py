"""
Admin API — hospital catalog management (X-Admin-Key)
POST  /admin/hospitals                  — register a hospital
GET   /admin/hospitals                  — all hospitals
GET   /admin/hospitals/{id}             — detail (id or slug)
PATCH /admin/hospitals/{id}             — update listing details / verification
POST  /admin/hospitals/{id}/surgeries   — add a surgery offering
POST  /admin/hospitals/{id}/doctors     — add a doctor
GET   /admin/hospitals/{id}/stats       — booking counts + rating
"""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas.hospital import (
    DoctorCreate, DoctorRecord, HospitalCreate, HospitalRecord, HospitalStats, HospitalUpdate,
    SurgeryCreate, SurgeryRecord,
)
from app.services import slots
from app.services.catalog_store import SqlCatalogStore, get_catalog_store

router = APIRouter(prefix="/admin/hospitals", tags=["Admin — Hospitals"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=HospitalRecord)
async def create_hospital(body: HospitalCreate, store: SqlCatalogStore = Depends(get_catalog_store)):
    """Slug comes from the name; a clash gets a short random suffix"""
    return await store.create_hospital(body)


@router.get("", response_model=list[HospitalRecord])
async def list_hospitals(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    store: SqlCatalogStore = Depends(get_catalog_store),
):
    hospitals = await store.list_hospitals()
    return hospitals[skip:skip + limit]


@router.get("/{hospital_id}", response_model=HospitalRecord)
async def get_hospital(hospital_id: str, store: SqlCatalogStore = Depends(get_catalog_store)):
    return await _get_or_404(store, hospital_id)


@router.patch("/{hospital_id}", response_model=HospitalRecord)
async def update_hospital(
    hospital_id: str,
    body: HospitalUpdate,
    store: SqlCatalogStore = Depends(get_catalog_store),
):
    """Only the fields sent are changed"""
    return await store.update_hospital(hospital_id, body)


@router.post("/{hospital_id}/surgeries", status_code=status.HTTP_201_CREATED, response_model=SurgeryRecord)
async def add_surgery(
    hospital_id: str,
    body: SurgeryCreate,
    store: SqlCatalogStore = Depends(get_catalog_store),
):
    return await store.add_surgery(hospital_id, body)


@router.post("/{hospital_id}/doctors", status_code=status.HTTP_201_CREATED, response_model=DoctorRecord)
async def add_doctor(
    hospital_id: str,
    body: DoctorCreate,
    store: SqlCatalogStore = Depends(get_catalog_store),
):
    return await store.add_doctor(hospital_id, body)


@router.get("/{hospital_id}/stats", response_model=HospitalStats)
async def hospital_stats(
    hospital_id: str,
    store: SqlCatalogStore = Depends(get_catalog_store),
    today: date = Depends(slots.today),
):
    return await store.hospital_stats(hospital_id, today)


# ── Helpers ──────────────────────────────────────────────────────
async def _get_or_404(store: SqlCatalogStore, key: str) -> HospitalRecord:
    h = await store.get_hospital(key)
    if not h:
        raise HTTPException(status_code=404, detail="Hospital not found")
    return h
