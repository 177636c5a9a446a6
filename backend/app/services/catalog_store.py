"""Catalog store — hospitals, bookings, profiles and favorites in PostgreSQL

Each call opens its own session, so a booking insert and the follow-up
notification-flag update are independent writes. Records leave this module as
pydantic models; SQLAlchemy errors leave it as StoreError.
"""
import logging
import uuid
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import date
from typing import Protocol

from slugify import slugify
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import AsyncSessionLocal
from app.core.errors import NotFoundError, StoreError
from app.models.account import Favorite, Profile
from app.models.booking import Booking, BookingStatus
from app.models.hospital import Doctor, Hospital, Review, Surgery
from app.schemas.account import FavoriteResponse, ProfileResponse
from app.schemas.booking import BookingRecord, NewBooking
from app.schemas.hospital import (
    DoctorCreate, DoctorRecord, HospitalCreate, HospitalRecord, HospitalStats, HospitalUpdate,
    ReviewRecord, SurgeryCreate, SurgeryRecord,
)
from app.services.slots import label_to_time, time_to_label

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]


class CatalogStore(Protocol):
    async def list_hospitals(self) -> list[HospitalRecord]: ...

    async def get_hospital(self, key: str) -> HospitalRecord | None: ...

    async def list_reviews(self, hospital_id: str) -> list[ReviewRecord]: ...


class BookingStore(Protocol):
    async def create_booking(self, new: NewBooking) -> BookingRecord: ...

    async def update_booking(self, booking_id: str, **changes) -> BookingRecord: ...

    async def get_booking(self, booking_id: str) -> BookingRecord | None: ...

    async def list_bookings(self, user_id: str) -> list[BookingRecord]: ...


def _uuid(value: str | None) -> uuid.UUID | None:
    if value is None:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _iso(value) -> str | None:
    return value.isoformat() if value else None


class _SqlStore:
    def __init__(self, session_factory: SessionFactory = AsyncSessionLocal):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, action: str):
        async with self._session_factory() as db:
            try:
                yield db
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"{action} failed: {e}")
                raise StoreError(action, getattr(e, "orig", None) or e) from e


# ── Serializers ──────────────────────────────────────────────────
def hospital_to_record(h: Hospital) -> HospitalRecord:
    return HospitalRecord(
        id=str(h.id),
        slug=h.slug,
        name=h.name,
        tagline=h.tagline,
        rating=h.rating or 0.0,
        review_count=h.review_count or 0,
        year_established=h.year_established,
        address=h.address,
        city=h.city,
        district=h.district,
        region=h.region,
        latitude=h.latitude,
        longitude=h.longitude,
        image_url=h.image_url,
        gallery_images=h.gallery_images or [],
        accreditations=h.accreditations or [],
        insurance_accepted=h.insurance_accepted or [],
        contact_phone=h.contact_phone,
        contact_email=h.contact_email,
        website=h.website,
        is_verified=bool(h.is_verified),
        surgeries=[_surgery_to_record(s) for s in h.surgeries],
        doctors=[_doctor_to_record(d) for d in h.doctors],
    )


def _surgery_to_record(s: Surgery) -> SurgeryRecord:
    return SurgeryRecord(
        id=str(s.id),
        name=s.name,
        type=s.type,
        description=s.description,
        min_cost=s.min_cost,
        max_cost=s.max_cost,
        average_duration=s.average_duration,
        recovery_time=s.recovery_time,
        notes=s.notes,
    )


def _doctor_to_record(d: Doctor) -> DoctorRecord:
    return DoctorRecord(
        id=str(d.id),
        name=d.name,
        photo_url=d.photo_url,
        specialization=d.specialization,
        qualification=d.qualification,
        experience=d.experience or 0,
        consultation_fee=d.consultation_fee or 0,
        rating=d.rating or 0.0,
        review_count=d.review_count or 0,
        availability=d.availability or [],
        bio=d.bio,
    )


def _review_to_record(r: Review) -> ReviewRecord:
    return ReviewRecord(
        id=str(r.id),
        hospital_id=str(r.hospital_id),
        user_name=r.user_name,
        rating=r.rating,
        title=r.title,
        content=r.content,
        surgery_type=r.surgery_type,
        visit_date=r.visit_date,
        helpful=r.helpful or 0,
        created_at=_iso(r.created_at),
    )


def booking_to_record(b: Booking, hospital_name: str | None = None) -> BookingRecord:
    return BookingRecord(
        id=str(b.id),
        user_id=b.user_id,
        hospital_id=str(b.hospital_id),
        hospital_name=hospital_name,
        doctor_id=str(b.doctor_id) if b.doctor_id else None,
        surgery_id=str(b.surgery_id) if b.surgery_id else None,
        booking_type=b.booking_type,
        scheduled_date=b.scheduled_date,
        scheduled_time=time_to_label(b.scheduled_time),
        patient_name=b.patient_name,
        patient_email=b.patient_email,
        patient_phone=b.patient_phone,
        notes=b.notes,
        status=b.status,
        confirmation_sent=bool(b.confirmation_sent),
        created_at=_iso(b.created_at),
    )


def _profile_to_response(p: Profile) -> ProfileResponse:
    return ProfileResponse(
        user_id=p.user_id,
        full_name=p.full_name,
        email=p.email,
        phone=p.phone,
        created_at=_iso(p.created_at),
        updated_at=_iso(p.updated_at),
    )


def _hospital_query():
    return select(Hospital).options(selectinload(Hospital.surgeries), selectinload(Hospital.doctors))


# ══════════════════════════════════════════════════════════════════
# Hospitals
# ══════════════════════════════════════════════════════════════════
class SqlCatalogStore(_SqlStore):
    async def list_hospitals(self) -> list[HospitalRecord]:
        async with self._session("Loading hospitals") as db:
            result = await db.execute(_hospital_query().order_by(Hospital.created_at, Hospital.name))
            return [hospital_to_record(h) for h in result.scalars().all()]

    async def get_hospital(self, key: str) -> HospitalRecord | None:
        """Look up by id or slug"""
        async with self._session("Loading hospital") as db:
            h = await self._load(db, key)
            return hospital_to_record(h) if h else None

    async def list_reviews(self, hospital_id: str) -> list[ReviewRecord]:
        hid = _uuid(hospital_id)
        if hid is None:
            return []
        async with self._session("Loading reviews") as db:
            result = await db.execute(
                select(Review).where(Review.hospital_id == hid).order_by(Review.created_at.desc())
            )
            return [_review_to_record(r) for r in result.scalars().all()]

    # ── admin ────────────────────────────────────────────────────
    async def create_hospital(self, body: HospitalCreate) -> HospitalRecord:
        async with self._session("Creating hospital") as db:
            slug = slugify(body.name, separator="-")
            existing = await db.execute(select(Hospital.id).where(Hospital.slug == slug))
            if existing.scalar_one_or_none():
                slug = f"{slug}-{uuid.uuid4().hex[:4]}"

            hospital = Hospital(slug=slug, **body.model_dump())
            db.add(hospital)
            await db.commit()
            return hospital_to_record(await self._load(db, str(hospital.id)))

    async def update_hospital(self, hospital_id: str, body: HospitalUpdate) -> HospitalRecord:
        async with self._session("Updating hospital") as db:
            h = await self._load_or_404(db, hospital_id)
            for field, value in body.model_dump(exclude_none=True).items():
                setattr(h, field, value)
            await db.commit()
            return hospital_to_record(await self._load(db, hospital_id))

    async def add_surgery(self, hospital_id: str, body: SurgeryCreate) -> SurgeryRecord:
        async with self._session("Adding surgery") as db:
            h = await self._load_or_404(db, hospital_id)
            surgery = Surgery(hospital_id=h.id, **body.model_dump())
            db.add(surgery)
            await db.commit()
            return _surgery_to_record(surgery)

    async def add_doctor(self, hospital_id: str, body: DoctorCreate) -> DoctorRecord:
        async with self._session("Adding doctor") as db:
            h = await self._load_or_404(db, hospital_id)
            doctor = Doctor(hospital_id=h.id, **body.model_dump())
            db.add(doctor)
            await db.commit()
            return _doctor_to_record(doctor)

    async def hospital_stats(self, hospital_id: str, today: date) -> HospitalStats:
        async with self._session("Loading hospital stats") as db:
            h = await self._load_or_404(db, hospital_id)
            rows = await db.execute(
                select(Booking.status, func.count(Booking.id))
                .where(Booking.hospital_id == h.id)
                .group_by(Booking.status)
            )
            by_status = {status.value: 0 for status in BookingStatus}
            for status, count in rows.all():
                by_status[BookingStatus(status).value] = count

            upcoming = await db.execute(
                select(func.count(Booking.id)).where(
                    Booking.hospital_id == h.id,
                    Booking.scheduled_date >= today,
                    Booking.status != BookingStatus.CANCELLED,
                )
            )
            return HospitalStats(
                hospital_id=str(h.id),
                total_bookings=sum(by_status.values()),
                bookings_by_status=by_status,
                upcoming_bookings=upcoming.scalar_one(),
                average_rating=h.rating or 0.0,
                review_count=h.review_count or 0,
            )

    # ── helpers ──────────────────────────────────────────────────
    async def _load(self, db: AsyncSession, key: str) -> Hospital | None:
        hid = _uuid(key)
        stmt = _hospital_query().where(Hospital.id == hid) if hid else _hospital_query().where(Hospital.slug == key)
        result = await db.execute(stmt.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def _load_or_404(self, db: AsyncSession, key: str) -> Hospital:
        h = await self._load(db, key)
        if not h:
            raise NotFoundError("Hospital not found")
        return h


# ══════════════════════════════════════════════════════════════════
# Bookings
# ══════════════════════════════════════════════════════════════════
_BOOKING_FIELDS = {"status", "scheduled_date", "scheduled_time", "confirmation_sent"}


class SqlBookingStore(_SqlStore):
    async def create_booking(self, new: NewBooking) -> BookingRecord:
        async with self._session("Booking") as db:
            booking = Booking(
                user_id=new.user_id,
                hospital_id=_uuid(new.hospital_id),
                doctor_id=_uuid(new.doctor_id),
                surgery_id=_uuid(new.surgery_id),
                booking_type=new.booking_type,
                status=new.status,
                scheduled_date=new.scheduled_date,
                scheduled_time=label_to_time(new.scheduled_time),
                patient_name=new.patient_name,
                patient_email=new.patient_email,
                patient_phone=new.patient_phone,
                notes=new.notes,
            )
            db.add(booking)
            await db.commit()
            return await self._reload(db, booking.id)

    async def update_booking(self, booking_id: str, **changes) -> BookingRecord:
        unknown = set(changes) - _BOOKING_FIELDS
        if unknown:
            raise ValueError(f"Cannot update booking fields: {sorted(unknown)}")
        async with self._session("Updating booking") as db:
            booking = await db.get(Booking, _uuid(booking_id)) if _uuid(booking_id) else None
            if not booking:
                raise NotFoundError("Booking not found")
            for field, value in changes.items():
                if field == "scheduled_time":
                    value = label_to_time(value)
                setattr(booking, field, value)
            await db.commit()
            return await self._reload(db, booking.id)

    async def get_booking(self, booking_id: str) -> BookingRecord | None:
        bid = _uuid(booking_id)
        if bid is None:
            return None
        async with self._session("Loading booking") as db:
            result = await db.execute(
                select(Booking).options(selectinload(Booking.hospital)).where(Booking.id == bid)
            )
            b = result.scalar_one_or_none()
            return booking_to_record(b, b.hospital.name if b.hospital else None) if b else None

    async def list_bookings(self, user_id: str) -> list[BookingRecord]:
        async with self._session("Loading bookings") as db:
            result = await db.execute(
                select(Booking)
                .options(selectinload(Booking.hospital))
                .where(Booking.user_id == user_id)
                .order_by(Booking.scheduled_date.asc(), Booking.scheduled_time.asc())
            )
            return [
                booking_to_record(b, b.hospital.name if b.hospital else None)
                for b in result.scalars().all()
            ]

    async def _reload(self, db: AsyncSession, booking_id: uuid.UUID) -> BookingRecord:
        result = await db.execute(
            select(Booking)
            .options(selectinload(Booking.hospital))
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        b = result.scalar_one()
        return booking_to_record(b, b.hospital.name if b.hospital else None)


# ══════════════════════════════════════════════════════════════════
# Profiles + favorites
# ══════════════════════════════════════════════════════════════════
class SqlAccountStore(_SqlStore):
    async def get_profile(self, user_id: str) -> ProfileResponse | None:
        async with self._session("Loading profile") as db:
            result = await db.execute(select(Profile).where(Profile.user_id == user_id))
            p = result.scalar_one_or_none()
            return _profile_to_response(p) if p else None

    async def upsert_profile(self, user_id: str, **fields) -> ProfileResponse:
        async with self._session("Updating profile") as db:
            result = await db.execute(select(Profile).where(Profile.user_id == user_id))
            p = result.scalar_one_or_none()
            if p is None:
                p = Profile(user_id=user_id)
                db.add(p)
            for field, value in fields.items():
                setattr(p, field, value)
            await db.commit()
            await db.refresh(p)
            return _profile_to_response(p)

    async def list_favorites(self, user_id: str) -> list[FavoriteResponse]:
        async with self._session("Loading favorites") as db:
            result = await db.execute(
                select(Favorite)
                .options(
                    selectinload(Favorite.hospital).selectinload(Hospital.surgeries),
                    selectinload(Favorite.hospital).selectinload(Hospital.doctors),
                )
                .where(Favorite.user_id == user_id)
                .order_by(Favorite.created_at)
            )
            return [
                FavoriteResponse(
                    hospital_id=str(f.hospital_id),
                    label=f.label,
                    notes=f.notes,
                    created_at=_iso(f.created_at),
                    hospital=hospital_to_record(f.hospital) if f.hospital else None,
                )
                for f in result.scalars().all()
            ]

    async def favorite_ids(self, user_id: str) -> list[str]:
        async with self._session("Loading favorites") as db:
            result = await db.execute(
                select(Favorite.hospital_id).where(Favorite.user_id == user_id).order_by(Favorite.created_at)
            )
            return [str(hid) for hid in result.scalars().all()]

    async def add_favorite(self, user_id: str, hospital_id: str, label: str | None = None,
                           notes: str | None = None) -> None:
        hid = _uuid(hospital_id)
        if hid is None:
            raise NotFoundError("Hospital not found")
        async with self._session("Saving favorite") as db:
            if not await db.get(Hospital, hid):
                raise NotFoundError("Hospital not found")
            db.add(Favorite(user_id=user_id, hospital_id=hid, label=label, notes=notes))
            try:
                await db.commit()
            except IntegrityError:
                # uq_favorites_user_hospital: already saved by a concurrent request
                await db.rollback()
                logger.info(f"Favorite {hospital_id} already saved for user {user_id}")

    async def remove_favorite(self, user_id: str, hospital_id: str) -> None:
        hid = _uuid(hospital_id)
        if hid is None:
            return
        async with self._session("Removing favorite") as db:
            result = await db.execute(
                select(Favorite).where(Favorite.user_id == user_id, Favorite.hospital_id == hid)
            )
            fav = result.scalar_one_or_none()
            if fav:
                await db.delete(fav)
                await db.commit()


# ── FastAPI dependencies ─────────────────────────────────────────
def get_catalog_store() -> SqlCatalogStore:
    return SqlCatalogStore()


def get_booking_store() -> SqlBookingStore:
    return SqlBookingStore()


def get_account_store() -> SqlAccountStore:
    return SqlAccountStore()
