import uuid
from datetime import date

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.core.database import Base
from app.core.errors import NotFoundError, StoreError
from app.models import Review
from app.models.booking import BookingStatus, BookingType
from app.models.hospital import SurgeryType
from app.schemas.booking import NewBooking
from app.schemas.hospital import DoctorCreate, HospitalCreate, HospitalUpdate, SurgeryCreate
from app.services.catalog_store import SqlAccountStore, SqlBookingStore, SqlCatalogStore


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'surgery_hub.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def catalog(session_factory):
    return SqlCatalogStore(session_factory)


@pytest.fixture
def bookings(session_factory):
    return SqlBookingStore(session_factory)


@pytest.fixture
def accounts(session_factory):
    return SqlAccountStore(session_factory)


@pytest.fixture
async def manipal(catalog):
    h = await catalog.create_hospital(HospitalCreate(
        name="Manipal Hospital", city="Bengaluru", district="Bengaluru Urban", region="Bengaluru Urban",
    ))
    await catalog.add_surgery(h.id, SurgeryCreate(
        name="Knee Replacement", type=SurgeryType.CURATIVE, min_cost=150_000, max_cost=250_000,
    ))
    await catalog.add_doctor(h.id, DoctorCreate(name="Dr. Kavya Rao", specialization="Orthopedics", experience=18))
    return await catalog.get_hospital(h.id)


def new_booking(hospital_id, **kw):
    fields = dict(
        user_id="user-1",
        hospital_id=hospital_id,
        booking_type=BookingType.CONSULTATION,
        scheduled_date=date(2025, 6, 10),
        scheduled_time="10:00 AM",
        patient_name="Asha Kumar",
        patient_email="asha@example.com",
    )
    return NewBooking(**{**fields, **kw})


class TestCatalog:
    async def test_hospital_with_offerings(self, catalog, manipal):
        assert manipal.slug == "manipal-hospital"
        assert [s.name for s in manipal.surgeries] == ["Knee Replacement"]
        assert manipal.doctors[0].experience == 18
        assert manipal.lowest_cost == 150_000

        assert (await catalog.get_hospital("manipal-hospital")).id == manipal.id
        assert [h.id for h in await catalog.list_hospitals()] == [manipal.id]

    async def test_duplicate_name_gets_distinct_slug(self, catalog, manipal):
        again = await catalog.create_hospital(HospitalCreate(
            name="Manipal Hospital", city="Mysuru", district="Mysuru", region="Mysuru",
        ))
        assert again.slug != manipal.slug
        assert again.slug.startswith("manipal-hospital-")

    async def test_update_only_touches_sent_fields(self, catalog, manipal):
        updated = await catalog.update_hospital(manipal.id, HospitalUpdate(
            rating=4.6, insurance_accepted=["Star Health"],
        ))
        assert updated.rating == 4.6
        assert updated.insurance_accepted == ["Star Health"]
        assert updated.name == "Manipal Hospital"

    async def test_unknown_hospital(self, catalog):
        assert await catalog.get_hospital("nowhere") is None
        with pytest.raises(NotFoundError):
            await catalog.update_hospital("nowhere", HospitalUpdate(rating=1))

    async def test_reviews_for_hospital(self, catalog, manipal, session_factory):
        async with session_factory() as db:
            db.add(Review(
                hospital_id=uuid.UUID(manipal.id), user_id="u", user_name="Ravi",
                rating=5, title="Great care", content="Smooth surgery and recovery.",
            ))
            await db.commit()
        reviews = await catalog.list_reviews(manipal.id)
        assert [r.title for r in reviews] == ["Great care"]


class TestBookings:
    async def test_create_round_trips_slot_label(self, bookings, manipal):
        b = await bookings.create_booking(new_booking(manipal.id))
        assert b.scheduled_time == "10:00 AM"
        assert b.status == BookingStatus.PENDING
        assert b.hospital_name == "Manipal Hospital"
        assert b.confirmation_sent is False

    async def test_update_fields(self, bookings, manipal):
        b = await bookings.create_booking(new_booking(manipal.id))
        b = await bookings.update_booking(
            b.id, scheduled_date=date(2025, 6, 15), scheduled_time="02:00 PM", status=BookingStatus.PENDING,
        )
        assert (b.scheduled_date, b.scheduled_time) == (date(2025, 6, 15), "02:00 PM")
        b = await bookings.update_booking(b.id, confirmation_sent=True)
        assert b.confirmation_sent is True

    async def test_update_rejects_other_fields(self, bookings, manipal):
        b = await bookings.create_booking(new_booking(manipal.id))
        with pytest.raises(ValueError):
            await bookings.update_booking(b.id, patient_name="Someone Else")

    async def test_list_is_per_user_and_ordered(self, bookings, manipal):
        later = await bookings.create_booking(new_booking(manipal.id, scheduled_date=date(2025, 6, 20)))
        afternoon = await bookings.create_booking(new_booking(manipal.id, scheduled_time="02:00 PM"))
        morning = await bookings.create_booking(new_booking(manipal.id, scheduled_time="09:00 AM"))
        await bookings.create_booking(new_booking(manipal.id, user_id="user-2"))

        listed = await bookings.list_bookings("user-1")
        assert [b.id for b in listed] == [morning.id, afternoon.id, later.id]

    async def test_missing_booking(self, bookings):
        assert await bookings.get_booking("not-a-uuid") is None
        with pytest.raises(NotFoundError):
            await bookings.update_booking("00000000-0000-0000-0000-000000000000", status=BookingStatus.CANCELLED)

    async def test_stats(self, catalog, bookings, manipal):
        await bookings.create_booking(new_booking(manipal.id))
        old = await bookings.create_booking(new_booking(manipal.id, scheduled_date=date(2025, 5, 1)))
        await bookings.update_booking(old.id, status=BookingStatus.CANCELLED)

        stats = await catalog.hospital_stats(manipal.id, today=date(2025, 6, 1))
        assert stats.total_bookings == 2
        assert stats.bookings_by_status["pending"] == 1
        assert stats.bookings_by_status["cancelled"] == 1
        assert stats.upcoming_bookings == 1

    async def test_database_error_becomes_store_error(self, bookings, manipal, session_factory):
        async with session_factory() as db:
            await db.run_sync(lambda s: Base.metadata.drop_all(s.connection()))
            await db.commit()
        with pytest.raises(StoreError, match="^Booking failed"):
            await bookings.create_booking(new_booking(manipal.id))


class TestAccounts:
    async def test_profile_upsert(self, accounts):
        assert await accounts.get_profile("user-1") is None
        await accounts.upsert_profile("user-1", full_name="Asha Kumar", email="asha@example.com")
        p = await accounts.upsert_profile("user-1", phone="9876543210")
        assert (p.full_name, p.phone) == ("Asha Kumar", "9876543210")

    async def test_favorites(self, accounts, manipal):
        await accounts.add_favorite("user-1", manipal.id, label="Near Home")
        assert await accounts.favorite_ids("user-1") == [manipal.id]

        [fav] = await accounts.list_favorites("user-1")
        assert fav.label == "Near Home"
        assert fav.hospital.name == "Manipal Hospital"

        await accounts.remove_favorite("user-1", manipal.id)
        assert await accounts.favorite_ids("user-1") == []

    async def test_saving_same_favorite_twice_is_a_no_op(self, accounts, manipal):
        await accounts.add_favorite("user-1", manipal.id)
        await accounts.add_favorite("user-1", manipal.id)
        assert await accounts.favorite_ids("user-1") == [manipal.id]

    async def test_favorite_unknown_hospital(self, accounts):
        with pytest.raises(NotFoundError):
            await accounts.add_favorite("user-1", "00000000-0000-0000-0000-000000000000")
