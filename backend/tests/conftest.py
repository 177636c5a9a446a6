import asyncio
import uuid
from datetime import date

import pytest

from app.core.errors import NotFoundError, StoreError
from app.models.hospital import SurgeryType
from app.schemas.account import CurrentUser
from app.schemas.booking import BookingRecord, NewBooking
from app.schemas.hospital import DoctorRecord, HospitalRecord, SurgeryRecord
from app.services.slots import TIME_SLOTS

TODAY = date(2025, 6, 1)
USER = CurrentUser(id="user-1", email="asha@example.com")
VALID_TOKEN = "valid-token"


def make_surgery(name="Knee Replacement", type=SurgeryType.CURATIVE, min_cost=150_000, max_cost=250_000, **kw):
    return SurgeryRecord(
        id=kw.pop("id", f"s-{uuid.uuid4().hex[:6]}"),
        name=name, type=type, min_cost=min_cost, max_cost=max_cost, **kw,
    )


def make_doctor(name="Dr. Kavya Rao", experience=12, **kw):
    return DoctorRecord(
        id=kw.pop("id", f"d-{uuid.uuid4().hex[:6]}"),
        name=name, specialization=kw.pop("specialization", "Orthopedics"), experience=experience, **kw,
    )


def make_hospital(id="h1", name="Manipal Hospital", **kw):
    return HospitalRecord(
        id=id,
        slug=kw.pop("slug", name.lower().replace(" ", "-")),
        name=name,
        city=kw.pop("city", "Bengaluru"),
        district=kw.pop("district", "Bengaluru Urban"),
        region=kw.pop("region", "Bengaluru Urban"),
        **kw,
    )


class FakeBookingStore:
    """In-memory booking store that records every call"""

    def __init__(self, fail_create: bool = False, fail_update: bool = False, hospital_name: str = "Manipal Hospital"):
        self.fail_create = fail_create
        self.fail_update = fail_update
        self.hospital_name = hospital_name
        self.bookings: dict[str, BookingRecord] = {}
        self.create_calls: list[NewBooking] = []
        self.update_calls: list[tuple[str, dict]] = []

    def add(self, **fields) -> BookingRecord:
        defaults = dict(
            id=str(uuid.uuid4()),
            user_id=USER.id,
            hospital_id="h1",
            hospital_name=self.hospital_name,
            booking_type="consultation",
            scheduled_date=date(2025, 6, 10),
            scheduled_time="10:00 AM",
            patient_name="Asha Kumar",
            patient_email="asha@example.com",
        )
        b = BookingRecord(**{**defaults, **fields})
        self.bookings[b.id] = b
        return b

    async def create_booking(self, new: NewBooking) -> BookingRecord:
        self.create_calls.append(new)
        if self.fail_create:
            raise StoreError("Booking", "connection refused")
        b = BookingRecord(id=str(uuid.uuid4()), hospital_name=self.hospital_name, **new.model_dump())
        self.bookings[b.id] = b
        return b

    async def update_booking(self, booking_id: str, **changes) -> BookingRecord:
        self.update_calls.append((booking_id, changes))
        if self.fail_update:
            raise StoreError("Updating booking", "connection refused")
        if booking_id not in self.bookings:
            raise NotFoundError("Booking not found")
        b = self.bookings[booking_id].model_copy(update=changes)
        self.bookings[booking_id] = b
        return b

    async def get_booking(self, booking_id: str) -> BookingRecord | None:
        return self.bookings.get(booking_id)

    async def list_bookings(self, user_id: str) -> list[BookingRecord]:
        mine = [b for b in self.bookings.values() if b.user_id == user_id]
        return sorted(mine, key=lambda b: (b.scheduled_date, TIME_SLOTS.index(b.scheduled_time)))


class FakeDispatcher:
    """Hands back a result channel resolving to `result` (or raising it, if it's an exception)"""

    def __init__(self, result=True):
        self.result = result
        self.confirmations = []
        self.updates = []

    async def _outcome(self):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    def confirmation(self, n):
        self.confirmations.append(n)
        return asyncio.get_running_loop().create_task(self._outcome())

    def update(self, n):
        self.updates.append(n)
        return asyncio.get_running_loop().create_task(self._outcome())


class FakeCatalogStore:
    def __init__(self, hospitals=(), reviews=None):
        self.hospitals = list(hospitals)
        self.reviews = reviews or {}

    async def list_hospitals(self):
        return list(self.hospitals)

    async def get_hospital(self, key):
        return next((h for h in self.hospitals if key in (h.id, h.slug)), None)

    async def list_reviews(self, hospital_id):
        return self.reviews.get(hospital_id, [])


class FakeIdentity:
    def __init__(self, user: CurrentUser = USER):
        self.user = user

    async def get_user(self, token):
        return self.user if token == VALID_TOKEN else None


@pytest.fixture
def booking_store():
    return FakeBookingStore()


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def hospital():
    return make_hospital(
        surgeries=[make_surgery(id="s1")],
        doctors=[make_doctor(id="d1")],
    )
