"""Booking workflow — slot selection → patient details → submit → confirmed

    Unauthenticated   (no signed-in user; selection kept for after login)
    SelectingSlot ──advance──▶ CollectingDetails ──submit──▶ Submitting ──▶ Confirmed
          ▲                        │   ▲                        │
          └─────────back───────────┘   └──── store failure ─────┘

Each step is its own frozen dataclass carrying only the fields valid for it.
Validation failures raise BookingValidationError and leave the state as it
was. The confirmation email is best-effort: Confirmed is reached as soon as
the booking row exists, and the email's outcome only feeds the booking's
`confirmation_sent` flag.
"""
import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Union

from email_validator import EmailNotValidError, validate_email

from app.core.errors import BookingValidationError, StoreError, SurgeryHubError, WorkflowStateError
from app.models.booking import BookingType
from app.schemas.account import CurrentUser
from app.schemas.booking import BookingNotification, BookingRecord, NewBooking
from app.schemas.hospital import DoctorRecord, HospitalRecord, SurgeryRecord
from app.services import slots
from app.services.catalog_store import BookingStore
from app.services.dispatch import NotificationDispatcher

logger = logging.getLogger(__name__)

# confirmation tasks still running after their workflow was reset or dropped
_in_flight: set[asyncio.Task] = set()


@dataclass(frozen=True)
class Selection:
    """What the patient is booking; survives the login interstitial"""
    hospital: HospitalRecord
    booking_type: BookingType = BookingType.CONSULTATION
    doctor: Optional[DoctorRecord] = None
    surgery: Optional[SurgeryRecord] = None


# ── Step states ──────────────────────────────────────────────────
@dataclass(frozen=True)
class Unauthenticated:
    selection: Selection


@dataclass(frozen=True)
class SelectingSlot:
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None


@dataclass(frozen=True)
class CollectingDetails:
    scheduled_date: date
    scheduled_time: str
    patient_name: str = ""
    patient_email: str = ""
    patient_phone: str = ""
    notes: str = ""


@dataclass(frozen=True)
class Submitting:
    details: CollectingDetails


@dataclass(frozen=True)
class Confirmed:
    booking: BookingRecord
    # resolves to whether the confirmation email went out; never raises
    notification: "asyncio.Task[bool]"


Step = Union[Unauthenticated, SelectingSlot, CollectingDetails, Submitting, Confirmed]


def email_error(value: str) -> str | None:
    if not value:
        return "Email is required"
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return "Invalid email address"
    return None


class BookingWorkflow:
    def __init__(
        self,
        selection: Selection,
        store: BookingStore,
        dispatcher: NotificationDispatcher,
        user: CurrentUser | None = None,
        today: date | None = None,
    ):
        self.selection = selection
        self.store = store
        self.dispatcher = dispatcher
        self.user = user
        self.today = today or slots.today()
        self.state: Step = self._initial()

    def _initial(self) -> Step:
        if self.user is None:
            return Unauthenticated(self.selection)
        return SelectingSlot()

    def _expect(self, *kinds):
        if not isinstance(self.state, kinds):
            expected = " or ".join(k.__name__ for k in kinds)
            raise WorkflowStateError(f"Cannot do that while {type(self.state).__name__}; expected {expected}")

    # ── SelectingSlot ────────────────────────────────────────────
    def start(self) -> Step:
        self.state = self._initial()
        return self.state

    def select_date(self, value: date) -> Step:
        self._expect(SelectingSlot)
        err = slots.date_error(value, self.today)
        if err:
            raise BookingValidationError({"scheduled_date": err})
        self.state = replace(self.state, scheduled_date=value)
        return self.state

    def select_time(self, label: str) -> Step:
        self._expect(SelectingSlot)
        if not slots.is_valid_slot(label):
            raise BookingValidationError({"scheduled_time": "Please select a valid time slot"})
        self.state = replace(self.state, scheduled_time=label)
        return self.state

    def advance(self) -> Step:
        self._expect(SelectingSlot)
        errors = {}
        if self.state.scheduled_date is None:
            errors["scheduled_date"] = "Please select a date"
        if self.state.scheduled_time is None:
            errors["scheduled_time"] = "Please select a time slot"
        if errors:
            raise BookingValidationError(errors)
        # email prefilled from the signed-in account
        self.state = CollectingDetails(
            scheduled_date=self.state.scheduled_date,
            scheduled_time=self.state.scheduled_time,
            patient_email=(self.user.email or "") if self.user else "",
        )
        return self.state

    # ── CollectingDetails ────────────────────────────────────────
    def back(self) -> Step:
        self._expect(CollectingDetails)
        self.state = SelectingSlot(scheduled_date=self.state.scheduled_date, scheduled_time=self.state.scheduled_time)
        return self.state

    def fill_details(
        self,
        patient_name: str | None = None,
        patient_email: str | None = None,
        patient_phone: str | None = None,
        notes: str | None = None,
    ) -> Step:
        self._expect(CollectingDetails)
        changes = {
            "patient_name": patient_name,
            "patient_email": patient_email,
            "patient_phone": patient_phone,
            "notes": notes,
        }
        self.state = replace(self.state, **{k: v.strip() for k, v in changes.items() if v is not None})
        return self.state

    def _validate_details(self, d: CollectingDetails) -> None:
        errors = {}
        if not d.patient_name:
            errors["patient_name"] = "Full name is required"
        err = email_error(d.patient_email)
        if err:
            errors["patient_email"] = err
        if errors:
            raise BookingValidationError(errors)

    # ── Submitting ───────────────────────────────────────────────
    async def submit(self) -> Step:
        if isinstance(self.state, Submitting):
            raise WorkflowStateError("Booking is already being submitted")
        self._expect(CollectingDetails)
        details = self.state
        self._validate_details(details)   # no store call on a bad form

        self.state = Submitting(details)
        new = NewBooking(
            user_id=self.user.id,
            hospital_id=self.selection.hospital.id,
            doctor_id=self.selection.doctor.id if self.selection.doctor else None,
            surgery_id=self.selection.surgery.id if self.selection.surgery else None,
            booking_type=self.selection.booking_type,
            scheduled_date=details.scheduled_date,
            scheduled_time=details.scheduled_time,
            patient_name=details.patient_name,
            patient_email=details.patient_email,
            patient_phone=details.patient_phone or None,
            notes=details.notes or None,
        )
        try:
            booking = await self.store.create_booking(new)
        except SurgeryHubError:
            self.state = details
            raise
        except Exception as e:
            self.state = details
            logger.error(f"Booking insert failed: {e}")
            raise StoreError("Booking", e) from e

        logger.info(f"Booking {booking.id} created for user {self.user.id}")
        notification = asyncio.get_running_loop().create_task(self._deliver_confirmation(booking))
        _in_flight.add(notification)
        notification.add_done_callback(_in_flight.discard)
        self.state = Confirmed(booking=booking, notification=notification)
        return self.state

    async def _deliver_confirmation(self, booking: BookingRecord) -> bool:
        payload = BookingNotification(
            patient_name=booking.patient_name,
            patient_email=booking.patient_email,
            hospital_name=self.selection.hospital.name,
            doctor_name=self.selection.doctor.name if self.selection.doctor else None,
            surgery_name=self.selection.surgery.name if self.selection.surgery else None,
            booking_type=booking.booking_type,
            scheduled_date=booking.scheduled_date,
            scheduled_time=booking.scheduled_time,
            booking_id=booking.id,
        )
        try:
            sent = await self.dispatcher.confirmation(payload)
        except Exception as e:
            logger.error(f"Confirmation dispatch failed for booking {booking.id}: {e}")
            sent = False
        if not sent:
            logger.warning(f"Confirmation email not sent for booking {booking.id}")

        try:
            await self.store.update_booking(booking.id, confirmation_sent=sent)
        except Exception as e:
            logger.error(f"Could not record confirmation_sent={sent} for booking {booking.id}: {e}")
        return sent

    # ── Confirmed ────────────────────────────────────────────────
    def reset(self) -> Step:
        """Close the workflow; everything transient goes back to empty"""
        self.state = self._initial()
        return self.state
