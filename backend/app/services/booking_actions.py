"""Actions on existing bookings — reschedule + cancel

Both are offered only while the booking can still be modified (not
cancelled, date not in the past). The store update is the action; the
patient email afterwards is best-effort and never fails it.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date

from app.core.errors import BookingStateError, BookingValidationError, StoreError, SurgeryHubError
from app.models.booking import BookingStatus
from app.schemas.booking import BookingRecord, BookingUpdateNotification
from app.services import slots
from app.services.catalog_store import BookingStore
from app.services.dispatch import NotificationDispatcher

logger = logging.getLogger(__name__)

MODIFIABLE = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


def is_past(booking: BookingRecord, today: date) -> bool:
    """Day granularity: a booking dated today is not past until the date rolls over"""
    return booking.scheduled_date < today


def can_modify(booking: BookingRecord, today: date) -> bool:
    return booking.status in MODIFIABLE and not is_past(booking, today)


def display_status(booking: BookingRecord, today: date) -> BookingStatus:
    """Status as shown to the patient; past, non-cancelled bookings read as completed"""
    if booking.status == BookingStatus.CANCELLED:
        return BookingStatus.CANCELLED
    if booking.status == BookingStatus.CONFIRMED:
        return BookingStatus.CONFIRMED
    if is_past(booking, today):
        return BookingStatus.COMPLETED
    return booking.status


def _guard(booking: BookingRecord, today: date, action: str) -> None:
    if booking.status == BookingStatus.CANCELLED:
        raise BookingStateError(f"Cannot {action} a cancelled booking")
    if not can_modify(booking, today):
        raise BookingStateError(f"Cannot {action} a past booking")


def _update_payload(booking: BookingRecord, update_type: str, **extra) -> BookingUpdateNotification:
    return BookingUpdateNotification(
        patient_name=booking.patient_name,
        patient_email=booking.patient_email,
        hospital_name=booking.hospital_name or "Unknown Hospital",
        booking_type=booking.booking_type,
        original_date=booking.scheduled_date,
        original_time=booking.scheduled_time,
        booking_id=booking.id,
        update_type=update_type,
        **extra,
    )


def _notify(dispatcher: NotificationDispatcher, n: BookingUpdateNotification) -> "asyncio.Task[bool] | None":
    try:
        return dispatcher.update(n)
    except Exception as e:
        logger.error(f"{n.update_type} notification for booking {n.booking_id} not dispatched: {e}")
        return None


@dataclass(frozen=True)
class ActionResult:
    booking: BookingRecord
    notification: "asyncio.Task[bool] | None"


async def _store_update(store: BookingStore, booking_id: str, action: str, **changes) -> BookingRecord:
    try:
        return await store.update_booking(booking_id, **changes)
    except SurgeryHubError:
        raise
    except Exception as e:
        logger.error(f"{action} of booking {booking_id} failed: {e}")
        raise StoreError(action, e) from e


# ══════════════════════════════════════════════════════════════════
# Reschedule
# ══════════════════════════════════════════════════════════════════
class RescheduleFlow:
    """Slot selection seeded with the booking's current date/time"""

    def __init__(
        self,
        booking: BookingRecord,
        store: BookingStore,
        dispatcher: NotificationDispatcher,
        today: date | None = None,
    ):
        self.today = today or slots.today()
        _guard(booking, self.today, "reschedule")
        self.booking = booking
        self.store = store
        self.dispatcher = dispatcher
        self.scheduled_date: date | None = booking.scheduled_date
        self.scheduled_time: str | None = booking.scheduled_time

    def select_date(self, value: date) -> None:
        err = slots.date_error(value, self.today)
        if err:
            raise BookingValidationError({"scheduled_date": err})
        self.scheduled_date = value

    def select_time(self, label: str) -> None:
        if not slots.is_valid_slot(label):
            raise BookingValidationError({"scheduled_time": "Please select a valid time slot"})
        self.scheduled_time = label

    async def confirm(self) -> ActionResult:
        errors = {}
        date_err = slots.date_error(self.scheduled_date, self.today)
        if date_err:
            errors["scheduled_date"] = date_err
        if not slots.is_valid_slot(self.scheduled_time):
            errors["scheduled_time"] = "Please select a time slot"
        if errors:
            raise BookingValidationError(errors)

        original = self.booking
        updated = await _store_update(
            self.store,
            original.id,
            "Rescheduling booking",
            scheduled_date=self.scheduled_date,
            scheduled_time=self.scheduled_time,
            status=BookingStatus.PENDING,
        )
        logger.info(
            f"Booking {original.id} rescheduled {original.scheduled_date} {original.scheduled_time}"
            f" → {updated.scheduled_date} {updated.scheduled_time}"
        )
        notification = _notify(
            self.dispatcher,
            _update_payload(
                original, "rescheduled",
                new_date=updated.scheduled_date,
                new_time=updated.scheduled_time,
            ),
        )
        return ActionResult(booking=updated, notification=notification)


# ══════════════════════════════════════════════════════════════════
# Cancel
# ══════════════════════════════════════════════════════════════════
async def cancel_booking(
    booking: BookingRecord,
    store: BookingStore,
    dispatcher: NotificationDispatcher,
    today: date | None = None,
) -> ActionResult:
    """pending|confirmed → cancelled; there is no way back"""
    _guard(booking, today or slots.today(), "cancel")
    updated = await _store_update(store, booking.id, "Cancelling booking", status=BookingStatus.CANCELLED)
    logger.info(f"Booking {booking.id} cancelled")
    notification = _notify(dispatcher, _update_payload(booking, "cancelled"))
    return ActionResult(booking=updated, notification=notification)
