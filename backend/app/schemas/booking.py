from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.booking import BookingStatus, BookingType


class BookingRecord(BaseModel):
    """A booking as returned by the catalog store; scheduled_time is a slot label"""
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    hospital_id: str
    hospital_name: Optional[str] = None
    doctor_id: Optional[str] = None
    surgery_id: Optional[str] = None
    booking_type: BookingType
    scheduled_date: date
    scheduled_time: str            # "10:00 AM"
    patient_name: str
    patient_email: str
    patient_phone: Optional[str] = None
    notes: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    confirmation_sent: bool = False
    created_at: Optional[str] = None


class NewBooking(BaseModel):
    """Insert payload handed to the store by the booking workflow"""
    user_id: str
    hospital_id: str
    doctor_id: Optional[str] = None
    surgery_id: Optional[str] = None
    booking_type: BookingType
    scheduled_date: date
    scheduled_time: str
    patient_name: str
    patient_email: str
    patient_phone: Optional[str] = None
    notes: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING


# ── Notification payloads ────────────────────────────────────────
class BookingNotification(BaseModel):
    patient_name: str
    patient_email: str
    hospital_name: str
    doctor_name: Optional[str] = None
    surgery_name: Optional[str] = None
    booking_type: BookingType
    scheduled_date: date
    scheduled_time: str
    booking_id: str


class BookingUpdateNotification(BaseModel):
    patient_name: str
    patient_email: str
    hospital_name: str
    booking_type: BookingType
    original_date: date
    original_time: str
    new_date: Optional[date] = None
    new_time: Optional[str] = None
    booking_id: str
    update_type: Literal["cancelled", "rescheduled"]


# ── API bodies ───────────────────────────────────────────────────
class BookingCreate(BaseModel):
    hospital_id: str
    doctor_id: Optional[str] = None
    surgery_id: Optional[str] = None
    booking_type: BookingType = BookingType.CONSULTATION
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    patient_name: str = Field(default="", max_length=200)
    patient_email: str = Field(default="", max_length=320)
    patient_phone: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = Field(None, max_length=2000)


class RescheduleBody(BaseModel):
    scheduled_date: date
    scheduled_time: str


class BookingResponse(BookingRecord):
    display_status: BookingStatus
    can_modify: bool


class BookingCreated(BaseModel):
    booking: BookingRecord
    message: str
