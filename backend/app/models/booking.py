import enum
import uuid
from datetime import date, datetime, time

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, String, Text, Time, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class BookingType(str, enum.Enum):
    CONSULTATION = "consultation"
    SURGERY = "surgery"
    VISIT = "visit"


BOOKING_TYPE_LABELS = {
    BookingType.CONSULTATION: "Consultation",
    BookingType.SURGERY: "Surgery",
    BookingType.VISIT: "Hospital Visit",
}


class BookingStatus(str, enum.Enum):
    PENDING = "pending"        # created / rescheduled, awaiting hospital confirmation
    CONFIRMED = "confirmed"    # confirmed by the hospital
    COMPLETED = "completed"    # never written by this service, derived from the date
    CANCELLED = "cancelled"    # terminal


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    hospital_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("hospitals.id", ondelete="CASCADE"))
    doctor_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("doctors.id", ondelete="SET NULL"))
    surgery_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("surgeries.id", ondelete="SET NULL"))

    booking_type: Mapped[BookingType] = mapped_column(Enum(BookingType), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(Enum(BookingStatus), default=BookingStatus.PENDING)

    # ── Slot ─────────────────────────────────────────────────────────
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_time: Mapped[time] = mapped_column(Time, nullable=False)

    # ── Patient contact ──────────────────────────────────────────────
    patient_name: Mapped[str] = mapped_column(String(200), nullable=False)
    patient_email: Mapped[str] = mapped_column(String(320), nullable=False)
    patient_phone: Mapped[str | None] = mapped_column(String(20))
    notes: Mapped[str | None] = mapped_column(Text)

    confirmation_sent: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    hospital: Mapped["Hospital"] = relationship()

    def __repr__(self) -> str:
        return f"<Booking {self.id} {self.scheduled_date} [{self.status}]>"
