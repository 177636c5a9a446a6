import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    JSON, Boolean, Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text, Uuid, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class SurgeryType(str, enum.Enum):
    DIAGNOSTIC = "diagnostic"
    CURATIVE = "curative"
    RECONSTRUCTIVE = "reconstructive"
    COSMETIC = "cosmetic"
    PALLIATIVE = "palliative"


SURGERY_TYPES = {
    SurgeryType.DIAGNOSTIC: {
        "label": "Diagnostic Surgery",
        "icon": "🔬",
        "description": "Procedures to diagnose medical conditions",
    },
    SurgeryType.CURATIVE: {
        "label": "Curative Surgery",
        "icon": "💊",
        "description": "Surgeries to treat and cure diseases",
    },
    SurgeryType.RECONSTRUCTIVE: {
        "label": "Reconstructive Surgery",
        "icon": "🏥",
        "description": "Restore function and appearance after injury",
    },
    SurgeryType.COSMETIC: {
        "label": "Cosmetic Surgery",
        "icon": "✨",
        "description": "Enhance aesthetic appearance",
    },
    SurgeryType.PALLIATIVE: {
        "label": "Palliative Surgery",
        "icon": "🤲",
        "description": "Improve quality of life and comfort",
    },
}

KARNATAKA_REGIONS = [
    "Bengaluru Urban",
    "Bengaluru Rural",
    "Mysuru",
    "Mangaluru",
    "Hubballi-Dharwad",
    "Belagavi",
    "Kalaburagi",
    "Tumakuru",
    "Ballari",
    "Shivamogga",
]


class Hospital(Base):
    __tablename__ = "hospitals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    tagline: Mapped[str | None] = mapped_column(String(300))
    rating: Mapped[float] = mapped_column(Float, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    year_established: Mapped[int | None] = mapped_column(Integer)

    # ── Location ─────────────────────────────────────────────────────
    address: Mapped[str | None] = mapped_column(String(500))
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    district: Mapped[str] = mapped_column(String(100), nullable=False)
    region: Mapped[str] = mapped_column(String(100), nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)

    # ── Media ────────────────────────────────────────────────────────
    image_url: Mapped[str | None] = mapped_column(String(500))
    gallery_images: Mapped[list] = mapped_column(JSON, default=list)

    # ── Credentials / coverage ───────────────────────────────────────
    accreditations: Mapped[list] = mapped_column(JSON, default=list)     # ["NABH", "JCI"]
    insurance_accepted: Mapped[list] = mapped_column(JSON, default=list)  # ["Star Health", ...]
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    # ── Contact ──────────────────────────────────────────────────────
    contact_phone: Mapped[str | None] = mapped_column(String(50))
    contact_email: Mapped[str | None] = mapped_column(String(200))
    website: Mapped[str | None] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # ── Relations ────────────────────────────────────────────────────
    surgeries: Mapped[list["Surgery"]] = relationship(
        back_populates="hospital", cascade="all, delete-orphan", order_by="Surgery.name"
    )
    doctors: Mapped[list["Doctor"]] = relationship(
        back_populates="hospital", cascade="all, delete-orphan", order_by="Doctor.name"
    )
    reviews: Mapped[list["Review"]] = relationship(
        back_populates="hospital", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Hospital {self.name} [{self.region}]>"


class Surgery(Base):
    __tablename__ = "surgeries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    hospital_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("hospitals.id", ondelete="CASCADE"))

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[SurgeryType] = mapped_column(Enum(SurgeryType), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    min_cost: Mapped[int] = mapped_column(Integer, nullable=False)   # INR
    max_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    average_duration: Mapped[str | None] = mapped_column(String(100))  # "2-3 hours"
    recovery_time: Mapped[str | None] = mapped_column(String(100))     # "2-4 weeks"
    notes: Mapped[str | None] = mapped_column(Text)

    hospital: Mapped["Hospital"] = relationship(back_populates="surgeries")


class Doctor(Base):
    __tablename__ = "doctors"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    hospital_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("hospitals.id", ondelete="CASCADE"))

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    photo_url: Mapped[str | None] = mapped_column(String(500))
    specialization: Mapped[str] = mapped_column(String(200), nullable=False)
    qualification: Mapped[str | None] = mapped_column(String(300))
    experience: Mapped[int] = mapped_column(Integer, default=0)        # years
    consultation_fee: Mapped[int] = mapped_column(Integer, default=0)  # INR
    rating: Mapped[float] = mapped_column(Float, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    availability: Mapped[list] = mapped_column(JSON, default=list)     # ["Mon", "Wed", "Fri"]
    bio: Mapped[str | None] = mapped_column(Text)

    hospital: Mapped["Hospital"] = relationship(back_populates="doctors")


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    hospital_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("hospitals.id", ondelete="CASCADE"))
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_name: Mapped[str] = mapped_column(String(200), nullable=False)

    rating: Mapped[float] = mapped_column(Float, nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    surgery_type: Mapped[SurgeryType | None] = mapped_column(Enum(SurgeryType))
    visit_date: Mapped[date | None] = mapped_column(Date)
    helpful: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    hospital: Mapped["Hospital"] = relationship(back_populates="reviews")
