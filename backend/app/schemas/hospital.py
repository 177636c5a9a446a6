import enum
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from app.models.hospital import SurgeryType


class SurgeryRecord(BaseModel):
    id: str
    name: str
    type: SurgeryType
    description: Optional[str] = None
    min_cost: int = Field(ge=0)
    max_cost: int = Field(ge=0)
    average_duration: Optional[str] = None
    recovery_time: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_cost_range(self):
        if self.min_cost > self.max_cost:
            raise ValueError("min_cost must not exceed max_cost")
        return self


class DoctorRecord(BaseModel):
    id: str
    name: str
    photo_url: Optional[str] = None
    specialization: str
    qualification: Optional[str] = None
    experience: int = Field(default=0, ge=0)
    consultation_fee: int = Field(default=0, ge=0)
    rating: float = 0.0
    review_count: int = 0
    availability: list[str] = []
    bio: Optional[str] = None


class HospitalRecord(BaseModel):
    """A hospital with its offerings, as the search engine and API see it"""
    model_config = ConfigDict(frozen=True)

    id: str
    slug: str
    name: str
    tagline: Optional[str] = None
    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = 0
    year_established: Optional[int] = None
    address: Optional[str] = None
    city: str
    district: str
    region: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance: Optional[float] = None   # km from the searching user, when known
    image_url: Optional[str] = None
    gallery_images: list[str] = []
    accreditations: list[str] = []
    insurance_accepted: list[str] = []
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    website: Optional[str] = None
    is_verified: bool = False
    surgeries: list[SurgeryRecord] = []
    doctors: list[DoctorRecord] = []

    @computed_field
    @property
    def surgery_types(self) -> list[SurgeryType]:
        seen = []
        for s in self.surgeries:
            if s.type not in seen:
                seen.append(s.type)
        return seen

    @computed_field
    @property
    def lowest_cost(self) -> Optional[int]:
        if not self.surgeries:
            return None
        return min(s.min_cost for s in self.surgeries)


class ReviewRecord(BaseModel):
    id: str
    hospital_id: str
    user_name: str
    rating: float
    title: str
    content: str
    surgery_type: Optional[SurgeryType] = None
    visit_date: Optional[date] = None
    helpful: int = 0
    created_at: Optional[str] = None


class SortKey(str, enum.Enum):
    BEST_MATCH = "best_match"
    LOWEST_COST = "lowest_cost"
    HIGHEST_RATED = "highest_rated"
    NEAREST = "nearest"


class SearchFilters(BaseModel):
    """Transient filter specification; never persisted"""
    model_config = ConfigDict(frozen=True)

    query: str = ""
    surgery_type: Optional[SurgeryType] = None
    min_price: Optional[int] = Field(default=None, ge=0)
    max_price: Optional[int] = Field(default=None, ge=0)
    region: Optional[str] = None
    district: Optional[str] = None
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    min_experience: Optional[int] = Field(default=None, ge=0)
    insurance: Optional[str] = None
    max_distance: Optional[float] = Field(default=None, gt=0)
    sort_by: SortKey = SortKey.BEST_MATCH


class SearchResponse(BaseModel):
    total: int
    active_filters: int
    filters: SearchFilters
    hospitals: list[HospitalRecord]


# ── Admin catalog management ─────────────────────────────────────
class HospitalCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    tagline: Optional[str] = Field(None, max_length=300)
    city: str = Field(min_length=1, max_length=100)
    district: str = Field(min_length=1, max_length=100)
    region: str = Field(min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    year_established: Optional[int] = None
    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_email: Optional[str] = Field(None, max_length=200)
    website: Optional[str] = Field(None, max_length=500)


class HospitalUpdate(BaseModel):
    tagline: Optional[str] = Field(None, max_length=300)
    address: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    rating: Optional[float] = Field(None, ge=0, le=5)
    review_count: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = Field(None, max_length=500)
    gallery_images: Optional[list[str]] = None
    accreditations: Optional[list[str]] = None
    insurance_accepted: Optional[list[str]] = None
    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_email: Optional[str] = Field(None, max_length=200)
    website: Optional[str] = Field(None, max_length=500)
    is_verified: Optional[bool] = None


class SurgeryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: SurgeryType
    description: Optional[str] = None
    min_cost: int = Field(ge=0)
    max_cost: int = Field(ge=0)
    average_duration: Optional[str] = Field(None, max_length=100)
    recovery_time: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_cost_range(self):
        if self.min_cost > self.max_cost:
            raise ValueError("min_cost must not exceed max_cost")
        return self


class DoctorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    specialization: str = Field(min_length=1, max_length=200)
    qualification: Optional[str] = Field(None, max_length=300)
    photo_url: Optional[str] = Field(None, max_length=500)
    experience: int = Field(default=0, ge=0)
    consultation_fee: int = Field(default=0, ge=0)
    availability: list[str] = []
    bio: Optional[str] = None


class HospitalStats(BaseModel):
    hospital_id: str
    total_bookings: int
    bookings_by_status: dict[str, int]
    upcoming_bookings: int
    average_rating: float
    review_count: int
