from app.schemas.hospital import (
    DoctorRecord, HospitalRecord, ReviewRecord, SearchFilters, SearchResponse, SortKey, SurgeryRecord,
)
from app.schemas.booking import (
    BookingNotification, BookingRecord, BookingUpdateNotification, NewBooking,
)
from app.schemas.account import CurrentUser, ProfileResponse

__all__ = [
    "DoctorRecord",
    "HospitalRecord",
    "ReviewRecord",
    "SearchFilters",
    "SearchResponse",
    "SortKey",
    "SurgeryRecord",
    "BookingNotification",
    "BookingRecord",
    "BookingUpdateNotification",
    "NewBooking",
    "CurrentUser",
    "ProfileResponse",
]
