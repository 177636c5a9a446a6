from app.models.hospital import Hospital, Surgery, Doctor, Review, SurgeryType, SURGERY_TYPES, KARNATAKA_REGIONS
from app.models.booking import Booking, BookingType, BookingStatus, BOOKING_TYPE_LABELS
from app.models.account import Profile, Favorite

__all__ = [
    "Hospital", "Surgery", "Doctor", "Review", "SurgeryType", "SURGERY_TYPES", "KARNATAKA_REGIONS",
    "Booking", "BookingType", "BookingStatus", "BOOKING_TYPE_LABELS",
    "Profile", "Favorite",
]
