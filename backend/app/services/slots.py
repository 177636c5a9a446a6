"""Bookable time slots + the date window a booking may fall in"""
from datetime import date, datetime, time, timedelta

import arrow

from app.core.config import settings

# Half-hour slots, with the 12:00-14:00 lunch break
TIME_SLOTS = [
    "09:00 AM", "09:30 AM", "10:00 AM", "10:30 AM", "11:00 AM", "11:30 AM",
    "12:00 PM", "02:00 PM", "02:30 PM", "03:00 PM", "03:30 PM", "04:00 PM",
    "04:30 PM", "05:00 PM",
]

_LABEL_FORMAT = "%I:%M %p"


def today() -> date:
    return arrow.now(settings.TIMEZONE).date()


def is_valid_slot(label: str | None) -> bool:
    return label in TIME_SLOTS


def label_to_time(label: str) -> time:
    if not is_valid_slot(label):
        raise ValueError(f"Unknown time slot: {label!r}")
    return datetime.strptime(label, _LABEL_FORMAT).time()


def time_to_label(value: time) -> str:
    return value.strftime(_LABEL_FORMAT)


def booking_window(on: date, horizon_days: int | None = None) -> tuple[date, date]:
    horizon = settings.BOOKING_HORIZON_DAYS if horizon_days is None else horizon_days
    return on, on + timedelta(days=horizon)


def date_error(value: date | None, on: date, horizon_days: int | None = None) -> str | None:
    """Reason `value` can't be booked, or None when it can"""
    if value is None:
        return "Please select a date"
    first, last = booking_window(on, horizon_days)
    if value < first:
        return "Date cannot be in the past"
    if value > last:
        return f"Date must be within {(last - first).days} days"
    return None
