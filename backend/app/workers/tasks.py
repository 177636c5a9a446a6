"""
Celery tasks
- send_booking_confirmation: new booking email
- send_booking_update: cancelled / rescheduled booking email

Both return the notifier's True/False so the API side can record whether the
email went out. No retries: a failed email is logged and left at that.
"""
import asyncio
import logging

from app.core.celery_app import celery_app
from app.schemas.booking import BookingNotification, BookingUpdateNotification
from app.services import notifier

logger = logging.getLogger(__name__)


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(name="app.workers.tasks.send_booking_confirmation")
def send_booking_confirmation(payload: dict) -> bool:
    n = BookingNotification.model_validate(payload)
    sent = _run(notifier.send_booking_confirmation(n))
    if not sent:
        logger.warning(f"Confirmation email not sent for booking {n.booking_id}")
    return sent


@celery_app.task(name="app.workers.tasks.send_booking_update")
def send_booking_update(payload: dict) -> bool:
    n = BookingUpdateNotification.model_validate(payload)
    sent = _run(notifier.send_booking_update(n))
    if not sent:
        logger.warning(f"{n.update_type} email not sent for booking {n.booking_id}")
    return sent
