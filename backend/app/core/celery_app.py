from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "surgery_hub",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.workers.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    result_expires=3600,
    task_routes={
        "app.workers.tasks.send_booking_confirmation": {"queue": "notifications"},
        "app.workers.tasks.send_booking_update": {"queue": "notifications"},
    },
)
