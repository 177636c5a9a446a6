"""Notification dispatch

`confirmation()` / `update()` hand the email off and immediately return a
result channel (an asyncio.Task resolving to True/False). Callers may await it
to record or log the outcome; the action that triggered the email never waits
on it to report success. The channel never raises.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from app.core.config import settings
from app.schemas.booking import BookingNotification, BookingUpdateNotification
from app.services import notifier
from app.workers import tasks

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    def confirmation(self, n: BookingNotification) -> "asyncio.Task[bool]": ...

    def update(self, n: BookingUpdateNotification) -> "asyncio.Task[bool]": ...


async def _guarded(label: str, coro: Awaitable[bool]) -> bool:
    try:
        return bool(await coro)
    except Exception as e:
        logger.error(f"Notification {label} failed: {e}")
        return False


class _TaskKeeper:
    """Holds references to in-flight tasks so they aren't garbage collected mid-send"""

    def __init__(self):
        self._pending: set[asyncio.Task] = set()

    def spawn(self, label: str, coro: Awaitable[bool]) -> "asyncio.Task[bool]":
        task = asyncio.get_running_loop().create_task(_guarded(label, coro))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task


class InlineDispatcher(_TaskKeeper):
    """Sends from the API process's own event loop"""

    def confirmation(self, n: BookingNotification) -> "asyncio.Task[bool]":
        return self.spawn(f"confirmation/{n.booking_id}", notifier.send_booking_confirmation(n))

    def update(self, n: BookingUpdateNotification) -> "asyncio.Task[bool]":
        return self.spawn(f"{n.update_type}/{n.booking_id}", notifier.send_booking_update(n))


class CeleryDispatcher(_TaskKeeper):
    """Queues the send on the `notifications` worker; enqueue and result wait both run off-loop"""

    def __init__(self, timeout: float | None = None):
        super().__init__()
        self.timeout = settings.NOTIFICATION_RESULT_TIMEOUT if timeout is None else timeout

    async def _enqueue_and_wait(self, task, payload: dict) -> bool:
        result = await asyncio.to_thread(task.apply_async, args=[payload], queue="notifications")
        return bool(await asyncio.to_thread(result.get, timeout=self.timeout))

    def confirmation(self, n: BookingNotification) -> "asyncio.Task[bool]":
        return self.spawn(
            f"confirmation/{n.booking_id}",
            self._enqueue_and_wait(tasks.send_booking_confirmation, n.model_dump(mode="json")),
        )

    def update(self, n: BookingUpdateNotification) -> "asyncio.Task[bool]":
        return self.spawn(
            f"{n.update_type}/{n.booking_id}",
            self._enqueue_and_wait(tasks.send_booking_update, n.model_dump(mode="json")),
        )


_BACKENDS: dict[str, Callable[[], NotificationDispatcher]] = {
    "inline": InlineDispatcher,
    "celery": CeleryDispatcher,
}

_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    if _dispatcher is None:
        try:
            factory = _BACKENDS[settings.NOTIFICATION_BACKEND]
        except KeyError:
            raise RuntimeError(f"Unknown NOTIFICATION_BACKEND: {settings.NOTIFICATION_BACKEND}")
        _dispatcher = factory()
    return _dispatcher
