import asyncio
import time
from datetime import date

import pytest

from app.models.booking import BookingType
from app.schemas.booking import BookingNotification, BookingUpdateNotification
from app.services import dispatch


@pytest.fixture
def confirmation():
    return BookingNotification(
        patient_name="Asha Kumar",
        patient_email="asha@example.com",
        hospital_name="Manipal Hospital",
        booking_type=BookingType.CONSULTATION,
        scheduled_date=date(2025, 6, 10),
        scheduled_time="10:00 AM",
        booking_id="b-1",
    )


@pytest.fixture
def cancellation():
    return BookingUpdateNotification(
        patient_name="Asha Kumar",
        patient_email="asha@example.com",
        hospital_name="Manipal Hospital",
        booking_type=BookingType.CONSULTATION,
        original_date=date(2025, 6, 10),
        original_time="10:00 AM",
        booking_id="b-1",
        update_type="cancelled",
    )


class TestInlineDispatcher:
    async def test_result_channel_resolves_to_sender_result(self, confirmation, monkeypatch):
        async def fake_send(n):
            return True

        monkeypatch.setattr(dispatch.notifier, "send_booking_confirmation", fake_send)
        assert await dispatch.InlineDispatcher().confirmation(confirmation) is True

    async def test_sender_exception_becomes_false(self, cancellation, monkeypatch):
        async def broken_send(n):
            raise RuntimeError("smtp exploded")

        monkeypatch.setattr(dispatch.notifier, "send_booking_update", broken_send)
        assert await dispatch.InlineDispatcher().update(cancellation) is False


class FakeAsyncResult:
    def __init__(self, value):
        self.value = value
        self.timeout = None

    def get(self, timeout=None):
        self.timeout = timeout
        if isinstance(self.value, Exception):
            raise self.value
        return self.value


class FakeTask:
    def __init__(self, value):
        self.calls = []
        self.result = FakeAsyncResult(value)

    def apply_async(self, args, queue):
        self.calls.append((args, queue))
        return self.result


class SlowBrokerTask(FakeTask):
    def apply_async(self, args, queue):
        time.sleep(0.3)
        return super().apply_async(args, queue)


class TestCeleryDispatcher:
    async def test_enqueues_json_payload_on_notifications_queue(self, confirmation, monkeypatch):
        task = FakeTask(True)
        monkeypatch.setattr(dispatch.tasks, "send_booking_confirmation", task)

        sent = await dispatch.CeleryDispatcher(timeout=5).confirmation(confirmation)

        assert sent is True
        [(args, queue)] = task.calls
        assert queue == "notifications"
        assert args[0]["scheduled_date"] == "2025-06-10"
        assert task.result.timeout == 5

    async def test_worker_timeout_becomes_false(self, cancellation, monkeypatch):
        task = FakeTask(TimeoutError("no result"))
        monkeypatch.setattr(dispatch.tasks, "send_booking_update", task)
        assert await dispatch.CeleryDispatcher(timeout=1).update(cancellation) is False

    async def test_slow_broker_does_not_block_the_loop(self, confirmation, monkeypatch):
        monkeypatch.setattr(dispatch.tasks, "send_booking_confirmation", SlowBrokerTask(True))
        loop = asyncio.get_running_loop()
        ticks = []
        start = loop.time()

        async def heartbeat():
            for _ in range(3):
                await asyncio.sleep(0.02)
                ticks.append(loop.time() - start)

        channel = dispatch.CeleryDispatcher(timeout=5).confirmation(confirmation)
        sent, _ = await asyncio.gather(channel, heartbeat())

        assert sent is True
        assert ticks[0] < 0.2


def test_unknown_backend_is_rejected(monkeypatch):
    monkeypatch.setattr(dispatch, "_dispatcher", None)
    monkeypatch.setattr(dispatch.settings, "NOTIFICATION_BACKEND", "carrier-pigeon")
    with pytest.raises(RuntimeError, match="carrier-pigeon"):
        dispatch.get_dispatcher()
