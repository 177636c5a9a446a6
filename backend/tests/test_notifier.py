import json
from datetime import date

import httpx
import pytest

from app.core.config import settings
from app.models.booking import BookingType
from app.schemas.booking import BookingNotification, BookingUpdateNotification
from app.services import notifier

BOOKING_ID = "3f2a9c1e-7b4d-4e1a-9c2b-1d2e3f4a5b6c"


@pytest.fixture
def confirmation():
    return BookingNotification(
        patient_name="Asha Kumar",
        patient_email="asha@example.com",
        hospital_name="Manipal Hospital",
        doctor_name="Dr. Kavya Rao",
        booking_type=BookingType.CONSULTATION,
        scheduled_date=date(2025, 6, 10),
        scheduled_time="10:00 AM",
        booking_id=BOOKING_ID,
    )


class ResendStub:
    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"id": "email-1"})


@pytest.fixture
def resend(monkeypatch):
    """Routes the notifier's httpx client to a MockTransport"""
    stub = ResendStub()
    real_client = httpx.AsyncClient
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(
        notifier.httpx, "AsyncClient",
        lambda **kw: real_client(transport=httpx.MockTransport(stub.handler), **kw),
    )
    return stub


class TestRender:
    def test_reference_is_first_eight_chars_upper(self):
        assert notifier.booking_reference(BOOKING_ID) == "3F2A9C1E"

    def test_confirmation(self, confirmation):
        subject, html = notifier.render_confirmation(confirmation)
        assert subject == "Booking Confirmed - Consultation at Manipal Hospital"
        assert "Tuesday, 10 June 2025" in html
        assert "10:00 AM" in html
        assert "Dr. Kavya Rao" in html
        assert "3F2A9C1E" in html

    def test_patient_name_is_escaped(self, confirmation):
        n = confirmation.model_copy(update={"patient_name": "<script>x</script>"})
        _, html = notifier.render_confirmation(n)
        assert "<script>x</script>" not in html

    def test_rescheduled_shows_both_slots(self):
        n = BookingUpdateNotification(
            patient_name="Asha Kumar",
            patient_email="asha@example.com",
            hospital_name="Manipal Hospital",
            booking_type=BookingType.SURGERY,
            original_date=date(2025, 6, 10),
            original_time="10:00 AM",
            new_date=date(2025, 6, 15),
            new_time="02:00 PM",
            booking_id=BOOKING_ID,
            update_type="rescheduled",
        )
        subject, html = notifier.render_update(n)
        assert subject == "Booking Rescheduled - Surgery at Manipal Hospital"
        assert "Tuesday, 10 June 2025 at 10:00 AM" in html
        assert "Sunday, 15 June 2025 at 02:00 PM" in html


class TestSend:
    async def test_posts_to_resend(self, confirmation, resend):
        assert await notifier.send_booking_confirmation(confirmation) is True

        request = resend.requests[0]
        assert str(request.url) == settings.RESEND_API_URL
        assert request.headers["Authorization"] == "Bearer re_test"
        body = json.loads(request.content)
        assert body["to"] == ["asha@example.com"]
        assert body["subject"].startswith("Booking Confirmed")

    async def test_provider_error_returns_false(self, confirmation, resend):
        resend.status_code = 500
        assert await notifier.send_booking_confirmation(confirmation) is False

    async def test_missing_api_key_returns_false_without_request(self, confirmation, resend, monkeypatch):
        monkeypatch.setattr(settings, "RESEND_API_KEY", "")
        assert await notifier.send_booking_confirmation(confirmation) is False
        assert resend.requests == []
