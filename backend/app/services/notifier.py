"""Booking emails — confirmation, cancellation, reschedule (Resend)

Every sender returns True/False and never raises: a failed email must not
fail the booking action that triggered it.
"""
import logging
from datetime import date

import arrow
import httpx
from jinja2 import DictLoader, Environment, select_autoescape

from app.core.config import settings
from app.models.booking import BOOKING_TYPE_LABELS
from app.schemas.booking import BookingNotification, BookingUpdateNotification

logger = logging.getLogger(__name__)

# ── Jinja2 templates ──────────────────────────────────────────────
TEMPLATES = {
    "base.html": """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{{ heading }}</title>
</head>
<body style="margin:0;padding:0;font-family:'Segoe UI',Tahoma,Geneva,Verdana,sans-serif;background-color:#f5f7fa;">
<table width="100%" cellpadding="0" cellspacing="0" style="max-width:600px;margin:0 auto;background-color:#ffffff;">
  <tr>
    <td style="background:{{ header_color }};padding:40px 30px;text-align:center;">
      <h1 style="color:#ffffff;margin:0;font-size:28px;font-weight:600;">Surgery Hub</h1>
      <p style="color:rgba(255,255,255,0.9);margin:10px 0 0;font-size:16px;">{{ heading }}</p>
    </td>
  </tr>
  <tr>
    <td style="padding:40px 30px;">
      <p style="font-size:18px;color:#333;margin:0 0 20px;">Hello <strong>{{ patient_name }}</strong>,</p>
      {% block body %}{% endblock %}
      <p style="font-size:14px;color:#666;margin:30px 0 0;">
        Booking Reference: <strong style="color:#1E88E5;">{{ reference }}</strong>
      </p>
    </td>
  </tr>
  <tr>
    <td style="background-color:#f8fafc;padding:30px;text-align:center;border-top:1px solid #e2e8f0;">
      <p style="font-size:14px;color:#64748b;margin:0 0 10px;">Questions? Contact the hospital directly.</p>
      <p style="font-size:12px;color:#94a3b8;margin:0;">&copy; {{ year }} Surgery Hub. All rights reserved.</p>
    </td>
  </tr>
</table>
</body>
</html>
""",
    "confirmation.html": """\
{% extends "base.html" %}
{% block body %}
<p style="font-size:16px;color:#666;line-height:1.6;margin:0 0 30px;">
  Your {{ type_label|lower }} has been successfully booked. Please find the details below:
</p>
<table width="100%" cellpadding="0" cellspacing="0" style="background-color:#f8fafc;border-radius:12px;">
  <tr><td style="padding:25px;">
    <p><span style="color:#64748b;">Booking Type</span><br><strong>{{ type_label }}</strong></p>
    <p><span style="color:#64748b;">Hospital</span><br><strong>{{ hospital_name }}</strong></p>
    {% if doctor_name %}<p><span style="color:#64748b;">Doctor</span><br><strong>{{ doctor_name }}</strong></p>{% endif %}
    {% if surgery_name %}<p><span style="color:#64748b;">Surgery</span><br><strong>{{ surgery_name }}</strong></p>{% endif %}
    <p><span style="color:#64748b;">Date</span><br><strong>{{ date }}</strong></p>
    <p><span style="color:#64748b;">Time</span><br><strong>{{ time }}</strong></p>
  </td></tr>
</table>
<p style="font-size:14px;color:#64748b;margin:30px 0 0;padding:20px;background-color:#fef3c7;border-left:4px solid #f59e0b;">
  <strong>Important:</strong> Please arrive 15 minutes before your scheduled time. Bring any relevant medical records.
</p>
{% endblock %}
""",
    "cancelled.html": """\
{% extends "base.html" %}
{% block body %}
<p style="font-size:16px;color:#666;line-height:1.6;margin:0 0 30px;">
  Your {{ type_label|lower }} at <strong>{{ hospital_name }}</strong> has been cancelled as requested.
</p>
<table width="100%" cellpadding="0" cellspacing="0" style="background-color:#fef2f2;border-radius:12px;border-left:4px solid #EF4444;">
  <tr><td style="padding:25px;">
    <p style="margin:0 0 10px;color:#64748b;font-size:14px;">Original Appointment</p>
    <p style="margin:0;color:#1e293b;font-size:16px;"><strong>{{ original_date }}</strong> at <strong>{{ original_time }}</strong></p>
  </td></tr>
</table>
<p style="font-size:14px;color:#666;margin:20px 0 0;">If you'd like to book a new appointment, please visit our website.</p>
{% endblock %}
""",
    "rescheduled.html": """\
{% extends "base.html" %}
{% block body %}
<p style="font-size:16px;color:#666;line-height:1.6;margin:0 0 30px;">
  Your {{ type_label|lower }} at <strong>{{ hospital_name }}</strong> has been rescheduled. Please see the updated details below:
</p>
<table width="100%" cellpadding="0" cellspacing="0" style="background-color:#f8fafc;border-radius:12px;">
  <tr><td style="padding:25px;">
    <p><span style="color:#64748b;">Previous Date &amp; Time</span><br>
      <span style="color:#94a3b8;text-decoration:line-through;">{{ original_date }} at {{ original_time }}</span></p>
    <p><span style="color:#64748b;">New Date &amp; Time</span><br><strong>{{ new_date }} at {{ new_time }}</strong></p>
  </td></tr>
</table>
<p style="font-size:14px;color:#64748b;margin:30px 0 0;padding:20px;background-color:#fef3c7;border-left:4px solid #f59e0b;">
  <strong>Reminder:</strong> Please arrive 15 minutes before your new scheduled time.
</p>
{% endblock %}
""",
}

env = Environment(
    loader=DictLoader(TEMPLATES),
    autoescape=select_autoescape(["html"]),
)


def booking_reference(booking_id: str) -> str:
    return booking_id.replace("-", "")[:8].upper()


def format_date(value: date) -> str:
    return arrow.get(value).format("dddd, D MMMM YYYY")


def _type_label(booking_type) -> str:
    return BOOKING_TYPE_LABELS.get(booking_type, str(booking_type))


async def _send(to: str, subject: str, html: str) -> bool:
    if not settings.RESEND_API_KEY:
        logger.warning("Resend API key not configured, email not sent")
        return False
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            r = await client.post(
                settings.RESEND_API_URL,
                headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
                json={"from": settings.EMAIL_FROM, "to": [to], "subject": subject, "html": html},
            )
            r.raise_for_status()
            return True
    except Exception as e:
        logger.error(f"Email to {to} failed: {e}")
        return False


def render_confirmation(n: BookingNotification) -> tuple[str, str]:
    type_label = _type_label(n.booking_type)
    subject = f"Booking Confirmed - {type_label} at {n.hospital_name}"
    html = env.get_template("confirmation.html").render(
        heading="Your Booking is Confirmed!",
        header_color="linear-gradient(135deg, #1E88E5 0%, #26A69A 100%)",
        patient_name=n.patient_name,
        type_label=type_label,
        hospital_name=n.hospital_name,
        doctor_name=n.doctor_name,
        surgery_name=n.surgery_name,
        date=format_date(n.scheduled_date),
        time=n.scheduled_time,
        reference=booking_reference(n.booking_id),
        year=arrow.now(settings.TIMEZONE).year,
    )
    return subject, html


def render_update(n: BookingUpdateNotification) -> tuple[str, str]:
    type_label = _type_label(n.booking_type)
    cancelled = n.update_type == "cancelled"
    heading = "Booking Cancelled" if cancelled else "Booking Rescheduled"
    subject = f"{heading} - {type_label} at {n.hospital_name}"
    html = env.get_template("cancelled.html" if cancelled else "rescheduled.html").render(
        heading=heading,
        header_color="#EF4444" if cancelled else "#F59E0B",
        patient_name=n.patient_name,
        type_label=type_label,
        hospital_name=n.hospital_name,
        original_date=format_date(n.original_date),
        original_time=n.original_time,
        new_date=format_date(n.new_date) if n.new_date else None,
        new_time=n.new_time,
        reference=booking_reference(n.booking_id),
        year=arrow.now(settings.TIMEZONE).year,
    )
    return subject, html


async def send_booking_confirmation(n: BookingNotification) -> bool:
    """New booking → patient"""
    logger.info(f"Sending confirmation to {n.patient_email} for booking {n.booking_id}")
    subject, html = render_confirmation(n)
    return await _send(n.patient_email, subject, html)


async def send_booking_update(n: BookingUpdateNotification) -> bool:
    """Cancelled / rescheduled booking → patient"""
    logger.info(f"Sending {n.update_type} notification to {n.patient_email} for booking {n.booking_id}")
    subject, html = render_update(n)
    return await _send(n.patient_email, subject, html)
