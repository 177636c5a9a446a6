"""
Patient API — bookings (bearer session required)
GET  /api/v1/me/bookings                  — my bookings, soonest first
POST /api/v1/me/bookings                  — book (401 interstitial when signed out)
GET  /api/v1/me/bookings/{id}             — booking detail
POST /api/v1/me/bookings/{id}/cancel      — pending|confirmed → cancelled
POST /api/v1/me/bookings/{id}/reschedule  — new date/time, back to pending
"""
import asyncio
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from app.core.errors import BookingValidationError
from app.core.security import get_current_user, get_optional_user, login_url
from app.schemas.account import CurrentUser
from app.schemas.booking import BookingCreate, BookingCreated, BookingRecord, BookingResponse, RescheduleBody
from app.services import booking_actions, slots
from app.services.booking_workflow import BookingWorkflow, Confirmed, Selection, Unauthenticated
from app.services.catalog_store import BookingStore, CatalogStore, get_booking_store, get_catalog_store
from app.services.dispatch import NotificationDispatcher, get_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me/bookings", tags=["Me — Bookings"])

BOOKED_MESSAGE = "Booking confirmed! Check your email for confirmation details."


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    user: CurrentUser = Depends(get_current_user),
    store: BookingStore = Depends(get_booking_store),
    today: date = Depends(slots.today),
):
    return [_serialize(b, today) for b in await store.list_bookings(user.id)]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=BookingCreated)
async def create_booking(
    body: BookingCreate,
    background_tasks: BackgroundTasks,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    catalog: CatalogStore = Depends(get_catalog_store),
    store: BookingStore = Depends(get_booking_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    today: date = Depends(slots.today),
):
    selection = await _selection(catalog, body)
    workflow = BookingWorkflow(selection, store, dispatcher, user=user, today=today)
    if isinstance(workflow.state, Unauthenticated):
        return _login_interstitial(selection)

    errors = {}
    for step, value in ((workflow.select_date, body.scheduled_date), (workflow.select_time, body.scheduled_time)):
        if value is None:
            continue
        try:
            step(value)
        except BookingValidationError as e:
            errors.update(e.errors)
    if errors:
        raise BookingValidationError(errors)

    workflow.advance()
    workflow.fill_details(
        patient_name=body.patient_name,
        patient_email=body.patient_email or (user.email or ""),
        patient_phone=body.patient_phone,
        notes=body.notes,
    )
    state: Confirmed = await workflow.submit()

    background_tasks.add_task(_settle, state.notification)
    return BookingCreated(booking=state.booking, message=BOOKED_MESSAGE)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: BookingStore = Depends(get_booking_store),
    today: date = Depends(slots.today),
):
    return _serialize(await _get_own_or_404(store, booking_id, user), today)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    user: CurrentUser = Depends(get_current_user),
    store: BookingStore = Depends(get_booking_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    today: date = Depends(slots.today),
):
    booking = await _get_own_or_404(store, booking_id, user)
    result = await booking_actions.cancel_booking(booking, store, dispatcher, today=today)
    if result.notification is not None:
        background_tasks.add_task(_settle, result.notification)
    return _serialize(result.booking, today)


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: str,
    body: RescheduleBody,
    background_tasks: BackgroundTasks,
    user: CurrentUser = Depends(get_current_user),
    store: BookingStore = Depends(get_booking_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    today: date = Depends(slots.today),
):
    booking = await _get_own_or_404(store, booking_id, user)
    flow = booking_actions.RescheduleFlow(booking, store, dispatcher, today=today)

    errors = {}
    for step, value in ((flow.select_date, body.scheduled_date), (flow.select_time, body.scheduled_time)):
        try:
            step(value)
        except BookingValidationError as e:
            errors.update(e.errors)
    if errors:
        raise BookingValidationError(errors)

    result = await flow.confirm()
    if result.notification is not None:
        background_tasks.add_task(_settle, result.notification)
    return _serialize(result.booking, today)


# ── Helpers ──────────────────────────────────────────────────────
async def _selection(catalog: CatalogStore, body: BookingCreate) -> Selection:
    hospital = await catalog.get_hospital(body.hospital_id)
    if not hospital:
        raise HTTPException(status_code=404, detail="Hospital not found")

    doctor = surgery = None
    if body.doctor_id:
        doctor = next((d for d in hospital.doctors if d.id == body.doctor_id), None)
        if doctor is None:
            raise BookingValidationError({"doctor_id": "Doctor not found at this hospital"})
    if body.surgery_id:
        surgery = next((s for s in hospital.surgeries if s.id == body.surgery_id), None)
        if surgery is None:
            raise BookingValidationError({"surgery_id": "Surgery not offered at this hospital"})
    return Selection(hospital=hospital, booking_type=body.booking_type, doctor=doctor, surgery=surgery)


def _login_interstitial(selection: Selection) -> JSONResponse:
    """Signed-out booking attempt: ask for login, hand the selection back so it can be resumed"""
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={
            "detail": {
                "message": "Please log in to book an appointment",
                "login_url": login_url(),
                "selection": _serialize_selection(selection),
            }
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


def _serialize_selection(selection: Selection) -> dict:
    return {
        "hospital_id": selection.hospital.id,
        "hospital_name": selection.hospital.name,
        "booking_type": selection.booking_type.value,
        "doctor_id": selection.doctor.id if selection.doctor else None,
        "doctor_name": selection.doctor.name if selection.doctor else None,
        "surgery_id": selection.surgery.id if selection.surgery else None,
        "surgery_name": selection.surgery.name if selection.surgery else None,
    }


async def _get_own_or_404(store: BookingStore, booking_id: str, user: CurrentUser) -> BookingRecord:
    booking = await store.get_booking(booking_id)
    # someone else's booking is indistinguishable from a missing one
    if not booking or booking.user_id != user.id:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


def _serialize(b: BookingRecord, today: date) -> BookingResponse:
    return BookingResponse(
        **b.model_dump(),
        display_status=booking_actions.display_status(b, today),
        can_modify=booking_actions.can_modify(b, today),
    )


async def _settle(notification: "asyncio.Task[bool]") -> None:
    """Let the email finish after the response is sent; the outcome is already logged"""
    await notification
