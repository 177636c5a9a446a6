from datetime import date

import pytest

from app.core.errors import BookingValidationError, NotFoundError, StoreError, WorkflowStateError
from app.models.booking import BookingStatus, BookingType
from app.services import booking_workflow
from app.services.booking_workflow import (
    BookingWorkflow, CollectingDetails, Confirmed, SelectingSlot, Selection, Unauthenticated,
)

from conftest import TODAY, USER, FakeBookingStore, FakeDispatcher


@pytest.fixture
def selection(hospital):
    return Selection(hospital=hospital, booking_type=BookingType.SURGERY, surgery=hospital.surgeries[0])


def workflow(selection, store, dispatcher, user=USER):
    return BookingWorkflow(selection, store, dispatcher, user=user, today=TODAY)


def at_details(wf):
    wf.select_date(date(2025, 6, 10))
    wf.select_time("10:00 AM")
    return wf.advance()


class TestSlotSelection:
    def test_signed_out_workflow_waits_for_login(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher, user=None)
        assert wf.state == Unauthenticated(selection)
        with pytest.raises(WorkflowStateError):
            wf.select_date(date(2025, 6, 10))

    def test_starts_selecting_slot(self, selection, booking_store, dispatcher):
        assert workflow(selection, booking_store, dispatcher).state == SelectingSlot()

    def test_advance_needs_date_and_time(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher)
        wf.select_date(date(2025, 6, 10))
        with pytest.raises(BookingValidationError) as exc:
            wf.advance()
        assert exc.value.errors == {"scheduled_time": "Please select a time slot"}
        assert isinstance(wf.state, SelectingSlot)

    def test_advance_carries_slot_and_prefills_email(self, selection, booking_store, dispatcher):
        state = at_details(workflow(selection, booking_store, dispatcher))
        assert state == CollectingDetails(
            scheduled_date=date(2025, 6, 10),
            scheduled_time="10:00 AM",
            patient_email=USER.email,
        )

    def test_past_date_is_rejected_and_state_kept(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher)
        with pytest.raises(BookingValidationError) as exc:
            wf.select_date(date(2025, 5, 31))
        assert exc.value.errors["scheduled_date"] == "Date cannot be in the past"
        assert wf.state == SelectingSlot()

    def test_unknown_slot_is_rejected(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher)
        with pytest.raises(BookingValidationError):
            wf.select_time("01:00 PM")

    def test_back_keeps_the_slot(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher)
        at_details(wf)
        assert wf.back() == SelectingSlot(scheduled_date=date(2025, 6, 10), scheduled_time="10:00 AM")


class TestSubmit:
    async def test_empty_name_never_reaches_the_store(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher)
        at_details(wf)
        wf.fill_details(patient_name="   ")
        with pytest.raises(BookingValidationError) as exc:
            await wf.submit()
        assert "patient_name" in exc.value.errors
        assert booking_store.create_calls == []
        assert isinstance(wf.state, CollectingDetails)

    async def test_invalid_email_never_reaches_the_store(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher)
        at_details(wf)
        wf.fill_details(patient_name="Asha Kumar", patient_email="not-an-email")
        with pytest.raises(BookingValidationError) as exc:
            await wf.submit()
        assert exc.value.errors == {"patient_email": "Invalid email address"}
        assert booking_store.create_calls == []

    async def test_success_creates_one_pending_booking(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher)
        at_details(wf)
        wf.fill_details(patient_name=" Asha Kumar ", patient_phone="9876543210")
        state = await wf.submit()

        assert isinstance(state, Confirmed)
        assert len(booking_store.create_calls) == 1
        new = booking_store.create_calls[0]
        assert new.user_id == USER.id
        assert new.surgery_id == "s1"
        assert new.patient_name == "Asha Kumar"
        assert (new.scheduled_date, new.scheduled_time) == (date(2025, 6, 10), "10:00 AM")
        assert state.booking.status == BookingStatus.PENDING

        assert await state.notification is True
        assert dispatcher.confirmations[0].hospital_name == "Manipal Hospital"
        assert dispatcher.confirmations[0].surgery_name == "Knee Replacement"
        assert booking_store.update_calls == [(state.booking.id, {"confirmation_sent": True})]

    async def test_failed_email_still_confirms(self, selection, booking_store):
        dispatcher = FakeDispatcher(result=False)
        wf = workflow(selection, booking_store, dispatcher)
        at_details(wf)
        wf.fill_details(patient_name="Asha Kumar")
        state = await wf.submit()

        assert isinstance(state, Confirmed)
        assert await state.notification is False
        assert booking_store.bookings[state.booking.id].confirmation_sent is False

    async def test_dispatch_error_still_confirms(self, selection, booking_store):
        dispatcher = FakeDispatcher(result=RuntimeError("broker down"))
        wf = workflow(selection, booking_store, dispatcher)
        at_details(wf)
        wf.fill_details(patient_name="Asha Kumar")
        state = await wf.submit()

        assert isinstance(state, Confirmed)
        assert await state.notification is False

    async def test_flag_update_failure_is_not_raised(self, selection, dispatcher):
        store = FakeBookingStore(fail_update=True)
        wf = workflow(selection, store, dispatcher)
        at_details(wf)
        wf.fill_details(patient_name="Asha Kumar")
        state = await wf.submit()
        assert await state.notification is True

    async def test_store_failure_returns_to_details(self, selection, dispatcher):
        store = FakeBookingStore(fail_create=True)
        wf = workflow(selection, store, dispatcher)
        at_details(wf)
        details = wf.fill_details(patient_name="Asha Kumar")

        with pytest.raises(StoreError) as exc:
            await wf.submit()
        assert str(exc.value) == "Booking failed: connection refused"
        assert wf.state == details
        assert dispatcher.confirmations == []

    async def test_domain_error_from_store_is_not_rewrapped(self, selection, dispatcher):
        class HospitalGoneStore(FakeBookingStore):
            async def create_booking(self, new):
                raise NotFoundError("Hospital not found")

        wf = workflow(selection, HospitalGoneStore(), dispatcher)
        at_details(wf)
        details = wf.fill_details(patient_name="Asha Kumar")

        with pytest.raises(NotFoundError) as exc:
            await wf.submit()
        assert exc.value.status_code == 404
        assert wf.state == details

    async def test_submit_outside_details_is_a_state_error(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher)
        with pytest.raises(WorkflowStateError):
            await wf.submit()

    async def test_reset_after_confirm(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher)
        at_details(wf)
        wf.fill_details(patient_name="Asha Kumar")
        state = await wf.submit()
        await state.notification
        assert wf.reset() == SelectingSlot()

    async def test_confirmation_outlives_reset(self, selection, booking_store, dispatcher):
        wf = workflow(selection, booking_store, dispatcher)
        at_details(wf)
        wf.fill_details(patient_name="Asha Kumar")
        state = await wf.submit()
        task = state.notification
        wf.reset()
        del state

        assert task in booking_workflow._in_flight
        assert await task is True
        assert task not in booking_workflow._in_flight
        assert booking_store.update_calls[-1][1] == {"confirmation_sent": True}
