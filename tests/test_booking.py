import pytest
from datetime import date, datetime, time

from salonsync import db
from salonsync.errors import SchedulingError, ResourceNotFound, SlotUnavailableError, InvalidStatusTransition
from salonsync.models.appointment import Appointment
from salonsync.models.audit import AuditLog
from salonsync.scheduling import booking, blocks
from salonsync.scheduling.sync import get_notifier, APPOINTMENT_CREATED, APPOINTMENT_UPDATED

DAY = date(2030, 3, 4)


def at(hour, minute=0):
    return datetime.combine(DAY, time(hour, minute))


@pytest.fixture
def events(app_ctx):
    received = []
    get_notifier().subscribe("*", received.append)
    return received


def book(salon, start, staff_id=None, location_id=None, service_id=None, **kwargs):
    return booking.book_appointment(
        client_id=salon.client_id,
        staff_id=staff_id or salon.alice_id,
        service_id=service_id or salon.haircut_id,
        location_id=location_id or salon.downtown_id,
        start_time=start,
        **kwargs
    )


def test_book_appointment(app_ctx, salon, events):
    appointment = book(salon, at(10))

    assert appointment.id is not None
    assert appointment.status == "pending"
    assert appointment.end_time == at(11)
    assert appointment.booking_reference.startswith("SB-")

    assert [e.type for e in events] == [APPOINTMENT_CREATED]
    assert events[0].appointment_id == appointment.id
    assert events[0].staff_id == salon.alice_id

    audit = AuditLog.query.filter_by(action="create", entity_type="appointment").one()
    assert audit.entity_id == appointment.id


def test_double_booking_is_rejected(app_ctx, salon, events):
    first = book(salon, at(10))

    with pytest.raises(SlotUnavailableError) as excinfo:
        book(salon, at(10, 30), location_id=salon.home_id)

    error = excinfo.value
    assert error.status_code == 409
    assert [a.id for a in error.result.conflicting_appointments] == [first.id]
    assert error.to_dict()["availability"]["is_available"] is False
    assert Appointment.query.count() == 1
    assert AuditLog.query.filter_by(action="create_failed").count() == 1
    assert len(events) == 1


def test_back_to_back_booking(app_ctx, salon):
    book(salon, at(10))
    book(salon, at(11))
    assert Appointment.query.count() == 2


def test_booking_validation(app_ctx, salon):
    with pytest.raises(ResourceNotFound):
        book(salon, at(10), staff_id=salon.client_id)
    with pytest.raises(ResourceNotFound):
        book(salon, at(10), location_id=999)
    with pytest.raises(SchedulingError, match="not available for booking"):
        book(salon, at(10), service_id=salon.retired_service_id)
    with pytest.raises(SlotUnavailableError, match="does not work at Uptown"):
        book(salon, at(10), location_id=salon.uptown_id)


def test_reschedule_keeps_duration_and_ignores_itself(app_ctx, salon, events):
    appointment = book(salon, at(10), service_id=salon.colour_id)

    booking.reschedule_appointment(appointment, at(10, 30))

    assert appointment.start_time == at(10, 30)
    assert appointment.end_time == at(12)
    assert events[-1].type == APPOINTMENT_UPDATED
    assert AuditLog.query.filter_by(action="reschedule").count() == 1


def test_reschedule_into_conflict(app_ctx, salon):
    book(salon, at(10))
    second = book(salon, at(12))

    with pytest.raises(SlotUnavailableError):
        booking.reschedule_appointment(second, at(10, 30))
    assert db.session.get(Appointment, second.id).start_time == at(12)


def test_reschedule_to_other_staff_notifies_both(app_ctx, salon, events):
    appointment = book(salon, at(10))
    booking.reschedule_appointment(appointment, at(10), staff_id=salon.bob_id, location_id=salon.uptown_id)

    assert appointment.staff_id == salon.bob_id
    assert {(e.type, e.staff_id) for e in events[1:]} == {
        (APPOINTMENT_UPDATED, salon.bob_id),
        ("staff_availability_changed", salon.alice_id),
    }


def test_status_transitions(app_ctx, salon):
    appointment = book(salon, at(10))

    booking.change_status(appointment, "confirmed")
    booking.change_status(appointment, "completed")
    assert appointment.status == "completed"

    with pytest.raises(InvalidStatusTransition):
        booking.change_status(appointment, "pending")


def test_cancelled_appointment_frees_the_slot(app_ctx, salon):
    appointment = book(salon, at(10))
    booking.change_status(appointment, "cancelled")

    book(salon, at(10))
    assert Appointment.query.count() == 2


def test_delete_appointment(app_ctx, salon, events):
    appointment = book(salon, at(10))
    appointment_id = appointment.id

    booking.delete_appointment(appointment)

    assert db.session.get(Appointment, appointment_id) is None
    assert events[-1].type == "appointment_deleted"
    assert events[-1].appointment_id == appointment_id


def test_block_time_reports_overlapping_appointments(app_ctx, salon, events):
    appointment = book(salon, at(10))

    blocked_time, overlapping = blocks.block_time(salon.alice_id, at(9, 30), at(10, 30), reason="Dentist")

    assert blocked_time.id is not None
    assert [a.id for a in overlapping] == [appointment.id]
    assert events[-1].type == "staff_availability_changed"

    with pytest.raises(SlotUnavailableError, match="Blocked: Dentist"):
        book(salon, at(9), staff_id=salon.alice_id)


def test_add_holiday_blocks_every_staff_member(app_ctx, salon, events):
    holidays = blocks.add_holiday(DAY, "Spring Break")

    assert sorted(h.staff_id for h in holidays) == sorted([salon.alice_id, salon.bob_id])
    assert all(h.is_holiday and h.block_type == "holiday" for h in holidays)
    assert {e.staff_id for e in events} == {salon.alice_id, salon.bob_id}

    with pytest.raises(SlotUnavailableError, match="Holiday: Spring Break"):
        book(salon, at(10))


def test_reschedule_to_unknown_staff(app_ctx, salon):
    appointment = book(salon, at(10))

    with pytest.raises(ResourceNotFound, match="Staff member not found"):
        booking.reschedule_appointment(appointment, at(11), staff_id=999)
    with pytest.raises(ResourceNotFound, match="Staff member not found"):
        booking.reschedule_appointment(appointment, at(11), staff_id=salon.client_id)
    assert appointment.staff_id == salon.alice_id
