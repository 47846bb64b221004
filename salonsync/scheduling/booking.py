"""
Booking, rescheduling and status changes for appointments.

Every change is written to the audit log and announced on the app's sync
notifier so availability views know to refresh.
"""

import secrets
import threading
from datetime import timedelta

from flask import current_app

from salonsync import db
from salonsync.errors import (
    SchedulingError, ResourceNotFound, SlotUnavailableError, InvalidStatusTransition
)
from salonsync.models.user import User
from salonsync.models.service import Service
from salonsync.models.location import Location
from salonsync.models.appointment import Appointment, ALL_STATUSES, STATUS_PENDING
from salonsync.scheduling.availability import check_staff_availability
from salonsync.scheduling.sync import get_notifier
from salonsync.utils.audit import log_audit, audit_log_decorator

# Serialises check-then-insert within this process; separate worker
# processes can still double-book
_booking_lock = threading.Lock()


def generate_booking_reference():
    prefix = current_app.config['BOOKING_REFERENCE_PREFIX']
    return f"{prefix}-{secrets.token_hex(3).upper()}"


def _get_or_raise(model, id, label):
    obj = db.session.get(model, id) if id is not None else None
    if obj is None:
        raise ResourceNotFound(f'{label} not found')
    return obj


def _booking_details(appointment, *args, **kwargs):
    return {
        'booking_reference': appointment.booking_reference,
        'client_id': appointment.client_id,
        'staff_id': appointment.staff_id,
        'service_id': appointment.service_id,
        'location_id': appointment.location_id,
        'appointment_time': appointment.start_time.strftime('%Y-%m-%d %H:%M'),
        'price': appointment.service.price,
    }


@audit_log_decorator(
    action='create',
    entity_type='appointment',
    get_entity_id=lambda result, *args, **kwargs: result.id,
    get_details=_booking_details
)
def book_appointment(client_id, staff_id, service_id, location_id, start_time,
                     notes=None, status=STATUS_PENDING):
    """Create an appointment if the staff member is free for the service's duration"""
    client = _get_or_raise(User, client_id, 'Client')
    staff = _get_or_raise(User, staff_id, 'Staff member')
    if not staff.is_staff():
        raise ResourceNotFound('Staff member not found')
    service = _get_or_raise(Service, service_id, 'Service')
    _get_or_raise(Location, location_id, 'Location')

    if not client.is_active:
        raise SchedulingError('Client account is inactive')
    if not service.is_active:
        raise SchedulingError(f'Service {service.name} is not available for booking')
    if status not in ALL_STATUSES:
        raise SchedulingError(f"Unknown appointment status '{status}'")

    end_time = start_time + timedelta(minutes=service.duration_minutes)

    with _booking_lock:
        result = check_staff_availability(
            staff_id, start_time, end_time,
            location_id=location_id, service_id=service_id
        )
        if not result.is_available:
            raise SlotUnavailableError(result)

        appointment = Appointment(
            client_id=client_id,
            staff_id=staff_id,
            service_id=service_id,
            location_id=location_id,
            start_time=start_time,
            end_time=end_time,
            notes=notes,
            status=status,
            booking_reference=generate_booking_reference()
        )
        db.session.add(appointment)
        db.session.commit()

    current_app.logger.info(
        f"Booked appointment {appointment.booking_reference} for staff {staff_id} at {start_time}"
    )
    get_notifier().emit_appointment_created(
        appointment.id, staff_id, location_id, data={'status': appointment.status}
    )
    return appointment


def reschedule_appointment(appointment, start_time, staff_id=None, location_id=None):
    """Move an appointment, keeping its length, to a new time, staff member or location"""
    if not appointment.is_blocking():
        raise SchedulingError('Only pending or confirmed appointments can be rescheduled')

    if staff_id is not None:
        staff = _get_or_raise(User, staff_id, 'Staff member')
        if not staff.is_staff():
            raise ResourceNotFound('Staff member not found')
    new_staff_id = staff_id if staff_id is not None else appointment.staff_id
    new_location_id = location_id if location_id is not None else appointment.location_id
    if location_id is not None:
        _get_or_raise(Location, location_id, 'Location')

    end_time = start_time + (appointment.end_time - appointment.start_time)
    old_values = {
        'staff_id': appointment.staff_id,
        'location_id': appointment.location_id,
        'start_time': appointment.start_time,
        'end_time': appointment.end_time,
    }

    with _booking_lock:
        result = check_staff_availability(
            new_staff_id, start_time, end_time,
            location_id=new_location_id,
            exclude_appointment_id=appointment.id,
            service_id=appointment.service_id
        )
        if not result.is_available:
            raise SlotUnavailableError(result)

        appointment.staff_id = new_staff_id
        appointment.location_id = new_location_id
        appointment.start_time = start_time
        appointment.end_time = end_time
        db.session.commit()

    log_audit('reschedule', 'appointment', entity_id=appointment.id, details={
        'old_values': old_values,
        'new_values': {
            'staff_id': new_staff_id,
            'location_id': new_location_id,
            'start_time': start_time,
            'end_time': end_time,
        }
    })

    notifier = get_notifier()
    notifier.emit_appointment_updated(
        appointment.id, new_staff_id, new_location_id, data={'rescheduled': True}
    )
    if old_values['staff_id'] != new_staff_id:
        notifier.emit_staff_availability_changed(
            old_values['staff_id'], old_values['location_id'], data={'appointment_id': appointment.id}
        )
    return appointment


def change_status(appointment, new_status):
    """Move an appointment along its lifecycle"""
    if new_status not in ALL_STATUSES:
        raise SchedulingError(f"Unknown appointment status '{new_status}'")
    if not appointment.can_transition_to(new_status):
        raise InvalidStatusTransition(appointment.status, new_status)

    old_status = appointment.status
    appointment.status = new_status
    db.session.commit()

    log_audit('update', 'appointment_status', entity_id=appointment.id, details={
        'old_status': old_status,
        'new_status': new_status,
        'client_id': appointment.client_id,
        'staff_id': appointment.staff_id,
        'appointment_time': appointment.start_time.strftime('%Y-%m-%d %H:%M')
    })

    get_notifier().emit_appointment_updated(
        appointment.id, appointment.staff_id, appointment.location_id,
        data={'old_status': old_status, 'new_status': new_status}
    )
    return appointment


def delete_appointment(appointment):
    appointment_id = appointment.id
    staff_id = appointment.staff_id
    location_id = appointment.location_id
    audit_details = _booking_details(appointment)

    db.session.delete(appointment)
    db.session.commit()

    log_audit('delete', 'appointment', entity_id=appointment_id, details=audit_details)
    get_notifier().emit_appointment_deleted(appointment_id, staff_id, location_id)
