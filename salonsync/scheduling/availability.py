"""
Staff availability checks.

Answers "is this staff member free between start and end?" by loading the
staff member's appointments and blocked times around the slot and running
the overlap predicate over them. Conflicts are looked up across every
location: a staff member booked at one salon is not free for a home visit
at the same time, and vice versa.
"""

from datetime import datetime, time, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from salonsync import db
from salonsync.models.user import User, STAFF_ACTIVE, STAFF_ON_LEAVE
from salonsync.models.location import Location
from salonsync.models.appointment import Appointment, BLOCKING_STATUSES
from salonsync.models.availability import BlockedTime
from salonsync.scheduling.buffers import calculate_buffer_times
from salonsync.scheduling.overlap import find_conflicts

ERROR_REASON = 'Error checking availability'


class AvailabilityResult:
    """Outcome of an availability query for one staff member"""

    def __init__(self, staff_id, is_available, conflicting_appointments=None,
                 blocked_time_slots=None, reason=None):
        self.staff_id = staff_id
        self.is_available = is_available
        self.conflicting_appointments = conflicting_appointments or []
        self.blocked_time_slots = blocked_time_slots or []
        self.reason = reason

    @classmethod
    def unavailable(cls, staff_id, reason):
        return cls(staff_id, False, reason=reason)

    def indicator(self):
        """Short label explaining why the staff member cannot be booked"""
        if self.is_available:
            return None

        home = [a for a in self.conflicting_appointments if a.is_home_service()]
        physical = [a for a in self.conflicting_appointments if not a.is_home_service()]

        if home:
            return f"Home Service - {home[0].client.get_full_name()}"
        if physical:
            location_name = physical[0].location.name if physical[0].location else 'Salon'
            return f"{location_name} - {physical[0].client.get_full_name()}"
        return self.reason or 'Unavailable'

    def to_dict(self):
        return {
            'staff_id': self.staff_id,
            'is_available': self.is_available,
            'conflicting_appointments': [a.to_dict() for a in self.conflicting_appointments],
            'blocked_time_slots': [b.to_dict() for b in self.blocked_time_slots],
            'reason': self.reason,
            'indicator': self.indicator(),
        }

    def __repr__(self):
        return f'<AvailabilityResult staff={self.staff_id} available={self.is_available}>'


def day_window(start, end, before_minutes=0, after_minutes=0):
    """Whole days covered by [start, end), widened by the buffers"""
    window_start = datetime.combine(start.date(), time.min) - timedelta(minutes=before_minutes)
    window_end = datetime.combine(end.date(), time.min) + timedelta(days=1, minutes=after_minutes)
    return window_start, window_end


def fetch_appointments(staff_id, window_start, window_end):
    return Appointment.query.filter(
        Appointment.staff_id == staff_id,
        Appointment.status.in_(BLOCKING_STATUSES),
        Appointment.start_time < window_end,
        Appointment.end_time > window_start
    ).all()


def fetch_blocked_times(staff_id, window_start, window_end):
    return BlockedTime.query.filter(
        BlockedTime.staff_id == staff_id,
        BlockedTime.start_time < window_end,
        BlockedTime.end_time > window_start
    ).all()


def eligibility_reason(staff, location):
    """Reason the staff member cannot work this slot at all, or None"""
    if staff is None or not staff.is_staff():
        return 'Staff member not found'
    if not staff.is_active or staff.staff_status != STAFF_ACTIVE:
        if staff.staff_status == STAFF_ON_LEAVE:
            return 'Staff member is on leave'
        return 'Staff member is inactive'
    if location is not None and not staff.works_at(location):
        if location.is_home_service:
            return 'Staff member does not provide home service'
        return f'Staff member does not work at {location.name}'
    return None


def _conflict_reason(appointments, blocks):
    if appointments:
        return f'Conflicts with {len(appointments)} existing appointment(s)'
    block = blocks[0]
    if block.is_holiday:
        return f'Holiday: {block.reason}' if block.reason else 'Holiday'
    return f'Blocked: {block.reason}' if block.reason else 'Blocked time'


def check_staff_availability(staff_id, start, end, location_id=None,
                             exclude_appointment_id=None, service_id=None):
    """
    Check whether a staff member is free for [start, end).

    Args:
        staff_id: staff member (User with the staff role)
        start, end: candidate slot, end must be after start
        location_id: where the booking would take place, used to check the
            staff member works there; conflicts are found at every location
        exclude_appointment_id: appointment being rescheduled
        service_id: used to pick service specific buffer times

    Returns:
        AvailabilityResult

    Database errors are logged and reported as unavailable.
    """
    if end <= start:
        raise ValueError("End time must be after start time")

    try:
        staff = db.session.get(User, staff_id)
        location = db.session.get(Location, location_id) if location_id is not None else None
        if location_id is not None and location is None:
            return AvailabilityResult.unavailable(staff_id, 'Location not found')

        reason = eligibility_reason(staff, location)
        if reason:
            return AvailabilityResult.unavailable(staff_id, reason)

        before_minutes, after_minutes = calculate_buffer_times(
            staff_id=staff_id, service_id=service_id, location_id=location_id
        )
        window_start, window_end = day_window(start, end, before_minutes, after_minutes)

        appointments = fetch_appointments(staff_id, window_start, window_end)
        blocked_times = fetch_blocked_times(staff_id, window_start, window_end)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception(f"Error checking availability for staff {staff_id}: {e}")
        return AvailabilityResult.unavailable(staff_id, ERROR_REASON)

    conflicting_appointments, conflicting_blocks = find_conflicts(
        start, end, appointments, blocked_times,
        exclude_appointment_id=exclude_appointment_id,
        before_minutes=before_minutes,
        after_minutes=after_minutes
    )

    if conflicting_appointments or conflicting_blocks:
        return AvailabilityResult(
            staff_id,
            False,
            conflicting_appointments=conflicting_appointments,
            blocked_time_slots=conflicting_blocks,
            reason=_conflict_reason(conflicting_appointments, conflicting_blocks)
        )

    return AvailabilityResult(staff_id, True)


def check_multiple_staff_availability(staff_ids, start, end, location_id=None):
    """Availability of several staff members for the same slot, keyed by staff id"""
    results = {}
    for staff_id in staff_ids:
        results[staff_id] = check_staff_availability(staff_id, start, end, location_id=location_id)
    return results


def get_staff_conflicts_for_date(staff_id, day):
    """Appointments that occupy the staff member on the given date"""
    day_start = datetime.combine(day, time.min)
    day_end = day_start + timedelta(days=1)
    appointments = fetch_appointments(staff_id, day_start, day_end)
    return sorted(appointments, key=lambda a: a.start_time)
