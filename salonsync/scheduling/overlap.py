"""
Interval overlap checks for staff schedules.

Intervals are half-open: [start, end). An appointment ending at 11:00 does
not conflict with one starting at 11:00.
"""

from datetime import timedelta

from salonsync.models.appointment import BLOCKING_STATUSES


def overlaps(start, end, other_start, other_end):
    """True if [start, end) and [other_start, other_end) share any instant."""
    return start < other_end and end > other_start


def find_conflicts(start, end, appointments, blocked_times,
                   exclude_appointment_id=None, before_minutes=0, after_minutes=0):
    """
    Filter appointments and blocked times that clash with a candidate slot.

    Args:
        start, end: candidate slot
        appointments: iterable of objects with id, status, start_time, end_time
        blocked_times: iterable of objects with start_time, end_time
        exclude_appointment_id: appointment being edited, ignored
        before_minutes, after_minutes: buffer kept free around appointments

    Returns:
        tuple: (conflicting_appointments, conflicting_blocks), both in start order
    """
    if end <= start:
        raise ValueError("End time must be after start time")

    # Buffers only apply between appointments, not against blocked time
    buffered_start = start - timedelta(minutes=before_minutes)
    buffered_end = end + timedelta(minutes=after_minutes)

    conflicting_appointments = [
        appt for appt in appointments
        if appt.status in BLOCKING_STATUSES
        and (exclude_appointment_id is None or appt.id != exclude_appointment_id)
        and overlaps(buffered_start, buffered_end, appt.start_time, appt.end_time)
    ]

    conflicting_blocks = [
        block for block in blocked_times
        if overlaps(start, end, block.start_time, block.end_time)
    ]

    conflicting_appointments.sort(key=lambda a: a.start_time)
    conflicting_blocks.sort(key=lambda b: b.start_time)
    return conflicting_appointments, conflicting_blocks
