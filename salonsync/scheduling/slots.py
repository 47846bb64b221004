from datetime import datetime, timedelta

from flask import current_app

from salonsync.models.availability import BusinessHours
from salonsync.scheduling.availability import (
    day_window, eligibility_reason, fetch_appointments, fetch_blocked_times
)
from salonsync.scheduling.buffers import calculate_buffer_times
from salonsync.scheduling.overlap import find_conflicts, overlaps


class SlotList:
    """Bookable start times for one staff member on one day"""

    def __init__(self, day, slots=None, message=None):
        self.day = day
        self.slots = slots or []
        self.message = message

    def to_dict(self):
        return {
            'date': self.day.isoformat(),
            'slots': [
                {
                    'start_time': start.isoformat(),
                    'end_time': end.isoformat(),
                    'formatted_time': start.strftime('%I:%M %p').lstrip('0'),
                }
                for start, end in self.slots
            ],
            'message': self.message,
        }


def _first_slot_start(day, open_time, now, interval, lead_minutes):
    """Opening time, or the next interval boundary after now plus lead time when booking for today"""
    opening = datetime.combine(day, open_time)
    if day != now.date():
        return opening

    minutes = now.hour * 60 + now.minute
    next_slot_minutes = ((minutes // interval) + 1) * interval + lead_minutes
    earliest = datetime.combine(day, datetime.min.time()) + timedelta(minutes=next_slot_minutes)
    return max(opening, earliest)


def get_available_slots(staff, service, day, location=None, now=None):
    """
    Slots during business hours in which the staff member can perform the
    service without clashing with appointments or blocked time.
    """
    staff_id = staff.id
    location_id = location.id if location is not None else None
    now = now or datetime.now()
    interval = current_app.config['SLOT_INTERVAL_MINUTES']
    lead_minutes = current_app.config['BOOKING_LEAD_MINUTES']

    if day < now.date():
        return SlotList(day, message='Please select a future date')

    hours = BusinessHours.query.filter_by(day_of_week=day.weekday()).first()
    if not hours or hours.is_closed:
        return SlotList(day, message="We're closed on this day")

    reason = eligibility_reason(staff, location)
    if reason:
        return SlotList(day, message=reason)

    duration = timedelta(minutes=service.duration_minutes)
    before_minutes, after_minutes = calculate_buffer_times(
        staff_id=staff_id, service_id=service.id, location_id=location_id
    )
    window_start, window_end = day_window(
        datetime.combine(day, hours.open_time), datetime.combine(day, hours.close_time),
        before_minutes, after_minutes
    )
    appointments = fetch_appointments(staff_id, window_start, window_end)
    blocked_times = fetch_blocked_times(staff_id, window_start, window_end)

    day_start = datetime.combine(day, datetime.min.time())
    holiday = next((
        b for b in blocked_times
        if b.is_holiday and overlaps(day_start, day_start + timedelta(days=1), b.start_time, b.end_time)
    ), None)
    if holiday:
        return SlotList(day, message=f"Salon closed: {holiday.reason}")

    slots = []
    current = _first_slot_start(day, hours.open_time, now, interval, lead_minutes)
    last_start = datetime.combine(day, hours.close_time) - duration

    while current <= last_start:
        slot_end = current + duration
        conflicts, blocks = find_conflicts(
            current, slot_end, appointments, blocked_times,
            before_minutes=before_minutes, after_minutes=after_minutes
        )
        if not conflicts and not blocks:
            slots.append((current, slot_end))
        current += timedelta(minutes=interval)

    return SlotList(day, slots)
