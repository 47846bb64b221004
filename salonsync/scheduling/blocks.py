from datetime import datetime, time, timedelta

from salonsync import db
from salonsync.models.user import User, ROLE_STAFF
from salonsync.models.availability import BlockedTime, BLOCK_OTHER
from salonsync.scheduling.availability import fetch_appointments
from salonsync.scheduling.overlap import find_conflicts
from salonsync.scheduling.sync import get_notifier
from salonsync.utils.audit import log_audit


def block_time(staff_id, start_time, end_time, reason=None, block_type=BLOCK_OTHER):
    """
    Mark a staff member as unavailable between start_time and end_time.

    Existing appointments in that window are left alone; they are returned
    so the caller can warn about them.
    """
    blocked_time = BlockedTime(
        staff_id=staff_id,
        start_time=start_time,
        end_time=end_time,
        reason=reason,
        block_type=block_type
    )
    db.session.add(blocked_time)
    db.session.commit()

    log_audit('create', 'blocked_time', entity_id=blocked_time.id, details={
        'staff_id': staff_id,
        'start_time': start_time.strftime('%Y-%m-%d %H:%M'),
        'end_time': end_time.strftime('%Y-%m-%d %H:%M'),
        'reason': reason,
        'block_type': blocked_time.block_type
    })
    get_notifier().emit_staff_availability_changed(staff_id, data={'blocked_time_id': blocked_time.id})

    overlapping, _ = find_conflicts(
        start_time, end_time, fetch_appointments(staff_id, start_time, end_time), []
    )
    return blocked_time, overlapping


def remove_blocked_time(blocked_time):
    audit_details = blocked_time.to_dict()
    staff_id = blocked_time.staff_id
    blocked_time_id = blocked_time.id

    db.session.delete(blocked_time)
    db.session.commit()

    log_audit('delete', 'blocked_time', entity_id=blocked_time_id, details=audit_details)
    get_notifier().emit_staff_availability_changed(staff_id, data={'blocked_time_id': blocked_time_id})


def add_holiday(day, description):
    """Block the whole day for every staff member"""
    staff_members = User.query.filter_by(role=ROLE_STAFF).all()
    start_time = datetime.combine(day, time.min)
    end_time = start_time + timedelta(days=1)

    holidays = []
    for staff in staff_members:
        holiday = BlockedTime(
            staff_id=staff.id,
            start_time=start_time,
            end_time=end_time,
            reason=description,
            is_holiday=True
        )
        db.session.add(holiday)
        holidays.append(holiday)
    db.session.commit()

    log_audit('create', 'holiday', details={
        'date': day.strftime('%Y-%m-%d'),
        'description': description,
        'affected_staff': [
            {'id': staff.id, 'name': staff.get_full_name(), 'email': staff.email}
            for staff in staff_members
        ]
    })

    notifier = get_notifier()
    for staff in staff_members:
        notifier.emit_staff_availability_changed(staff.id, data={'holiday': day.isoformat()})
    return holidays
