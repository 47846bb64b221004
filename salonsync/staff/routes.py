import time
from flask import Blueprint, jsonify, abort, current_app
from flask_login import login_required, current_user
from salonsync import db
from salonsync.errors import form_error_response
from salonsync.models.user import User, ROLE_STAFF, STAFF_ACTIVE
from salonsync.models.location import Location
from salonsync.models.service import Service
from salonsync.models.availability import BlockedTime, BLOCK_OTHER
from salonsync.staff.forms import (
    StaffFilterForm, AvailabilityQueryForm, AvailabilityBoardForm,
    DateQueryForm, SlotQueryForm, BlockTimeForm, ChangesQueryForm
)
from salonsync.scheduling.availability import (
    check_staff_availability, check_multiple_staff_availability, get_staff_conflicts_for_date
)
from salonsync.scheduling.slots import get_available_slots
from salonsync.scheduling.blocks import block_time, remove_blocked_time
from salonsync.scheduling.sync import get_change_tracker

staff_bp = Blueprint('staff', __name__, url_prefix='/api/staff')


def _get_staff_or_404(staff_id):
    staff = db.session.get(User, staff_id)
    if staff is None or not staff.is_staff():
        abort(404, description='Staff member not found')
    return staff


def _require_self_or_admin(staff_id):
    """Staff members manage their own blocked time, admins manage everyone's"""
    if current_user.is_admin():
        return
    if current_user.is_staff() and current_user.id == staff_id:
        return
    abort(403, description='Access denied. You can only manage your own schedule.')


@staff_bp.route('', methods=['GET'])
@login_required
def list_staff():
    """List staff members, optionally filtered by status and location"""
    form = StaffFilterForm()
    if not form.validate():
        return form_error_response(form)

    query = User.query.filter_by(role=ROLE_STAFF)
    if form.status.data:
        query = query.filter(User.staff_status == form.status.data)
    if form.location_id.data is not None:
        query = query.filter(User.locations.any(Location.id == form.location_id.data))

    staff_members = query.order_by(User.first_name, User.last_name).all()
    return jsonify({'staff': [s.to_dict() for s in staff_members]})


@staff_bp.route('/<int:staff_id>', methods=['GET'])
@login_required
def get_staff(staff_id):
    return jsonify({'staff': _get_staff_or_404(staff_id).to_dict()})


@staff_bp.route('/<int:staff_id>/availability', methods=['GET'])
@login_required
def staff_availability(staff_id):
    """Is the staff member free between start_time and end_time?"""
    form = AvailabilityQueryForm()
    if not form.validate():
        return form_error_response(form)

    result = check_staff_availability(
        staff_id,
        form.start_time.data,
        form.end_time.data,
        location_id=form.location_id.data,
        exclude_appointment_id=form.exclude_appointment_id.data,
        service_id=form.service_id.data
    )
    return jsonify(result.to_dict())


@staff_bp.route('/<int:staff_id>/conflicts', methods=['GET'])
@login_required
def staff_conflicts(staff_id):
    """Appointments occupying the staff member on a date, at any location"""
    _get_staff_or_404(staff_id)
    form = DateQueryForm()
    if not form.validate():
        return form_error_response(form)

    appointments = get_staff_conflicts_for_date(staff_id, form.date.data)
    return jsonify({
        'staff_id': staff_id,
        'date': form.date.data.isoformat(),
        'appointments': [a.to_dict() for a in appointments]
    })


@staff_bp.route('/<int:staff_id>/slots', methods=['GET'])
@login_required
def staff_slots(staff_id):
    """Bookable times for a service on a date"""
    staff = _get_staff_or_404(staff_id)
    form = SlotQueryForm()
    if not form.validate():
        return form_error_response(form)

    service = db.get_or_404(Service, form.service_id.data, description='Service not found')
    location = None
    if form.location_id.data is not None:
        location = db.get_or_404(Location, form.location_id.data, description='Location not found')

    slot_list = get_available_slots(staff, service, form.date.data, location=location)
    return jsonify(slot_list.to_dict())


@staff_bp.route('/<int:staff_id>/blocked-times', methods=['GET'])
@login_required
def list_blocked_times(staff_id):
    staff = _get_staff_or_404(staff_id)
    blocked_times = staff.blocked_times.order_by(BlockedTime.start_time).all()
    return jsonify({'blocked_times': [b.to_dict() for b in blocked_times]})


@staff_bp.route('/<int:staff_id>/blocked-times', methods=['POST'])
@login_required
def create_blocked_time(staff_id):
    """Block out time; appointments already in the window are reported back"""
    _get_staff_or_404(staff_id)
    _require_self_or_admin(staff_id)

    form = BlockTimeForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    blocked_time, overlapping = block_time(
        staff_id,
        form.start_time.data,
        form.end_time.data,
        reason=form.reason.data or None,
        block_type=form.block_type.data or BLOCK_OTHER
    )

    return jsonify({
        'blocked_time': blocked_time.to_dict(),
        'overlapping_appointments': [a.to_dict() for a in overlapping]
    }), 201


@staff_bp.route('/<int:staff_id>/blocked-times/<int:block_id>', methods=['DELETE'])
@login_required
def delete_blocked_time(staff_id, block_id):
    _require_self_or_admin(staff_id)

    blocked_time = db.session.get(BlockedTime, block_id)
    if blocked_time is None or blocked_time.staff_id != staff_id:
        abort(404, description='Blocked time not found')
    if blocked_time.is_holiday and not current_user.is_admin():
        abort(403, description='Holidays can only be removed by an administrator.')

    remove_blocked_time(blocked_time)
    return '', 204


@staff_bp.route('/availability', methods=['GET'])
@login_required
def availability_board():
    """
    Availability of several staff members for one slot.

    Without staff_ids every active staff member is checked. Clients poll
    this every poll_interval seconds and can ask /availability/changes
    whether anything moved in between.
    """
    form = AvailabilityBoardForm()
    if not form.validate():
        return form_error_response(form)

    if form.staff_ids.data:
        staff_ids = form.staff_id_list()
    else:
        staff_ids = [s.id for s in User.query.filter_by(role=ROLE_STAFF, staff_status=STAFF_ACTIVE).all()]

    results = check_multiple_staff_availability(
        staff_ids, form.start_time.data, form.end_time.data, location_id=form.location_id.data
    )

    return jsonify({
        'results': [results[staff_id].to_dict() for staff_id in staff_ids],
        'poll_interval': current_app.config['AVAILABILITY_POLL_SECONDS'],
        'last_updated': time.time()
    })


@staff_bp.route('/availability/changes', methods=['GET'])
@login_required
def availability_changes():
    """Staff members whose schedule changed after the given timestamp"""
    form = ChangesQueryForm()
    if not form.validate():
        return form_error_response(form)

    return jsonify({
        'staff_ids': get_change_tracker().changed_since(form.since.data),
        'timestamp': time.time()
    })
