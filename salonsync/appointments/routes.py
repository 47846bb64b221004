from datetime import datetime, time, timedelta
from flask import Blueprint, jsonify, abort
from flask_login import login_required, current_user
from salonsync import db
from salonsync.errors import form_error_response
from salonsync.models.user import ROLE_STAFF, ROLE_ADMIN
from salonsync.models.appointment import Appointment, STATUS_PENDING, STATUS_CANCELLED, BLOCKING_STATUSES
from salonsync.appointments.forms import (
    AppointmentForm, RescheduleForm, AppointmentStatusForm, AppointmentFilterForm
)
from salonsync.scheduling import booking
from salonsync.utils.access import roles_required

appointments_bp = Blueprint('appointments', __name__, url_prefix='/api/appointments')


def _get_visible_appointment(appointment_id):
    """Load an appointment, hiding other clients' appointments from clients"""
    appointment = db.get_or_404(Appointment, appointment_id, description='Appointment not found')
    if current_user.is_client() and appointment.client_id != current_user.id:
        abort(403, description='Access denied. You can only manage your own appointments.')
    return appointment


def _get_manageable_appointment(appointment_id):
    """Like _get_visible_appointment, and staff may only change their own appointments"""
    appointment = _get_visible_appointment(appointment_id)
    if current_user.is_staff() and appointment.staff_id != current_user.id:
        abort(403, description='You can only update your own appointments.')
    return appointment


@appointments_bp.route('', methods=['GET'])
@login_required
def list_appointments():
    """List appointments with optional client, staff, location, date and status filters"""
    form = AppointmentFilterForm()
    if not form.validate():
        return form_error_response(form)

    query = Appointment.query

    if current_user.is_client():
        query = query.filter(Appointment.client_id == current_user.id)
    elif form.client_id.data is not None:
        query = query.filter(Appointment.client_id == form.client_id.data)

    if form.staff_id.data is not None:
        query = query.filter(Appointment.staff_id == form.staff_id.data)
    if form.location_id.data is not None:
        query = query.filter(Appointment.location_id == form.location_id.data)
    if form.status.data:
        query = query.filter(Appointment.status == form.status.data)
    if form.date.data:
        day_start = datetime.combine(form.date.data, time.min)
        query = query.filter(
            Appointment.start_time >= day_start,
            Appointment.start_time < day_start + timedelta(days=1)
        )

    appointments = query.order_by(Appointment.start_time).all()
    return jsonify({'appointments': [a.to_dict() for a in appointments]})


@appointments_bp.route('', methods=['POST'])
@login_required
def create_appointment():
    """Book a new appointment, 409 with the conflicts if the slot is taken"""
    form = AppointmentForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    if current_user.is_client():
        # Clients book for themselves and always start out pending
        client_id = current_user.id
        status = STATUS_PENDING
    else:
        client_id = form.client_id.data
        if client_id is None:
            return jsonify({'error': 'Invalid input', 'fields': {'client_id': ['This field is required.']}}), 400
        status = form.status.data or STATUS_PENDING

    appointment = booking.book_appointment(
        client_id=client_id,
        staff_id=form.staff_id.data,
        service_id=form.service_id.data,
        location_id=form.location_id.data,
        start_time=form.start_time.data,
        notes=form.notes.data,
        status=status
    )

    return jsonify({'appointment': appointment.to_dict()}), 201


@appointments_bp.route('/<int:appointment_id>', methods=['GET'])
@login_required
def get_appointment(appointment_id):
    appointment = _get_visible_appointment(appointment_id)
    return jsonify({'appointment': appointment.to_dict()})


@appointments_bp.route('/<int:appointment_id>', methods=['PATCH'])
@login_required
def reschedule_appointment(appointment_id):
    """Move an appointment to another time, staff member or location"""
    appointment = _get_manageable_appointment(appointment_id)

    form = RescheduleForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    appointment = booking.reschedule_appointment(
        appointment,
        form.start_time.data,
        staff_id=form.staff_id.data,
        location_id=form.location_id.data
    )
    return jsonify({'appointment': appointment.to_dict()})


@appointments_bp.route('/<int:appointment_id>/status', methods=['POST'])
@login_required
def update_appointment_status(appointment_id):
    """Update the status of an appointment"""
    appointment = _get_manageable_appointment(appointment_id)

    form = AppointmentStatusForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    if current_user.is_client():
        if form.status.data != STATUS_CANCELLED:
            abort(403, description='Clients can only cancel their appointments.')
        if appointment.start_time <= datetime.now():
            return jsonify({'error': 'Cannot cancel an appointment that has already started or completed.'}), 400

    appointment = booking.change_status(appointment, form.status.data)
    return jsonify({'appointment': appointment.to_dict()})


@appointments_bp.route('/<int:appointment_id>', methods=['DELETE'])
@roles_required(ROLE_ADMIN)
def delete_appointment(appointment_id):
    appointment = db.get_or_404(Appointment, appointment_id, description='Appointment not found')
    booking.delete_appointment(appointment)
    return '', 204


@appointments_bp.route('/staff-view', methods=['GET'])
@roles_required(ROLE_STAFF)
def my_schedule():
    """Upcoming pending and confirmed appointments of the logged in staff member"""
    appointments = Appointment.query.filter(
        Appointment.staff_id == current_user.id,
        Appointment.start_time >= datetime.now(),
        Appointment.status.in_(BLOCKING_STATUSES)
    ).order_by(Appointment.start_time).all()
    return jsonify({'appointments': [a.to_dict() for a in appointments]})
