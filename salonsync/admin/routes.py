from datetime import datetime, time, timedelta
from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import func
from salonsync import db
from salonsync.errors import form_error_response
from salonsync.models.user import User, ROLE_STAFF, ROLE_ADMIN, STAFF_ACTIVE
from salonsync.models.location import Location
from salonsync.models.service import Service
from salonsync.models.appointment import Appointment, ALL_STATUSES, STATUS_COMPLETED
from salonsync.models.availability import (
    BusinessHours, BlockedTime, BufferRule, DAY_NAMES, SATURDAY, SUNDAY
)
from salonsync.models.audit import AuditLog
from salonsync.admin.forms import (
    StaffCreateForm, StaffUpdateForm, LocationForm, ServiceForm, HolidayForm,
    BufferRuleForm, StatsQueryForm, AuditLogFilterForm, provided
)
from salonsync.scheduling.blocks import add_holiday
from salonsync.scheduling.buffers import set_buffer_rule
from salonsync.scheduling.sync import get_notifier
from salonsync.utils.access import roles_required
from salonsync.utils.audit import log_audit

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


def _locations_from_ids(location_ids):
    """Locations for the given ids, None if any of them does not exist"""
    locations = Location.query.filter(Location.id.in_(location_ids)).all() if location_ids else []
    if len(locations) != len(set(location_ids)):
        return None
    return locations


def _staff_audit_values(staff):
    return {
        'email': staff.email,
        'first_name': staff.first_name,
        'last_name': staff.last_name,
        'phone': staff.phone,
        'status': staff.staff_status,
        'home_service': bool(staff.home_service),
        'is_active': staff.is_active,
        'location_ids': [loc.id for loc in staff.locations],
    }


@admin_bp.route('/staff', methods=['POST'])
@roles_required(ROLE_ADMIN)
def create_staff():
    """Create a new staff member and assign their locations"""
    form = StaffCreateForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    locations = _locations_from_ids(form.location_ids.data)
    if locations is None:
        return jsonify({'error': 'Invalid input', 'fields': {'location_ids': ['Unknown location.']}}), 400

    staff = User(
        email=form.email.data,
        first_name=form.first_name.data,
        last_name=form.last_name.data,
        password=form.password.data,
        role=ROLE_STAFF,
        phone=form.phone.data,
        staff_status=form.status.data or STAFF_ACTIVE,
        home_service=form.home_service.data
    )
    staff.specialties = form.specialties.data
    staff.locations = locations

    db.session.add(staff)
    db.session.commit()

    log_audit('create', 'user', entity_id=staff.id, details=_staff_audit_values(staff))
    return jsonify({'staff': staff.to_dict()}), 201


@admin_bp.route('/staff/<int:staff_id>', methods=['PATCH'])
@roles_required(ROLE_ADMIN)
def update_staff(staff_id):
    """Update an existing staff member; changes to status or locations notify availability views"""
    staff = db.session.get(User, staff_id)
    if staff is None or not staff.is_staff():
        return jsonify({'error': 'Staff member not found'}), 404

    form = StaffUpdateForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    locations = None
    if provided(form.location_ids):
        locations = _locations_from_ids(form.location_ids.data)
        if locations is None:
            return jsonify({'error': 'Invalid input', 'fields': {'location_ids': ['Unknown location.']}}), 400

    old_values = _staff_audit_values(staff)

    if form.first_name.data:
        staff.first_name = form.first_name.data
    if form.last_name.data:
        staff.last_name = form.last_name.data
    if provided(form.phone):
        staff.phone = form.phone.data or None
    if provided(form.specialties):
        staff.specialties = form.specialties.data or None
    if form.status.data:
        staff.staff_status = form.status.data
    if provided(form.home_service):
        staff.home_service = form.home_service.data
    if provided(form.is_active):
        staff.is_active = form.is_active.data
    if locations is not None:
        staff.locations = locations

    password_changed = False
    if form.password.data:
        staff.set_password(form.password.data)
        password_changed = True

    db.session.commit()

    new_values = _staff_audit_values(staff)
    log_audit('update', 'user', entity_id=staff.id, details={
        'old_values': old_values,
        'new_values': new_values,
        'password_changed': password_changed
    })

    availability_keys = ('status', 'home_service', 'is_active', 'location_ids')
    if any(old_values[key] != new_values[key] for key in availability_keys):
        get_notifier().emit_staff_availability_changed(staff.id, data={
            key: new_values[key] for key in availability_keys
        })

    return jsonify({'staff': staff.to_dict()})


@admin_bp.route('/locations', methods=['POST'])
@roles_required(ROLE_ADMIN)
def create_location():
    form = LocationForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    location = Location(
        name=form.name.data,
        address=form.address.data or None,
        is_home_service=form.is_home_service.data
    )
    db.session.add(location)
    db.session.commit()

    log_audit('create', 'location', entity_id=location.id, details=location.to_dict())
    return jsonify({'location': location.to_dict()}), 201


@admin_bp.route('/services', methods=['POST'])
@roles_required(ROLE_ADMIN)
def create_service():
    """Create a new salon service"""
    form = ServiceForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    service = Service(
        name=form.name.data,
        description=form.description.data,
        price=form.price.data,
        duration_minutes=form.duration_minutes.data,
        is_active=form.is_active.data if provided(form.is_active) else True
    )

    db.session.add(service)
    db.session.commit()

    # Log service creation
    log_audit('create', 'service', entity_id=service.id, details={
        'name': service.name,
        'description': service.description,
        'price': float(service.price),
        'duration_minutes': service.duration_minutes,
        'is_active': service.is_active
    })

    return jsonify({'service': service.to_dict()}), 201


def _ensure_business_hours():
    """Create default business hours (9 to 5, closed on weekends) for days without any"""
    existing_days = [hour.day_of_week for hour in BusinessHours.query.all()]
    for day in DAY_NAMES:
        if day not in existing_days:
            db.session.add(BusinessHours(
                day_of_week=day,
                open_time=time(9, 0),
                close_time=time(17, 0),
                is_closed=(day in [SATURDAY, SUNDAY])
            ))
    db.session.commit()


def _parse_hours_entry(entry):
    """Validate one day of a business hours update, returns (day, is_closed, open, close)"""
    day = entry.get('day_of_week')
    if day not in DAY_NAMES:
        raise ValueError('day_of_week must be between 0 (Monday) and 6 (Sunday).')
    if entry.get('is_closed') is True:
        return day, True, None, None

    try:
        open_time = datetime.strptime(entry.get('open_time') or '', '%H:%M').time()
        close_time = datetime.strptime(entry.get('close_time') or '', '%H:%M').time()
    except (TypeError, ValueError):
        raise ValueError(f'Invalid time format for {DAY_NAMES[day]}. Use HH:MM.')
    if close_time <= open_time:
        raise ValueError(f'Closing time must be after opening time on {DAY_NAMES[day]}.')
    return day, False, open_time, close_time


@admin_bp.route('/business-hours', methods=['GET'])
@roles_required(ROLE_ADMIN)
def get_business_hours():
    _ensure_business_hours()
    hours = BusinessHours.query.order_by(BusinessHours.day_of_week).all()
    return jsonify({'business_hours': [h.to_dict() for h in hours]})


@admin_bp.route('/business-hours', methods=['PUT'])
@roles_required(ROLE_ADMIN)
def update_business_hours():
    """
    Update salon business hours.

    Expects {"hours": [{"day_of_week": 0, "is_closed": false,
    "open_time": "09:00", "close_time": "17:00"}, ...]}; days not listed
    are left unchanged.
    """
    _ensure_business_hours()
    payload = request.get_json(silent=True) or {}
    entries = payload.get('hours')
    if not isinstance(entries, list):
        return jsonify({'error': 'Expected a list of business hours under "hours".'}), 400

    try:
        parsed = [_parse_hours_entry(entry) for entry in entries]
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except (AttributeError, TypeError):
        return jsonify({'error': 'Invalid business hours entry.'}), 400

    hours_by_day = BusinessHours.get_business_hours()
    old_hours = {day: hour.to_dict() for day, hour in hours_by_day.items()}

    changes_made = False
    for day, is_closed, open_time, close_time in parsed:
        hour = hours_by_day[day]
        if is_closed:
            changes_made = changes_made or not hour.is_closed
            hour.is_closed = True
        else:
            if hour.is_closed or hour.open_time != open_time or hour.close_time != close_time:
                changes_made = True
            hour.is_closed = False
            hour.open_time = open_time
            hour.close_time = close_time

    db.session.commit()

    if changes_made:
        log_audit('update', 'business_hours', details={
            'old_hours': old_hours,
            'new_hours': {day: hour.to_dict() for day, hour in hours_by_day.items()}
        })

    hours = BusinessHours.query.order_by(BusinessHours.day_of_week).all()
    return jsonify({'business_hours': [h.to_dict() for h in hours]})


@admin_bp.route('/holidays', methods=['GET'])
@roles_required(ROLE_ADMIN)
def list_holidays():
    holidays = db.session.query(BlockedTime.start_time, BlockedTime.reason).filter(
        BlockedTime.is_holiday.is_(True)
    ).distinct().order_by(BlockedTime.start_time).all()
    return jsonify({'holidays': [
        {'date': start_time.date().isoformat(), 'description': reason}
        for start_time, reason in holidays
    ]})


@admin_bp.route('/holidays', methods=['POST'])
@roles_required(ROLE_ADMIN)
def create_holiday():
    """Close the salon for a day by blocking it for every staff member"""
    form = HolidayForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    holidays = add_holiday(form.date.data, form.description.data)
    return jsonify({
        'date': form.date.data.isoformat(),
        'description': form.description.data,
        'affected_staff_ids': [h.staff_id for h in holidays]
    }), 201


@admin_bp.route('/buffer-rules', methods=['GET'])
@roles_required(ROLE_ADMIN)
def list_buffer_rules():
    rules = BufferRule.query.order_by(BufferRule.scope, BufferRule.scope_id).all()
    return jsonify({
        'enabled': bool(current_app.config.get('BUFFER_TIME_ENABLED')),
        'buffer_rules': [r.to_dict() for r in rules]
    })


@admin_bp.route('/buffer-rules', methods=['PUT'])
@roles_required(ROLE_ADMIN)
def update_buffer_rule():
    form = BufferRuleForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    rule = set_buffer_rule(
        form.scope.data,
        form.before_minutes.data,
        form.after_minutes.data,
        scope_id=form.scope_id.data
    )
    db.session.commit()

    log_audit('update', 'buffer_rule', entity_id=rule.id, details=rule.to_dict())
    return jsonify({'buffer_rule': rule.to_dict()})


@admin_bp.route('/stats', methods=['GET'])
@roles_required(ROLE_ADMIN)
def appointment_stats():
    """Appointment counts per status and revenue from completed appointments"""
    form = StatsQueryForm()
    if not form.validate():
        return form_error_response(form)

    base_query = Appointment.query
    revenue_query = db.session.query(func.sum(Service.price)).join(
        Appointment, Service.id == Appointment.service_id
    ).filter(Appointment.status == STATUS_COMPLETED)

    if form.date_from.data:
        date_from = datetime.combine(form.date_from.data, time.min)
        base_query = base_query.filter(Appointment.start_time >= date_from)
        revenue_query = revenue_query.filter(Appointment.start_time >= date_from)
    if form.date_to.data:
        # Include the entire end date
        date_to = datetime.combine(form.date_to.data, time.min) + timedelta(days=1)
        base_query = base_query.filter(Appointment.start_time < date_to)
        revenue_query = revenue_query.filter(Appointment.start_time < date_to)

    stats = {'total': base_query.count()}
    for status in ALL_STATUSES:
        stats[status] = base_query.filter(Appointment.status == status).count()

    revenue_value = revenue_query.scalar()
    stats['revenue'] = float(revenue_value) if revenue_value is not None else 0.0

    return jsonify({'stats': stats})


@admin_bp.route('/audit-logs', methods=['GET'])
@roles_required(ROLE_ADMIN)
def audit_logs():
    """System audit logs, newest first, with filtering and pagination"""
    form = AuditLogFilterForm()
    if not form.validate():
        return form_error_response(form)

    query = AuditLog.query
    if form.action.data:
        query = query.filter(AuditLog.action == form.action.data)
    if form.entity_type.data:
        query = query.filter(AuditLog.entity_type == form.entity_type.data)
    if form.user_id.data is not None:
        query = query.filter(AuditLog.user_id == form.user_id.data)
    if form.date_from.data:
        query = query.filter(AuditLog.timestamp >= datetime.combine(form.date_from.data, time.min))
    if form.date_to.data:
        query = query.filter(
            AuditLog.timestamp < datetime.combine(form.date_to.data, time.min) + timedelta(days=1)
        )

    pagination = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).paginate(
        page=form.page.data or 1,
        per_page=current_app.config['AUDIT_LOGS_PER_PAGE'],
        error_out=False
    )

    return jsonify({
        'audit_logs': [log.to_dict() for log in pagination.items],
        'page': pagination.page,
        'pages': pagination.pages,
        'total': pagination.total
    })
