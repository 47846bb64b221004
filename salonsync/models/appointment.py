from salonsync import db
from datetime import datetime

# Appointment status constants
STATUS_PENDING = 'pending'
STATUS_CONFIRMED = 'confirmed'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'
STATUS_NO_SHOW = 'no_show'

ALL_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_COMPLETED, STATUS_CANCELLED, STATUS_NO_SHOW)

# Only these statuses occupy the staff member's time
BLOCKING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)

# Allowed status changes; anything missing is terminal
STATUS_TRANSITIONS = {
    STATUS_PENDING: (STATUS_CONFIRMED, STATUS_CANCELLED),
    STATUS_CONFIRMED: (STATUS_COMPLETED, STATUS_CANCELLED, STATUS_NO_SHOW),
}


class Appointment(db.Model):
    __tablename__ = 'appointments'

    id = db.Column(db.Integer, primary_key=True)
    booking_reference = db.Column(db.String(20), unique=True, nullable=True)
    client_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    staff_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey('services.id'), nullable=False)
    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=False)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), default=STATUS_PENDING)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    location = db.relationship('Location', backref=db.backref('appointments', lazy='dynamic'))

    def __init__(self, client_id, staff_id, service_id, location_id, start_time, end_time,
                 notes=None, status=STATUS_PENDING, booking_reference=None):
        self.client_id = client_id
        self.staff_id = staff_id
        self.service_id = service_id
        self.location_id = location_id
        self.start_time = start_time
        self.end_time = end_time
        self.notes = notes
        self.status = status
        self.booking_reference = booking_reference

    def can_transition_to(self, status):
        return status in STATUS_TRANSITIONS.get(self.status, ())

    def is_blocking(self):
        return self.status in BLOCKING_STATUSES

    def is_home_service(self):
        return self.location is not None and bool(self.location.is_home_service)

    def to_dict(self):
        return {
            'id': self.id,
            'booking_reference': self.booking_reference,
            'client_id': self.client_id,
            'client_name': self.client.get_full_name() if self.client else None,
            'staff_id': self.staff_id,
            'staff_name': self.staff.get_full_name() if self.staff else None,
            'service_id': self.service_id,
            'service_name': self.service.name if self.service else None,
            'location_id': self.location_id,
            'location_name': self.location.name if self.location else None,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'status': self.status,
            'notes': self.notes,
        }

    def __repr__(self):
        return f'<Appointment {self.id}: {self.start_time} - {self.end_time}>'
