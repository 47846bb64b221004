from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from salonsync import db, login_manager
from salonsync.models.location import staff_locations

# User roles
ROLE_CLIENT = 'client'
ROLE_STAFF = 'staff'
ROLE_ADMIN = 'admin'

# Staff employment status
STAFF_ACTIVE = 'active'
STAFF_INACTIVE = 'inactive'
STAFF_ON_LEAVE = 'on_leave'
STAFF_STATUSES = (STAFF_ACTIVE, STAFF_INACTIVE, STAFF_ON_LEAVE)


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    role = db.Column(db.String(20), default=ROLE_CLIENT)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Staff specific fields
    staff_status = db.Column(db.String(20), default=STAFF_ACTIVE)
    home_service = db.Column(db.Boolean, default=False)
    specialties = db.Column(db.String(255), nullable=True)

    # Relationships
    appointments_as_client = db.relationship('Appointment', foreign_keys='Appointment.client_id', backref='client', lazy='dynamic')
    appointments_as_staff = db.relationship('Appointment', foreign_keys='Appointment.staff_id', backref='staff', lazy='dynamic')
    blocked_times = db.relationship('BlockedTime', backref='staff', lazy='dynamic', cascade='all, delete-orphan')
    locations = db.relationship('Location', secondary=staff_locations, backref=db.backref('staff', lazy='dynamic'))

    def __init__(self, email, first_name, last_name, password, role=ROLE_CLIENT, phone=None,
                 staff_status=STAFF_ACTIVE, home_service=False):
        self.email = email
        self.first_name = first_name
        self.last_name = last_name
        self.set_password(password)
        self.role = role
        self.phone = phone
        self.is_active = True
        self.staff_status = staff_status
        self.home_service = home_service

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def is_admin(self):
        return self.role == ROLE_ADMIN

    def is_staff(self):
        return self.role == ROLE_STAFF

    def is_client(self):
        return self.role == ROLE_CLIENT

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}"

    def works_at(self, location):
        """Whether this staff member can take bookings at the given location"""
        if location.is_home_service:
            return bool(self.home_service)
        return any(loc.id == location.id for loc in self.locations)

    def to_dict(self):
        data = {
            'id': self.id,
            'email': self.email,
            'name': self.get_full_name(),
            'first_name': self.first_name,
            'last_name': self.last_name,
            'phone': self.phone,
            'role': self.role,
            'is_active': self.is_active,
        }
        if self.is_staff():
            data.update({
                'status': self.staff_status,
                'home_service': bool(self.home_service),
                'specialties': self.specialties,
                'location_ids': [loc.id for loc in self.locations],
            })
        return data

    def __repr__(self):
        return f'<User {self.email}>'


@login_manager.user_loader
def load_user(id):
    return db.session.get(User, int(id))
