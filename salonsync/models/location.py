from salonsync import db
from datetime import datetime

staff_locations = db.Table(
    'staff_locations',
    db.Column('staff_id', db.Integer, db.ForeignKey('users.id'), primary_key=True),
    db.Column('location_id', db.Integer, db.ForeignKey('locations.id'), primary_key=True)
)


class Location(db.Model):
    __tablename__ = 'locations'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    is_home_service = db.Column(db.Boolean, default=False)  # Virtual location for home visits
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __init__(self, name, address=None, is_home_service=False, is_active=True):
        self.name = name
        self.address = address
        self.is_home_service = is_home_service
        self.is_active = is_active

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'is_home_service': bool(self.is_home_service),
            'is_active': bool(self.is_active),
        }

    def __repr__(self):
        return f'<Location {self.name}>'
