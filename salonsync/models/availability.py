from salonsync import db
from datetime import datetime

# Days of the week constants (0 = Monday, 6 = Sunday)
MONDAY = 0
TUESDAY = 1
WEDNESDAY = 2
THURSDAY = 3
FRIDAY = 4
SATURDAY = 5
SUNDAY = 6

DAY_NAMES = {
    MONDAY: 'Monday',
    TUESDAY: 'Tuesday',
    WEDNESDAY: 'Wednesday',
    THURSDAY: 'Thursday',
    FRIDAY: 'Friday',
    SATURDAY: 'Saturday',
    SUNDAY: 'Sunday'
}

# Blocked time types
BLOCK_BREAK = 'break'
BLOCK_LEAVE = 'leave'
BLOCK_HOLIDAY = 'holiday'
BLOCK_OTHER = 'other'
BLOCK_TYPES = (BLOCK_BREAK, BLOCK_LEAVE, BLOCK_HOLIDAY, BLOCK_OTHER)

# Buffer rule scopes
SCOPE_GLOBAL = 'global'
SCOPE_LOCATION = 'location'
SCOPE_SERVICE = 'service'
SCOPE_STAFF = 'staff'
BUFFER_SCOPES = (SCOPE_GLOBAL, SCOPE_LOCATION, SCOPE_SERVICE, SCOPE_STAFF)


class BusinessHours(db.Model):
    __tablename__ = 'business_hours'

    id = db.Column(db.Integer, primary_key=True)
    day_of_week = db.Column(db.Integer, nullable=False, unique=True)  # 0-6 (Monday-Sunday)
    open_time = db.Column(db.Time, nullable=False)
    close_time = db.Column(db.Time, nullable=False)
    is_closed = db.Column(db.Boolean, default=False)

    def __init__(self, day_of_week, open_time, close_time, is_closed=False):
        self.day_of_week = day_of_week
        self.open_time = open_time
        self.close_time = close_time
        self.is_closed = is_closed

    @classmethod
    def get_business_hours(cls):
        """Returns a dictionary of business hours by day of week"""
        hours = cls.query.all()
        result = {}
        for hour in hours:
            result[hour.day_of_week] = hour
        return result

    def to_dict(self):
        return {
            'day_of_week': self.day_of_week,
            'day_name': DAY_NAMES[self.day_of_week],
            'is_closed': bool(self.is_closed),
            'open_time': self.open_time.strftime('%H:%M') if self.open_time else None,
            'close_time': self.close_time.strftime('%H:%M') if self.close_time else None,
        }

    def __repr__(self):
        if self.is_closed:
            return f'<BusinessHours: Day {self.day_of_week} - CLOSED>'
        return f'<BusinessHours: Day {self.day_of_week} - {self.open_time} to {self.close_time}>'


class BlockedTime(db.Model):
    __tablename__ = 'blocked_times'

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    reason = db.Column(db.String(255), nullable=True)
    block_type = db.Column(db.String(20), default=BLOCK_OTHER)
    is_holiday = db.Column(db.Boolean, default=False)  # True if set by admin as holiday
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __init__(self, staff_id, start_time, end_time, reason=None, block_type=BLOCK_OTHER, is_holiday=False):
        self.staff_id = staff_id
        self.start_time = start_time
        self.end_time = end_time
        self.reason = reason
        self.is_holiday = is_holiday
        self.block_type = BLOCK_HOLIDAY if is_holiday else block_type

    def to_dict(self):
        return {
            'id': self.id,
            'staff_id': self.staff_id,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'reason': self.reason,
            'block_type': self.block_type,
            'is_holiday': bool(self.is_holiday),
        }

    def __repr__(self):
        if self.is_holiday:
            return f'<Holiday: {self.start_time.date()} - {self.reason}>'
        return f'<BlockedTime: {self.start_time} to {self.end_time}>'


class BufferRule(db.Model):
    """Minutes to keep free around appointments for a scope (global, location, service or staff)"""
    __tablename__ = 'buffer_rules'

    id = db.Column(db.Integer, primary_key=True)
    scope = db.Column(db.String(20), nullable=False, default=SCOPE_GLOBAL)
    scope_id = db.Column(db.Integer, nullable=True)  # Null for the global rule
    before_minutes = db.Column(db.Integer, nullable=False, default=0)
    after_minutes = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint('scope', 'scope_id', name='unique_buffer_scope'),
    )

    def __init__(self, scope, before_minutes=0, after_minutes=0, scope_id=None):
        self.scope = scope
        self.scope_id = scope_id
        self.before_minutes = before_minutes
        self.after_minutes = after_minutes

    def to_dict(self):
        return {
            'id': self.id,
            'scope': self.scope,
            'scope_id': self.scope_id,
            'before_minutes': self.before_minutes,
            'after_minutes': self.after_minutes,
        }

    def __repr__(self):
        return f'<BufferRule {self.scope}:{self.scope_id} -{self.before_minutes}/+{self.after_minutes}>'
