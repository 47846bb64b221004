# Import all models here for easier imports elsewhere
from .location import Location, staff_locations
from .user import User
from .service import Service
from .appointment import Appointment
from .availability import BusinessHours, BlockedTime, BufferRule
from .audit import AuditLog
