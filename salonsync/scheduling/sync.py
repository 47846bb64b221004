"""
In-process appointment change notifications.

Listeners subscribe to an event type, or to '*' for every event, and are
called synchronously in subscription order when an event is emitted. There
is no persistence and no delivery to other processes; a listener that was
not subscribed when an event fired never sees it.
"""

import logging
import threading
import time

from flask import current_app

logger = logging.getLogger(__name__)

APPOINTMENT_CREATED = 'appointment_created'
APPOINTMENT_UPDATED = 'appointment_updated'
APPOINTMENT_DELETED = 'appointment_deleted'
STAFF_AVAILABILITY_CHANGED = 'staff_availability_changed'

EVENT_TYPES = (APPOINTMENT_CREATED, APPOINTMENT_UPDATED, APPOINTMENT_DELETED, STAFF_AVAILABILITY_CHANGED)

WILDCARD = '*'


class SyncEvent:
    def __init__(self, type, staff_id, appointment_id=None, location_id=None, data=None, timestamp=None):
        self.type = type
        self.appointment_id = appointment_id
        self.staff_id = staff_id
        self.location_id = location_id
        self.data = data
        self.timestamp = timestamp if timestamp is not None else time.time()

    def to_dict(self):
        return {
            'type': self.type,
            'appointment_id': self.appointment_id,
            'staff_id': self.staff_id,
            'location_id': self.location_id,
            'data': self.data,
            'timestamp': self.timestamp,
        }

    def __repr__(self):
        return f'<SyncEvent {self.type} staff={self.staff_id} appointment={self.appointment_id}>'


class SyncNotifier:
    """Publish/subscribe hub for appointment and availability changes"""

    def __init__(self):
        self._listeners = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type, handler):
        """Register handler for event_type (or '*'); returns a function that unsubscribes it"""
        with self._lock:
            self._listeners.setdefault(event_type, []).append(handler)

        def unsubscribe():
            with self._lock:
                handlers = self._listeners.get(event_type)
                if handlers and handler in handlers:
                    handlers.remove(handler)
                    if not handlers:
                        del self._listeners[event_type]

        return unsubscribe

    def emit(self, event):
        with self._lock:
            handlers = list(self._listeners.get(event.type, ()))
            handlers += self._listeners.get(WILDCARD, ())

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Error in sync listener for %s", event.type)

    def emit_appointment_created(self, appointment_id, staff_id, location_id, data=None):
        self.emit(SyncEvent(APPOINTMENT_CREATED, staff_id, appointment_id, location_id, data))

    def emit_appointment_updated(self, appointment_id, staff_id, location_id, data=None):
        self.emit(SyncEvent(APPOINTMENT_UPDATED, staff_id, appointment_id, location_id, data))

    def emit_appointment_deleted(self, appointment_id, staff_id, location_id, data=None):
        self.emit(SyncEvent(APPOINTMENT_DELETED, staff_id, appointment_id, location_id, data))

    def emit_staff_availability_changed(self, staff_id, location_id=None, data=None):
        self.emit(SyncEvent(STAFF_AVAILABILITY_CHANGED, staff_id, None, location_id, data))

    def active_listeners(self):
        """Number of listeners per event type"""
        with self._lock:
            return {event_type: len(handlers) for event_type, handlers in self._listeners.items()}

    def clear(self):
        with self._lock:
            self._listeners.clear()


class ChangeTracker:
    """Remembers when each staff member's schedule last changed, for polling clients"""

    def __init__(self):
        self._changes = {}
        self._lock = threading.Lock()

    def record(self, event):
        with self._lock:
            self._changes[event.staff_id] = max(event.timestamp, self._changes.get(event.staff_id, 0))

    def last_changed(self, staff_id):
        with self._lock:
            return self._changes.get(staff_id)

    def changed_since(self, since):
        """Staff ids whose schedule changed after the given timestamp"""
        with self._lock:
            return sorted(staff_id for staff_id, ts in self._changes.items() if ts > since)


def get_notifier():
    """The notifier of the current application"""
    return current_app.extensions['sync_notifier']


def get_change_tracker():
    return current_app.extensions['change_tracker']
