from flask import current_app

from salonsync import db
from salonsync.models.availability import (
    BufferRule, SCOPE_GLOBAL, SCOPE_LOCATION, SCOPE_SERVICE, SCOPE_STAFF
)


def calculate_buffer_times(staff_id=None, service_id=None, location_id=None):
    """
    Buffer minutes (before, after) to keep free around an appointment.

    The largest value among the global rule and the rules matching the
    location, service and staff member wins. Returns (0, 0) when buffer
    enforcement is switched off.
    """
    if not current_app.config.get('BUFFER_TIME_ENABLED'):
        return 0, 0

    scopes = [(SCOPE_GLOBAL, None)]
    if location_id is not None:
        scopes.append((SCOPE_LOCATION, location_id))
    if service_id is not None:
        scopes.append((SCOPE_SERVICE, service_id))
    if staff_id is not None:
        scopes.append((SCOPE_STAFF, staff_id))

    before_minutes = 0
    after_minutes = 0
    for rule in BufferRule.query.all():
        if (rule.scope, rule.scope_id) in scopes:
            before_minutes = max(before_minutes, rule.before_minutes)
            after_minutes = max(after_minutes, rule.after_minutes)

    return before_minutes, after_minutes


def set_buffer_rule(scope, before_minutes, after_minutes, scope_id=None):
    """Create or update the buffer rule for a scope; caller commits"""
    if scope == SCOPE_GLOBAL:
        scope_id = None
    rule = BufferRule.query.filter_by(scope=scope, scope_id=scope_id).first()
    if rule is None:
        rule = BufferRule(scope=scope, scope_id=scope_id)
        db.session.add(rule)
    rule.before_minutes = before_minutes
    rule.after_minutes = after_minutes
    return rule
