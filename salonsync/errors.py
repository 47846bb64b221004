from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError


class SchedulingError(Exception):
    """Base class for booking and availability errors"""
    status_code = 400

    def __init__(self, message, payload=None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_dict(self):
        result = dict(self.payload)
        result['error'] = self.message
        return result


class ResourceNotFound(SchedulingError):
    status_code = 404


class SlotUnavailableError(SchedulingError):
    """Raised when a requested time slot conflicts with existing bookings"""
    status_code = 409

    def __init__(self, result):
        super().__init__(result.reason or 'This time slot is not available', payload={
            'availability': result.to_dict()
        })
        self.result = result


class InvalidStatusTransition(SchedulingError):
    def __init__(self, current, requested):
        super().__init__(
            f"Cannot change appointment status from '{current}' to '{requested}'",
            payload={'current_status': current, 'requested_status': requested}
        )


def form_error_response(form):
    """400 response listing the field errors of a failed form"""
    return jsonify({'error': 'Invalid input', 'fields': form.errors}), 400


def register_error_handlers(app):
    @app.errorhandler(SchedulingError)
    def handle_scheduling_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        current_app.logger.exception("Database error", exc_info=error)
        from salonsync import db
        db.session.rollback()
        return jsonify({'error': 'Database error'}), 500
