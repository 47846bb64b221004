from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from salonsync import db
from salonsync.models.service import Service
from salonsync.models.location import Location

main_bp = Blueprint('main', __name__, url_prefix='/api')


@main_bp.route('/health')
def health():
    """Liveness check including a round trip to the database"""
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        current_app.logger.error(f"Health check failed: {e}")
        db.session.rollback()
        return jsonify({'status': 'error', 'database': 'unavailable'}), 503
    return jsonify({'status': 'ok', 'database': 'ok'})


@main_bp.route('/services')
def services():
    """All services that can currently be booked"""
    services = Service.query.filter_by(is_active=True).order_by(Service.name).all()
    return jsonify({'services': [s.to_dict() for s in services]})


@main_bp.route('/locations')
def locations():
    locations = Location.query.filter_by(is_active=True).order_by(Location.name).all()
    return jsonify({'locations': [loc.to_dict() for loc in locations]})
