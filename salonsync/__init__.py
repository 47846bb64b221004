# Import important modules and create app package
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate

from salonsync.config import Config

# Initialize extensions
db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config_class=Config):
    # Initialize app
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Initialize extensions with app
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    # Sync notifier shared by the booking service and the polling endpoints
    from salonsync.scheduling.sync import SyncNotifier, ChangeTracker
    notifier = SyncNotifier()
    tracker = ChangeTracker()
    notifier.subscribe('*', tracker.record)
    notifier.subscribe('*', lambda event: app.logger.debug(f"Sync event: {event.type} staff={event.staff_id}"))
    app.extensions['sync_notifier'] = notifier
    app.extensions['change_tracker'] = tracker

    # Register blueprints
    from salonsync.auth.routes import auth_bp
    from salonsync.appointments.routes import appointments_bp
    from salonsync.staff.routes import staff_bp
    from salonsync.admin.routes import admin_bp
    from salonsync.main.routes import main_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(appointments_bp)
    app.register_blueprint(staff_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(main_bp)

    from salonsync.errors import register_error_handlers
    register_error_handlers(app)

    # Create database tables
    with app.app_context():
        from salonsync import models  # noqa: F401
        db.create_all()
        app.logger.info("Database tables created successfully")

    return app
