import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-key')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///salonsync.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # The API speaks JSON only, forms are used for validation
    WTF_CSRF_ENABLED = False

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Scheduling
    SLOT_INTERVAL_MINUTES = int(os.environ.get('SLOT_INTERVAL_MINUTES', 30))
    BOOKING_LEAD_MINUTES = int(os.environ.get('BOOKING_LEAD_MINUTES', 60))
    AVAILABILITY_POLL_SECONDS = int(os.environ.get('AVAILABILITY_POLL_SECONDS', 30))
    BUFFER_TIME_ENABLED = _env_bool('BUFFER_TIME_ENABLED', False)
    BOOKING_REFERENCE_PREFIX = os.environ.get('BOOKING_REFERENCE_PREFIX', 'SB')

    AUDIT_LOGS_PER_PAGE = 50


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LOG_LEVEL = 'DEBUG'
    BUFFER_TIME_ENABLED = False
