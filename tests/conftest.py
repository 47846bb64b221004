import pytest
from flask import has_app_context
from datetime import date, time, timedelta
from decimal import Decimal
from types import SimpleNamespace

from salonsync import create_app, db as _db
from salonsync.config import TestingConfig
from salonsync.models.user import User, ROLE_STAFF, ROLE_ADMIN
from salonsync.models.location import Location
from salonsync.models.service import Service
from salonsync.models.appointment import Appointment, STATUS_CONFIRMED
from salonsync.models.availability import BusinessHours, DAY_NAMES

PASSWORD = "password123"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def salon(app):
    """
    A small salon: two locations plus home service, two staff members,
    one client of each kind and an admin. Open 9 to 5 every day.
    """
    with app.app_context():
        downtown = Location(name="Downtown", address="1 Main St")
        uptown = Location(name="Uptown", address="99 High St")
        home = Location(name="Home Service", is_home_service=True)
        _db.session.add_all([downtown, uptown, home])

        alice = User(email="alice@salonsync.io", first_name="Alice", last_name="Moore",
                     password=PASSWORD, role=ROLE_STAFF, home_service=True)
        alice.locations = [downtown]
        bob = User(email="bob@salonsync.io", first_name="Bob", last_name="Ng",
                   password=PASSWORD, role=ROLE_STAFF)
        bob.locations = [uptown]
        carol = User(email="carol@mailbox.org", first_name="Carol", last_name="Diaz", password=PASSWORD)
        dave = User(email="dave@mailbox.org", first_name="Dave", last_name="Okafor", password=PASSWORD)
        admin = User(email="admin@salonsync.io", first_name="Ada", last_name="Admin",
                     password=PASSWORD, role=ROLE_ADMIN)
        _db.session.add_all([alice, bob, carol, dave, admin])

        haircut = Service(name="Haircut", price=Decimal("45.00"), duration_minutes=60)
        colour = Service(name="Colour", price=Decimal("80.00"), duration_minutes=90)
        retired = Service(name="Perm", price=Decimal("70.00"), duration_minutes=120, is_active=False)
        _db.session.add_all([haircut, colour, retired])

        for day in DAY_NAMES:
            _db.session.add(BusinessHours(day_of_week=day, open_time=time(9, 0), close_time=time(17, 0)))

        _db.session.commit()

        return SimpleNamespace(
            downtown_id=downtown.id,
            uptown_id=uptown.id,
            home_id=home.id,
            alice_id=alice.id,
            bob_id=bob.id,
            client_id=carol.id,
            other_client_id=dave.id,
            admin_id=admin.id,
            haircut_id=haircut.id,
            colour_id=colour.id,
            retired_service_id=retired.id,
        )


@pytest.fixture
def make_appointment(app):
    """Insert an appointment directly, bypassing the availability check"""
    def _insert(client_id, staff_id, service_id, location_id, start_time, minutes, status):
        appointment = Appointment(
            client_id=client_id,
            staff_id=staff_id,
            service_id=service_id,
            location_id=location_id,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=minutes),
            status=status
        )
        _db.session.add(appointment)
        _db.session.commit()
        return appointment.id

    def _make(client_id, staff_id, service_id, location_id, start_time, minutes=60, status=STATUS_CONFIRMED):
        if has_app_context():
            return _insert(client_id, staff_id, service_id, location_id, start_time, minutes, status)
        with app.app_context():
            return _insert(client_id, staff_id, service_id, location_id, start_time, minutes, status)
    return _make


@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD):
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp
    return _login


@pytest.fixture
def next_week():
    """A date far enough ahead to clear the booking lead time"""
    return date.today() + timedelta(days=7)