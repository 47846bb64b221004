import pytest
from datetime import date, datetime, time, timedelta

from salonsync import db
from salonsync.models.user import User, STAFF_ON_LEAVE
from salonsync.models.service import Service
from salonsync.models.location import Location
from salonsync.models.availability import BusinessHours, BlockedTime, SCOPE_GLOBAL
from salonsync.scheduling.blocks import add_holiday
from salonsync.scheduling.buffers import set_buffer_rule
from salonsync.scheduling.slots import get_available_slots

DAY = date(2030, 3, 4)
NOW = datetime(2030, 3, 1, 8, 0)


def at(hour, minute=0, day=DAY):
    return datetime.combine(day, time(hour, minute))


@pytest.fixture
def staff_and_service(app_ctx, salon):
    return db.session.get(User, salon.alice_id), db.session.get(Service, salon.haircut_id)


def starts(slot_list):
    return [start for start, _ in slot_list.slots]


def test_full_day_of_slots(staff_and_service):
    alice, haircut = staff_and_service
    slots = get_available_slots(alice, haircut, DAY, now=NOW)

    # 60 minute service, 30 minute grid, 9:00 to 17:00
    assert starts(slots)[0] == at(9)
    assert starts(slots)[-1] == at(16)
    assert len(slots.slots) == 15
    assert slots.message is None


def test_booked_time_is_skipped(staff_and_service, salon, make_appointment):
    alice, haircut = staff_and_service
    make_appointment(salon.client_id, salon.alice_id, salon.haircut_id, salon.downtown_id, at(10))

    available = starts(get_available_slots(alice, haircut, DAY, now=NOW))
    assert at(9) in available
    assert at(9, 30) not in available
    assert at(10) not in available
    assert at(10, 30) not in available
    assert at(11) in available


def test_blocked_time_is_skipped(staff_and_service):
    alice, haircut = staff_and_service
    db.session.add(BlockedTime(alice.id, at(12), at(13), reason="Lunch"))
    db.session.commit()

    available = starts(get_available_slots(alice, haircut, DAY, now=NOW))
    assert at(11, 30) not in available
    assert at(12, 30) not in available
    assert at(11) in available
    assert at(13) in available


def test_past_date(staff_and_service):
    alice, haircut = staff_and_service
    slots = get_available_slots(alice, haircut, DAY - timedelta(days=1), now=at(8))
    assert slots.slots == []
    assert slots.message == "Please select a future date"


def test_closed_day(staff_and_service):
    alice, haircut = staff_and_service
    hours = BusinessHours.query.filter_by(day_of_week=DAY.weekday()).first()
    hours.is_closed = True
    db.session.commit()

    slots = get_available_slots(alice, haircut, DAY, now=NOW)
    assert slots.slots == []
    assert slots.message == "We're closed on this day"


def test_holiday(staff_and_service):
    alice, haircut = staff_and_service
    db.session.add(BlockedTime(alice.id, at(0), at(0, day=DAY + timedelta(days=1)),
                               reason="Spring Break", is_holiday=True))
    db.session.commit()

    slots = get_available_slots(alice, haircut, DAY, now=NOW)
    assert slots.slots == []
    assert slots.message == "Salon closed: Spring Break"


def test_neighbouring_holidays_do_not_close_the_day_with_buffers(app_ctx, staff_and_service):
    alice, haircut = staff_and_service
    app_ctx.config["BUFFER_TIME_ENABLED"] = True
    set_buffer_rule(SCOPE_GLOBAL, 10, 10)
    db.session.commit()
    add_holiday(DAY - timedelta(days=1), "Day before")
    add_holiday(DAY + timedelta(days=1), "Day after")

    slots = get_available_slots(alice, haircut, DAY, now=NOW)
    assert slots.message is None
    assert starts(slots)[0] == at(9)
    assert len(slots.slots) == 15


def test_staff_on_leave(staff_and_service):
    alice, haircut = staff_and_service
    alice.staff_status = STAFF_ON_LEAVE
    db.session.commit()

    slots = get_available_slots(alice, haircut, DAY, now=NOW)
    assert slots.slots == []
    assert slots.message == "Staff member is on leave"


def test_location_must_be_served(staff_and_service, salon):
    alice, haircut = staff_and_service
    uptown = db.session.get(Location, salon.uptown_id)

    slots = get_available_slots(alice, haircut, DAY, location=uptown, now=NOW)
    assert slots.message == "Staff member does not work at Uptown"


def test_today_respects_lead_time(staff_and_service):
    alice, haircut = staff_and_service
    # 11:10 now, next grid point 11:30, plus 60 minutes lead time
    slots = get_available_slots(alice, haircut, DAY, now=at(11, 10))
    assert starts(slots)[0] == at(12, 30)


def test_to_dict(staff_and_service):
    alice, haircut = staff_and_service
    data = get_available_slots(alice, haircut, DAY, now=NOW).to_dict()

    assert data["date"] == "2030-03-04"
    assert data["slots"][0] == {
        "start_time": "2030-03-04T09:00:00",
        "end_time": "2030-03-04T10:00:00",
        "formatted_time": "9:00 AM",
    }
