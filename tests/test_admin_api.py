from datetime import datetime, time, timedelta


def test_admin_only(client, salon, login):
    login("carol@mailbox.org")
    assert client.get("/api/admin/stats").status_code == 403
    assert client.post("/api/admin/locations", json={"name": "Midtown"}).status_code == 403


def test_create_staff_with_locations(client, salon, login):
    login("admin@salonsync.io")

    resp = client.post("/api/admin/staff", json={
        "email": "erin@salonsync.io",
        "first_name": "Erin",
        "last_name": "Walsh",
        "password": "longenough",
        "home_service": True,
        "location_ids": [salon.downtown_id, salon.uptown_id],
    })
    assert resp.status_code == 201
    staff = resp.get_json()["staff"]
    assert staff["role"] == "staff"
    assert staff["status"] == "active"
    assert staff["home_service"] is True
    assert sorted(staff["location_ids"]) == sorted([salon.downtown_id, salon.uptown_id])

    resp = client.post("/api/admin/staff", json={
        "email": "erin@salonsync.io",
        "first_name": "Erin",
        "last_name": "Walsh",
        "password": "longenough",
    })
    assert resp.status_code == 400
    assert "email" in resp.get_json()["fields"]


def test_update_staff_notifies_availability(client, salon, login, app):
    login("admin@salonsync.io")

    resp = client.patch(f"/api/admin/staff/{salon.bob_id}", json={
        "status": "on_leave",
        "location_ids": [salon.downtown_id],
    })
    assert resp.status_code == 200
    staff = resp.get_json()["staff"]
    assert staff["status"] == "on_leave"
    assert staff["location_ids"] == [salon.downtown_id]
    # Untouched fields stay as they were
    assert staff["home_service"] is False
    assert staff["first_name"] == "Bob"

    assert app.extensions["change_tracker"].last_changed(salon.bob_id) is not None

    resp = client.patch(f"/api/admin/staff/{salon.bob_id}", json={"location_ids": [999]})
    assert resp.status_code == 400


def test_create_location_and_service(client, salon, login):
    login("admin@salonsync.io")

    resp = client.post("/api/admin/locations", json={"name": "Midtown", "address": "5 Cross St"})
    assert resp.status_code == 201
    assert resp.get_json()["location"]["is_home_service"] is False

    resp = client.post("/api/admin/services", json={
        "name": "Beard Trim", "price": 20, "duration_minutes": 30,
    })
    assert resp.status_code == 201
    service = resp.get_json()["service"]
    assert service["price"] == 20.0
    assert service["is_active"] is True

    resp = client.post("/api/admin/services", json={"name": "Too Quick", "price": 5, "duration_minutes": 2})
    assert resp.status_code == 400

    names = [s["name"] for s in client.get("/api/services").get_json()["services"]]
    assert "Beard Trim" in names
    assert "Perm" not in names


def test_business_hours(client, salon, login):
    login("admin@salonsync.io")

    hours = client.get("/api/admin/business-hours").get_json()["business_hours"]
    assert len(hours) == 7

    resp = client.put("/api/admin/business-hours", json={"hours": [
        {"day_of_week": 0, "is_closed": True},
        {"day_of_week": 1, "open_time": "10:00", "close_time": "18:30"},
    ]})
    assert resp.status_code == 200
    by_day = {h["day_of_week"]: h for h in resp.get_json()["business_hours"]}
    assert by_day[0]["is_closed"] is True
    assert by_day[1]["open_time"] == "10:00"
    assert by_day[1]["close_time"] == "18:30"

    resp = client.put("/api/admin/business-hours", json={"hours": [
        {"day_of_week": 2, "open_time": "18:00", "close_time": "09:00"},
    ]})
    assert resp.status_code == 400

    resp = client.put("/api/admin/business-hours", json={"hours": [{"day_of_week": 9}]})
    assert resp.status_code == 400


def test_default_business_hours_are_seeded(client, app, login):
    from salonsync import db
    from salonsync.models.user import User, ROLE_ADMIN

    with app.app_context():
        db.session.add(User(email="root@salonsync.io", first_name="Root", last_name="User",
                            password="password123", role=ROLE_ADMIN))
        db.session.commit()
    login("root@salonsync.io")

    hours = client.get("/api/admin/business-hours").get_json()["business_hours"]
    closed = [h["day_name"] for h in hours if h["is_closed"]]
    assert closed == ["Saturday", "Sunday"]
    assert hours[0]["open_time"] == "09:00"
    assert hours[0]["close_time"] == "17:00"


def test_holidays(client, salon, login, next_week):
    login("admin@salonsync.io")

    resp = client.post("/api/admin/holidays", json={
        "date": next_week.isoformat(), "description": "Staff Party",
    })
    assert resp.status_code == 201
    assert sorted(resp.get_json()["affected_staff_ids"]) == sorted([salon.alice_id, salon.bob_id])

    holidays = client.get("/api/admin/holidays").get_json()["holidays"]
    assert holidays == [{"date": next_week.isoformat(), "description": "Staff Party"}]

    resp = client.post("/api/admin/holidays", json={"date": "2001-01-01", "description": "Too late"})
    assert resp.status_code == 400


def test_buffer_rules(client, salon, login):
    login("admin@salonsync.io")

    resp = client.put("/api/admin/buffer-rules", json={"scope": "global", "before_minutes": 0, "after_minutes": 15})
    assert resp.status_code == 200

    resp = client.put("/api/admin/buffer-rules", json={
        "scope": "staff", "scope_id": salon.alice_id, "before_minutes": 10, "after_minutes": 10,
    })
    assert resp.status_code == 200

    resp = client.put("/api/admin/buffer-rules", json={"scope": "global", "before_minutes": 5, "after_minutes": 5})
    assert resp.status_code == 200

    data = client.get("/api/admin/buffer-rules").get_json()
    assert data["enabled"] is False
    rules = {(r["scope"], r["scope_id"]): r for r in data["buffer_rules"]}
    assert len(rules) == 2
    assert rules[("global", None)]["after_minutes"] == 5

    resp = client.put("/api/admin/buffer-rules", json={"scope": "service", "before_minutes": 5, "after_minutes": 5})
    assert resp.status_code == 400


def test_stats(client, salon, login, make_appointment):
    start = datetime(2030, 5, 6, 10)
    make_appointment(salon.client_id, salon.alice_id, salon.haircut_id, salon.downtown_id, start,
                     status="completed")
    make_appointment(salon.client_id, salon.alice_id, salon.colour_id, salon.downtown_id,
                     start + timedelta(hours=2), minutes=90, status="completed")
    make_appointment(salon.client_id, salon.bob_id, salon.haircut_id, salon.uptown_id, start,
                     status="cancelled")
    make_appointment(salon.client_id, salon.bob_id, salon.haircut_id, salon.uptown_id,
                     start + timedelta(days=1), status="pending")
    login("admin@salonsync.io")

    stats = client.get("/api/admin/stats").get_json()["stats"]
    assert stats["total"] == 4
    assert stats["completed"] == 2
    assert stats["cancelled"] == 1
    assert stats["pending"] == 1
    assert stats["confirmed"] == 0
    assert stats["no_show"] == 0
    assert stats["revenue"] == 125.0

    stats = client.get("/api/admin/stats?date_from=2030-05-07&date_to=2030-05-07").get_json()["stats"]
    assert stats["total"] == 1
    assert stats["revenue"] == 0.0


def test_audit_logs(client, salon, login, app):
    login("admin@salonsync.io")
    client.post("/api/admin/locations", json={"name": "Midtown"})

    app.config["AUDIT_LOGS_PER_PAGE"] = 1
    resp = client.get("/api/admin/audit-logs")
    data = resp.get_json()
    assert resp.status_code == 200
    assert data["audit_logs"][0]["action"] == "create"
    assert data["audit_logs"][0]["entity_type"] == "location"
    assert data["audit_logs"][0]["details"]["name"] == "Midtown"
    assert data["total"] == 2
    assert data["pages"] == 2

    resp = client.get("/api/admin/audit-logs?entity_type=login&page=1")
    assert resp.get_json()["audit_logs"][0]["action"] == "perform"
