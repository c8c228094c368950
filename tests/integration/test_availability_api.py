"""Weekly template and date override endpoints."""
from conftest import MONDAY, WEDNESDAY

WEEKLY = "/api/doctor/availability/weekly"
OVERRIDES = "/api/doctor/availability/overrides"


async def test_weekly_template_full_replace_keeps_order(api):
    doctor = await api.doctor()
    rules = [
        {"day_of_week": "Friday", "start_time": "13:00", "end_time": "18:00"},
        {"day_of_week": "Monday", "start_time": "08:00", "end_time": "12:00"},
        {"day_of_week": "Monday", "start_time": "14:00", "end_time": "16:00"},
    ]
    resp = await api.client.put(WEEKLY, json={"rules": rules}, headers=doctor.headers)
    assert resp.status_code == 200
    assert resp.json() == rules

    resp = await api.client.get(f"/api/doctors/{doctor.doctor_id}/availability/weekly")
    assert resp.status_code == 200
    assert resp.json() == rules

    # Wednesday rule from the fixture is gone; first Monday rule wins.
    assert await api.slots(doctor.doctor_id, WEDNESDAY) == []
    monday_slots = await api.slots(doctor.doctor_id, MONDAY.replace(day=13))
    assert monday_slots[0] == "08:00" and monday_slots[-1] == "11:30"


async def test_weekly_template_validation(api):
    doctor = await api.doctor()
    bad_rules = [
        {"day_of_week": "Wednesday", "start_time": "17:00", "end_time": "09:00"},
        {"day_of_week": "Wednesday", "start_time": "09:00", "end_time": "09:00"},
        {"day_of_week": "Wednesday", "start_time": "9:00", "end_time": "17:00"},
        {"day_of_week": "Someday", "start_time": "09:00", "end_time": "17:00"},
    ]
    for rule in bad_rules:
        resp = await api.client.put(WEEKLY, json={"rules": [rule]}, headers=doctor.headers)
        assert resp.status_code == 422, rule

    # Nothing was replaced.
    assert len(await api.slots(doctor.doctor_id, WEDNESDAY)) == 16


async def test_only_doctors_edit_their_template(api):
    patient = await api.user()
    resp = await api.client.put(WEEKLY, json={"rules": []}, headers=patient.headers)
    assert resp.status_code == 403


async def test_admin_sets_any_doctors_template(api):
    doctor = await api.doctor()
    admin = await api.admin()
    rules = [{"day_of_week": "Wednesday", "start_time": "10:00", "end_time": "11:00"}]

    resp = await api.client.put(
        f"/api/admin/doctors/{doctor.doctor_id}/availability/weekly",
        json={"rules": rules},
        headers=admin.headers,
    )
    assert resp.status_code == 200
    assert await api.slots(doctor.doctor_id, WEDNESDAY) == ["10:00", "10:30"]


async def test_override_upsert_list_and_delete(api):
    doctor = await api.doctor()

    resp = await api.client.put(
        OVERRIDES,
        json={"date": WEDNESDAY.isoformat(), "is_working": True, "start_time": "13:00", "end_time": "14:00"},
        headers=doctor.headers,
    )
    assert resp.status_code == 200
    assert await api.slots(doctor.doctor_id, WEDNESDAY) == ["13:00", "13:30"]

    # Same date again replaces the previous override.
    resp = await api.client.put(
        OVERRIDES,
        json={"date": WEDNESDAY.isoformat(), "is_working": False, "start_time": "13:00", "end_time": "14:00"},
        headers=doctor.headers,
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "date": WEDNESDAY.isoformat(),
        "is_working": False,
        "start_time": None,
        "end_time": None,
    }

    resp = await api.client.get(OVERRIDES, headers=doctor.headers)
    assert len(resp.json()) == 1

    resp = await api.client.delete(f"{OVERRIDES}/{WEDNESDAY.isoformat()}", headers=doctor.headers)
    assert resp.status_code == 204
    assert len(await api.slots(doctor.doctor_id, WEDNESDAY)) == 16

    resp = await api.client.delete(f"{OVERRIDES}/{WEDNESDAY.isoformat()}", headers=doctor.headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "override_not_found"


async def test_override_validation(api):
    doctor = await api.doctor()
    for body in (
        {"date": WEDNESDAY.isoformat(), "is_working": True},
        {"date": WEDNESDAY.isoformat(), "is_working": True, "start_time": "15:00", "end_time": "14:00"},
        {"date": WEDNESDAY.isoformat(), "is_working": True, "start_time": "15:00", "end_time": "25:00"},
    ):
        resp = await api.client.put(OVERRIDES, json=body, headers=doctor.headers)
        assert resp.status_code == 422, body


async def test_past_overrides_hidden_unless_requested(api):
    doctor = await api.doctor()
    for day in ("2025-01-02", "2025-01-06", "2025-01-08"):
        resp = await api.client.put(
            OVERRIDES, json={"date": day, "is_working": False}, headers=doctor.headers
        )
        assert resp.status_code == 200

    resp = await api.client.get(OVERRIDES, headers=doctor.headers)
    assert [o["date"] for o in resp.json()] == ["2025-01-06", "2025-01-08"]

    resp = await api.client.get(OVERRIDES, params={"include_past": "true"}, headers=doctor.headers)
    assert [o["date"] for o in resp.json()] == ["2025-01-02", "2025-01-06", "2025-01-08"]


async def test_public_doctor_listing(api):
    doctor = await api.doctor(duration=20)

    resp = await api.client.get("/api/doctors")
    assert resp.status_code == 200
    assert resp.json()["total"] == 1
    item = resp.json()["items"][0]
    assert item["id"] == doctor.doctor_id
    assert item["specialization"] == "Cardiology"
    assert item["appointment_duration_minutes"] == 20

    resp = await api.client.get(f"/api/doctors/{doctor.doctor_id}")
    assert resp.json()["weekly_rules"] == [
        {"day_of_week": "Wednesday", "start_time": "09:00", "end_time": "17:00"}
    ]


async def test_profile_duration_has_a_minimum(api):
    doctor = await api.doctor()
    resp = await api.client.patch(
        "/api/doctor/profile", json={"appointment_duration_minutes": 1}, headers=doctor.headers
    )
    assert resp.status_code == 422
    resp = await api.client.patch("/api/doctor/profile", json={}, headers=doctor.headers)
    assert resp.status_code == 422


async def test_admin_manages_a_doctors_profile(api):
    doctor = await api.doctor()
    admin = await api.admin()
    url = f"/api/admin/doctors/{doctor.doctor_id}"

    resp = await api.client.get(url, headers=admin.headers)
    assert resp.status_code == 200
    assert resp.json()["specialization"] == "Cardiology"

    resp = await api.client.put(
        url,
        json={"specialization": "Neurology", "appointment_duration_minutes": 60},
        headers=admin.headers,
    )
    assert resp.status_code == 200
    assert resp.json()["specialization"] == "Neurology"
    assert len(await api.slots(doctor.doctor_id, WEDNESDAY)) == 8

    resp = await api.client.put(
        url, json={"appointment_duration_minutes": 1}, headers=admin.headers
    )
    assert resp.status_code == 422

    resp = await api.client.put(url, json={"specialization": "X"}, headers=doctor.headers)
    assert resp.status_code == 403


async def test_admin_manages_a_doctors_overrides(api):
    doctor = await api.doctor()
    admin = await api.admin()
    url = f"/api/admin/doctors/{doctor.doctor_id}/availability/overrides"

    resp = await api.client.put(
        url, json={"date": WEDNESDAY.isoformat(), "is_working": False}, headers=admin.headers
    )
    assert resp.status_code == 200
    assert await api.slots(doctor.doctor_id, WEDNESDAY) == []

    resp = await api.client.get(url, headers=admin.headers)
    assert [o["date"] for o in resp.json()] == [WEDNESDAY.isoformat()]
    resp = await api.client.get(OVERRIDES, headers=doctor.headers)
    assert [o["date"] for o in resp.json()] == [WEDNESDAY.isoformat()]

    resp = await api.client.delete(f"{url}/{WEDNESDAY.isoformat()}", headers=admin.headers)
    assert resp.status_code == 204
    assert len(await api.slots(doctor.doctor_id, WEDNESDAY)) == 16

    resp = await api.client.get(url, headers=doctor.headers)
    assert resp.status_code == 403
