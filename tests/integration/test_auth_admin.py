"""Registration, login and admin oversight."""
from conftest import PASSWORD, WEDNESDAY


async def test_register_and_me(api):
    body = await api.register("patient", email="Jane.Doe@Clinic-Mail.com")
    assert body["email"] == "jane.doe@clinic-mail.com"
    assert body["role"] == "patient"
    assert body["doctor_id"] is None
    assert "password" not in body and "password_hash" not in body

    headers = await api.login("jane.doe@clinic-mail.com")
    resp = await api.client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["id"] == body["id"]


async def test_doctor_registration_creates_profile(api):
    doctor = await api.user("doctor", specialization="Dermatology")
    assert doctor.doctor_id is not None

    resp = await api.client.get("/api/auth/me", headers=doctor.headers)
    assert resp.json()["doctor_id"] == doctor.doctor_id

    resp = await api.client.get(f"/api/doctors/{doctor.doctor_id}")
    assert resp.json()["appointment_duration_minutes"] == 30
    assert resp.json()["weekly_rules"] == []


async def test_register_rejections(api):
    await api.register("patient", email="taken@clinic-mail.com")
    base = {"password": PASSWORD, "first_name": "A", "last_name": "B"}

    resp = await api.client.post(
        "/api/auth/register", json={**base, "email": "TAKEN@clinic-mail.com"}
    )
    assert resp.status_code == 409

    resp = await api.client.post(
        "/api/auth/register", json={**base, "email": "boss@clinic-mail.com", "role": "admin"}
    )
    assert resp.status_code == 422

    resp = await api.client.post(
        "/api/auth/register", json={**base, "email": "doc@clinic-mail.com", "role": "doctor"}
    )
    assert resp.status_code == 422


async def test_login_failures(api):
    await api.register("patient", email="p@clinic-mail.com")
    resp = await api.client.post(
        "/api/auth/login", json={"email": "p@clinic-mail.com", "password": "Wrong1234"}
    )
    assert resp.status_code == 401
    resp = await api.client.post(
        "/api/auth/login", json={"email": "nobody@clinic-mail.com", "password": PASSWORD}
    )
    assert resp.status_code == 401


async def test_oauth2_form_login_and_refresh(api):
    await api.register("patient", email="form@clinic-mail.com")
    resp = await api.client.post(
        "/api/auth/token", data={"username": "form@clinic-mail.com", "password": PASSWORD}
    )
    assert resp.status_code == 200
    tokens = resp.json()
    assert tokens["token_type"] == "bearer"

    resp = await api.client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200
    access = resp.json()["access_token"]
    resp = await api.client.get("/api/auth/me", headers={"Authorization": f"Bearer {access}"})
    assert resp.status_code == 200

    # An access token is not a refresh token.
    resp = await api.client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert resp.status_code == 401


async def test_admin_routes_require_admin(api):
    patient = await api.user()
    doctor = await api.doctor()
    for who in (patient, doctor):
        assert (await api.client.get("/api/admin/users", headers=who.headers)).status_code == 403
        assert (await api.client.get("/api/admin/stats", headers=who.headers)).status_code == 403


async def test_admin_deactivates_user(api):
    admin = await api.admin()
    patient = await api.user()

    resp = await api.client.put(
        f"/api/admin/users/{patient.id}/status", json={"is_active": False}, headers=admin.headers
    )
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    resp = await api.client.get("/api/auth/me", headers=patient.headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "user_inactive"

    resp = await api.client.post(
        "/api/auth/login", json={"email": patient.email, "password": PASSWORD}
    )
    assert resp.status_code == 403


async def test_admin_promotes_user_to_doctor(api):
    admin = await api.admin()
    patient = await api.user()

    resp = await api.client.put(
        f"/api/admin/users/{patient.id}/role", json={"role": "doctor"}, headers=admin.headers
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "doctor"
    assert resp.json()["doctor_id"] is not None

    resp = await api.client.get("/api/doctors")
    assert resp.json()["total"] == 1


async def test_admin_lists_users_and_stats(api):
    admin = await api.admin()
    doctor = await api.doctor()
    patient = await api.user()
    await api.book(patient, doctor.doctor_id, WEDNESDAY, "09:00")
    appt = (await api.book(patient, doctor.doctor_id, WEDNESDAY, "10:00")).json()
    await api.update(patient, appt["id"], {"action": "cancel"})

    resp = await api.client.get("/api/admin/users", params={"role": "doctor"}, headers=admin.headers)
    assert resp.json()["total"] == 1
    assert resp.json()["items"][0]["id"] == doctor.id

    resp = await api.client.get("/api/admin/appointments", headers=admin.headers)
    assert resp.json()["total"] == 2

    resp = await api.client.get("/api/admin/stats", headers=admin.headers)
    stats = resp.json()
    assert stats["users_by_role"] == {"admin": 1, "doctor": 1, "patient": 1}
    assert stats["doctors"] == 1
    assert stats["appointments_by_status"] == {"scheduled": 1, "cancelled": 1}
    assert stats["appointments_total"] == 2


async def test_health(client):
    resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}
    resp = await client.get("/health/db")
    assert resp.status_code == 200
    assert resp.json()["database"] == "sqlite"


async def test_doctor_registration_enforces_minimum_duration(api):
    resp = await api.client.post(
        "/api/auth/register",
        json={
            "email": "short@clinic-mail.com",
            "password": PASSWORD,
            "first_name": "Short",
            "last_name": "Slots",
            "role": "doctor",
            "specialization": "Cardiology",
            "appointment_duration_minutes": 1,
        },
    )
    assert resp.status_code == 422

    resp = await api.client.get("/api/doctors")
    assert resp.json()["total"] == 0


async def test_demoted_doctor_is_no_longer_bookable(api):
    admin = await api.admin()
    doctor = await api.doctor()
    patient = await api.user()
    appt = (await api.book(patient, doctor.doctor_id, WEDNESDAY, "09:00")).json()

    resp = await api.client.put(
        f"/api/admin/users/{doctor.id}/role", json={"role": "patient"}, headers=admin.headers
    )
    assert resp.status_code == 200

    assert (await api.client.get("/api/doctors")).json()["total"] == 0
    resp = await api.client.get(
        f"/api/doctors/{doctor.doctor_id}/available-slots", params={"date": WEDNESDAY.isoformat()}
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "doctor_not_found"

    resp = await api.book(patient, doctor.doctor_id, WEDNESDAY, "10:00")
    assert resp.status_code == 404
    assert resp.json()["error"] == "doctor_not_found"

    resp = await api.update(
        patient,
        appt["id"],
        {"action": "reschedule", "appointment_date": WEDNESDAY.isoformat(), "start_time": "10:00"},
    )
    assert resp.status_code == 404

    # The existing booking can still be cancelled.
    assert (await api.update(patient, appt["id"], {"action": "cancel"})).status_code == 200


async def test_deactivated_doctor_is_hidden_until_reactivated(api):
    admin = await api.admin()
    doctor = await api.doctor()
    status_url = f"/api/admin/users/{doctor.id}/status"

    await api.client.put(status_url, json={"is_active": False}, headers=admin.headers)
    assert (await api.client.get("/api/doctors")).json()["total"] == 0
    resp = await api.client.get(
        f"/api/doctors/{doctor.doctor_id}/available-slots", params={"date": WEDNESDAY.isoformat()}
    )
    assert resp.status_code == 404

    await api.client.put(status_url, json={"is_active": True}, headers=admin.headers)
    assert (await api.client.get("/api/doctors")).json()["total"] == 1
    assert len(await api.slots(doctor.doctor_id, WEDNESDAY)) == 16
