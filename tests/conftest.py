"""Shared test fixtures."""
import os
from datetime import date, datetime, timezone
from types import SimpleNamespace
from uuid import UUID

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("CLINIC_UTC_OFFSET_MINUTES", "0")

import httpx
import pytest
from sqlalchemy import update
from sqlalchemy.pool import NullPool
from sqlalchemy.ext.asyncio import create_async_engine

from medslot.core.clock import get_clock
from medslot.db.sql import build_sessionmaker, get_session, init_db
from medslot.main import app as fastapi_app
from medslot.modules.users.models import User

PASSWORD = "Secret123"

# Monday 2025-01-06 08:00 in the clinic's offset.
FIXED_NOW = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)
MONDAY = date(2025, 1, 6)
WEDNESDAY = date(2025, 1, 8)
NEXT_WEDNESDAY = date(2025, 1, 15)


@pytest.fixture
def now():
    """Mutable holder so a test can move the clock."""
    return SimpleNamespace(value=FIXED_NOW)


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'medslot-test.db'}",
        poolclass=NullPool,
    )
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def sessionmaker(engine):
    return build_sessionmaker(engine)


@pytest.fixture
def app(sessionmaker, now):
    async def _session():
        async with sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_session] = _session
    fastapi_app.dependency_overrides[get_clock] = lambda: (lambda: now.value)
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def api(client, sessionmaker):
    return Api(client, sessionmaker)


class Api:
    """Small helper around the HTTP API for building test scenarios."""

    def __init__(self, client: httpx.AsyncClient, sessionmaker):
        self.client = client
        self.sessionmaker = sessionmaker
        self._count = 0

    async def register(self, role: str = "patient", **extra) -> dict:
        self._count += 1
        payload = {
            "email": extra.pop("email", f"{role}{self._count}@clinic-mail.com"),
            "password": PASSWORD,
            "first_name": extra.pop("first_name", role.capitalize()),
            "last_name": extra.pop("last_name", f"No{self._count}"),
            "role": role,
            **extra,
        }
        resp = await self.client.post("/api/auth/register", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def login(self, email: str, password: str = PASSWORD) -> dict:
        resp = await self.client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    async def user(self, role: str = "patient", **extra) -> SimpleNamespace:
        body = await self.register(role, **extra)
        headers = await self.login(body["email"])
        return SimpleNamespace(
            id=body["id"],
            email=body["email"],
            doctor_id=body.get("doctor_id"),
            headers=headers,
        )

    async def admin(self) -> SimpleNamespace:
        body = await self.register("patient")
        async with self.sessionmaker() as session:
            await session.execute(
                update(User).where(User.id == UUID(body["id"])).values(role="admin")
            )
            await session.commit()
        headers = await self.login(body["email"])
        return SimpleNamespace(id=body["id"], email=body["email"], doctor_id=None, headers=headers)

    async def doctor(self, duration: int = 30, rules=None) -> SimpleNamespace:
        doc = await self.user(
            "doctor",
            specialization="Cardiology",
            appointment_duration_minutes=duration,
        )
        if rules is None:
            rules = [{"day_of_week": "Wednesday", "start_time": "09:00", "end_time": "17:00"}]
        resp = await self.client.put(
            "/api/doctor/availability/weekly", json={"rules": rules}, headers=doc.headers
        )
        assert resp.status_code == 200, resp.text
        return doc

    async def slots(self, doctor_id: str, on_date: date) -> list:
        resp = await self.client.get(
            f"/api/doctors/{doctor_id}/available-slots", params={"date": on_date.isoformat()}
        )
        assert resp.status_code == 200, resp.text
        return resp.json()

    async def book(self, patient, doctor_id: str, on_date: date, start: str, **extra):
        return await self.client.post(
            "/api/appointments",
            json={
                "doctor_id": doctor_id,
                "appointment_date": on_date.isoformat(),
                "start_time": start,
                "reason": extra.pop("reason", "Checkup"),
                **extra,
            },
            headers=patient.headers,
        )

    async def update(self, who, appointment_id: str, body: dict):
        return await self.client.patch(
            f"/api/appointments/{appointment_id}", json=body, headers=who.headers
        )
