# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the HTTP API.

Requests go through the ASGI app in-process; the database dependency is
overridden with the test session so fixtures and requests share data.
"""

from uuid import uuid4

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_app_settings, get_db
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config.settings import Settings

pytestmark = pytest.mark.integration

MON, TUE, WED, THU, FRI = 2, 3, 4, 5, 6


@pytest.fixture
def app(db, registration_settings) -> FastAPI:
    """Create the app with test overrides."""
    application = FastAPI()
    application.include_router(health.router)
    application.include_router(v1_router)

    async def override_db():
        yield db

    application.dependency_overrides[get_db] = override_db
    application.dependency_overrides[get_app_settings] = lambda: Settings(
        registration=registration_settings
    )
    return application


@pytest.fixture
async def client(app):
    """Create an HTTP client bound to the app."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as http_client:
        yield http_client


def headers(user) -> dict[str, str]:
    return {"X-Actor-Id": user.id, "X-Actor-Role": user.role}


def section_payload(seed, subject, class_code, slots, teacher=None) -> dict:
    return {
        "term_id": seed.term.id,
        "subject_id": subject.id,
        "class_code": class_code,
        "teacher_id": (teacher or seed.teacher).id,
        "max_students": 30,
        "slots": [
            {"weekday": weekday, "period": period, "classroom_id": room.id}
            for weekday, period, room in slots
        ],
    }


class TestAuthentication:
    """Tests for actor header handling."""

    async def test_missing_headers(self, client, seed):
        """Test requests without actor headers are rejected."""
        response = await client.get("/api/v1/terms")

        assert response.status_code == 401

    async def test_invalid_actor_id(self, client, seed):
        """Test a malformed actor id is rejected."""
        response = await client.get(
            "/api/v1/terms",
            headers={"X-Actor-Id": "not-a-uuid", "X-Actor-Role": "student"},
        )

        assert response.status_code == 401

    async def test_system_role_not_accepted(self, client, seed):
        """Test the internal role cannot be claimed over HTTP."""
        response = await client.get(
            "/api/v1/terms",
            headers={"X-Actor-Id": str(uuid4()), "X-Actor-Role": "system"},
        )

        assert response.status_code == 401

    async def test_admin_only_route(self, client, seed):
        """Test non-admins cannot create sections."""
        response = await client.post(
            "/api/v1/sections",
            json=section_payload(seed, seed.math, "S01", [(MON, 1, seed.room_a)]),
            headers=headers(seed.teacher),
        )

        assert response.status_code == 403


class TestTermRoutes:
    """Tests for term endpoints."""

    async def test_current_term(self, client, seed):
        """Test the current term is returned with an open window."""
        response = await client.get("/api/v1/terms/current", headers=headers(seed.student))

        assert response.status_code == 200
        body = response.json()
        assert body["code"] == "2025S"
        assert body["is_registration_open"] is True

    async def test_unknown_term(self, client, seed):
        """Test an unknown term maps to 404."""
        response = await client.get(f"/api/v1/terms/{uuid4()}", headers=headers(seed.admin))

        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "NOT_FOUND"


class TestSectionRoutes:
    """Tests for section endpoints."""

    async def test_create_and_conflict(self, client, seed):
        """Test a second section in the same room and slot is refused."""
        created = await client.post(
            "/api/v1/sections",
            json=section_payload(seed, seed.math, "S01", [(MON, 1, seed.room_a)]),
            headers=headers(seed.admin),
        )

        assert created.status_code == 201
        assert created.json()["is_active"] is True
        assert created.json()["available_seats"] == 30

        clash = await client.post(
            "/api/v1/sections",
            json=section_payload(
                seed, seed.physics, "S02", [(MON, 1, seed.room_a)], teacher=seed.other_teacher
            ),
            headers=headers(seed.admin),
        )

        assert clash.status_code == 409
        detail = clash.json()["detail"]
        assert detail["kind"] == "CONFLICT_CLASSROOM"
        assert detail["conflicts"][0]["section_id"] == created.json()["id"]
        assert detail["conflicts"][0]["period"] == 1

    async def test_schedule_expansion(self, client, seed, make_section):
        """Test the expanded schedule lists every Monday of the term."""
        section = await make_section(seed.math, [(MON, 1, seed.room_a)])

        response = await client.get(
            f"/api/v1/sections/{section.id}/schedule", headers=headers(seed.student)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 17
        assert body["occurrences"][0]["date"] == "2025-01-06"
        assert body["occurrences"][0]["start_time"] == "07:00:00"

    async def test_sync_lifecycle(self, client, seed):
        """Test the lifecycle sweep runs for the current term."""
        response = await client.post(
            "/api/v1/sections/sync-lifecycle", headers=headers(seed.admin)
        )

        assert response.status_code == 200
        assert response.json() == {
            "term_id": seed.term.id,
            "changed_count": 0,
            "cancelled_registrations": 0,
        }


class TestRegistrationRoutes:
    """Tests for registration endpoints."""

    async def test_register_approve_drop(self, client, seed, make_section):
        """Test the main path of a registration over HTTP."""
        section = await make_section(seed.math, [(MON, 1, seed.room_a)])

        created = await client.post(
            "/api/v1/registrations",
            json={"section_id": str(section.id), "term_id": seed.term.id},
            headers=headers(seed.student),
        )

        assert created.status_code == 201
        registration = created.json()
        assert registration["status"] == "pending"
        assert registration["student_id"] == seed.student.id
        assert registration["credits"] == 4

        approved = await client.put(
            f"/api/v1/registrations/{registration['id']}/approve",
            headers=headers(seed.admin),
        )

        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"

        dropped = await client.put(
            f"/api/v1/registrations/{registration['id']}/drop",
            headers=headers(seed.student),
        )

        assert dropped.status_code == 200
        assert dropped.json()["status"] == "dropped"

    async def test_credit_limit(self, client, seed, make_section):
        """Test exceeding the credit ceiling maps to 422."""
        subjects = [
            (seed.math, MON),
            (seed.physics, TUE),
            (seed.chemistry, WED),
            (seed.biology, THU),
        ]
        for subject, weekday in subjects:
            section = await make_section(subject, [(weekday, 1, seed.room_a)])
            response = await client.post(
                "/api/v1/registrations",
                json={"section_id": str(section.id), "term_id": seed.term.id},
                headers=headers(seed.student),
            )
            assert response.status_code == 201

        art = await make_section(seed.art, [(FRI, 1, seed.room_a)])
        response = await client.post(
            "/api/v1/registrations",
            json={"section_id": str(art.id), "term_id": seed.term.id},
            headers=headers(seed.student),
        )

        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "CREDIT_LIMIT_EXCEEDED"

    async def test_unknown_registration(self, client, seed):
        """Test an unknown registration maps to 404."""
        response = await client.get(
            f"/api/v1/registrations/{uuid4()}", headers=headers(seed.admin)
        )

        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "NOT_FOUND"


class TestHealth:
    """Tests for health endpoints."""

    async def test_health_responds(self, client):
        """Test the liveness endpoint always answers."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert "status" in response.json()
