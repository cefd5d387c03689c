"""End-to-end tests for the HTTP API over SQLite and a fake provider."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from backend.app.api.deps import get_generation_service
from backend.app.db.models import GenerationLog, Plan, Profile
from backend.app.models.common import GenerationStatus

NOTE_PAYLOAD = {
    "destination": "Kyoto",
    "start_date": "2025-10-01",
    "end_date": "2025-10-04",
    "total_budget": 1200,
    "additional_notes": "Temples and tea houses",
}


def create_note(client: TestClient, headers: dict, **overrides) -> dict:
    response = client.post("/notes", json={**NOTE_PAYLOAD, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.integration
class TestHealthAndHeaders:
    """Infrastructure endpoints and response headers."""

    def test_healthz(self, client):
        """The database check reports ok."""
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "checks": {"db": "ok"}}

    def test_security_headers(self, client):
        """Every response carries the security headers."""
        response = client.get("/healthz")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "frame-ancestors 'none'" in response.headers["Content-Security-Policy"]
        # Local UI origin: no HSTS
        assert "Strict-Transport-Security" not in response.headers


@pytest.mark.integration
class TestAuthentication:
    """Caller identity resolution and session cookies."""

    def test_missing_token(self, client):
        """Protected endpoints reject anonymous callers."""
        response = client.get("/notes")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_invalid_token(self, client):
        """A garbage bearer token is rejected."""
        response = client.get("/notes", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_session_cookie_round_trip(self, client, user_id, token_factory):
        """SIGNED_IN stores the token in a cookie that authenticates later calls."""
        token = token_factory(user_id)

        response = client.post(
            "/auth/session",
            json={
                "event": "SIGNED_IN",
                "session": {"access_token": token, "refresh_token": "refresh-1", "expires_in": 3600},
            },
        )

        assert response.status_code == 204
        assert "sb-access-token" in response.headers["set-cookie"]
        assert "httponly" in response.headers["set-cookie"].lower()

        client.cookies.set("sb-access-token", token)
        assert client.get("/notes").status_code == 200

    def test_session_requires_payload(self, client):
        """Sign-in events without a session are invalid."""
        response = client.post("/auth/session", json={"event": "TOKEN_REFRESHED"})

        assert response.status_code == 400
        assert response.json()["details"] == {
            "session": "Missing session payload for authentication event."
        }

    def test_session_rejects_bad_token(self, client):
        """Tokens that do not verify are not stored."""
        response = client.post(
            "/auth/session",
            json={
                "event": "SIGNED_IN",
                "session": {"access_token": "forged", "refresh_token": "refresh-1"},
            },
        )

        assert response.status_code == 401
        assert "set-cookie" not in response.headers

    def test_logout_clears_cookies(self, client):
        """Logout expires both cookies."""
        response = client.post("/auth/logout")

        assert response.status_code == 204
        cookies = response.headers.get_list("set-cookie")
        assert any(cookie.startswith("sb-access-token=") for cookie in cookies)
        assert any(cookie.startswith("sb-refresh-token=") for cookie in cookies)

    def test_dev_identity_when_auth_not_enforced(self, app, test_settings):
        """Without enforcement the configured development user is used."""
        dev_user = uuid4()
        app.state.settings = test_settings.model_copy(
            update={"auth_enforced": False, "dev_user_id": dev_user}
        )
        client = TestClient(app)

        response = client.get("/profile")

        assert response.status_code == 404
        assert response.json()["details"]["resourceId"] == str(dev_user)


@pytest.mark.integration
class TestNotes:
    """Note CRUD and listing."""

    def test_create_and_get(self, client, auth_headers):
        """Created notes can be read back by their owner."""
        created = create_note(client, auth_headers)

        response = client.get(f"/notes/{created['id']}", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["destination"] == "Kyoto"
        assert body["total_budget"] == 1200
        assert "user_id" not in body

    def test_invalid_dates(self, client, auth_headers):
        """End before start is a validation error."""
        response = client.post(
            "/notes",
            json={**NOTE_PAYLOAD, "start_date": "2025-10-05", "end_date": "2025-10-01"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_trip_too_long(self, client, auth_headers):
        """Trips longer than two weeks are rejected."""
        response = client.post(
            "/notes",
            json={**NOTE_PAYLOAD, "start_date": "2025-10-01", "end_date": "2025-10-31"},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_update(self, client, auth_headers):
        """PUT replaces the note fields."""
        created = create_note(client, auth_headers)

        response = client.put(
            f"/notes/{created['id']}",
            json={**NOTE_PAYLOAD, "destination": "Osaka", "total_budget": None},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["destination"] == "Osaka"
        assert response.json()["total_budget"] is None

    def test_other_users_note_is_forbidden(self, client, note, token_factory):
        """Notes owned by someone else return 403."""
        stranger = {"Authorization": f"Bearer {token_factory(uuid4())}"}

        response = client.get(f"/notes/{note.id}", headers=stranger)

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    def test_unknown_note(self, client, auth_headers):
        """Unknown ids return 404 with the resource details."""
        note_id = uuid4()

        response = client.get(f"/notes/{note_id}", headers=auth_headers)

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "NOTE_NOT_FOUND"
        assert body["details"] == {"resourceType": "note", "resourceId": str(note_id)}

    def test_list_sort_and_paginate(self, client, auth_headers):
        """Listing honours sort, limit and offset and reports the total."""
        for destination in ("Porto", "Athens", "Bergen"):
            create_note(client, auth_headers, destination=destination)

        response = client.get(
            "/notes",
            params={"sort": "destination:asc", "limit": 2, "offset": 1},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert [note["destination"] for note in body["notes"]] == ["Bergen", "Porto"]
        assert body["pagination"] == {"total": 3, "limit": 2, "offset": 1}

    def test_list_only_own_notes_with_plan_count(self, client, auth_headers, note, token_factory):
        """Each user sees only their own notes, with plan counts."""
        for content in ("Plan A", "Plan B"):
            client.post(
                f"/notes/{note.id}/plans", json={"content": content}, headers=auth_headers
            )
        stranger = {"Authorization": f"Bearer {token_factory(uuid4())}"}
        create_note(client, stranger, destination="Oslo")

        body = client.get("/notes", headers=auth_headers).json()

        assert [(item["destination"], item["plan_count"]) for item in body["notes"]] == [
            ("Lisbon", 2)
        ]

    def test_invalid_sort(self, client, auth_headers):
        """Unsupported sort fields are rejected."""
        response = client.get("/notes", params={"sort": "budget:asc"}, headers=auth_headers)

        assert response.status_code == 400
        assert "sort" in response.json()["details"]

    def test_limit_out_of_range(self, client, auth_headers):
        """Page sizes above 100 are rejected."""
        response = client.get("/notes", params={"limit": 101}, headers=auth_headers)

        assert response.status_code == 400
        assert "limit" in response.json()["details"]

    def test_delete_cascades_to_plans(self, client, auth_headers, note, test_session):
        """Deleting a note removes its plans."""
        client.post(f"/notes/{note.id}/plans", json={"content": "Plan"}, headers=auth_headers)

        response = client.delete(f"/notes/{note.id}", headers=auth_headers)

        assert response.status_code == 204
        assert client.get(f"/notes/{note.id}", headers=auth_headers).status_code == 404
        test_session.expire_all()
        assert test_session.scalars(select(Plan)).all() == []


@pytest.mark.integration
class TestProfile:
    """Profile read and upsert."""

    def test_missing_profile(self, client, auth_headers):
        """A user without a profile gets 404."""
        response = client.get("/profile", headers=auth_headers)

        assert response.status_code == 404

    def test_upsert_creates_fresh_quota(self, client, auth_headers):
        """A new profile starts with no generations used."""
        response = client.put(
            "/profile",
            json={"travel_style": "adventure", "interests": ["hiking"], "daily_budget": 80},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["generation_count"] == 0
        assert body["is_complete"] is True
        reset_at = datetime.fromisoformat(body["generation_limit_reset_at"])
        assert reset_at > datetime.now(UTC) + timedelta(days=29)

    def test_upsert_keeps_quota(self, client, auth_headers, profile, test_session):
        """Updating preferences never touches the quota counter."""
        profile.generation_count = 3
        test_session.commit()

        response = client.put(
            "/profile",
            json={"travel_style": "luxury", "interests": []},
            headers=auth_headers,
        )

        body = response.json()
        assert body["travel_style"] == "luxury"
        assert body["generation_count"] == 3
        assert body["is_complete"] is False

    def test_invalid_travel_style(self, client, auth_headers):
        """Unknown travel styles are rejected."""
        response = client.put(
            "/profile", json={"travel_style": "space"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert "travel_style" in response.json()["details"]


@pytest.mark.integration
class TestPlans:
    """Accepted previews, history, detail and feedback."""

    def test_accept_list_get_and_feedback(self, client, auth_headers, note):
        """An accepted preview shows up in history and can be rated."""
        response = client.post(
            f"/notes/{note.id}/plans", json={"content": "# Day 1"}, headers=auth_headers
        )

        assert response.status_code == 201
        plan = response.json()
        assert response.headers["Location"] == f"/plans/{plan['id']}"
        assert plan["prompt_version"] == "v1"

        history = client.get(f"/notes/{note.id}/plans", headers=auth_headers).json()
        assert history["total"] == 1
        assert history["plans"][0]["id"] == plan["id"]

        detail = client.get(f"/plans/{plan['id']}", headers=auth_headers)
        assert detail.status_code == 200
        assert detail.headers["Cache-Control"] == "private, max-age=300"
        assert detail.json()["note"]["destination"] == "Lisbon"

        feedback = client.post(
            f"/plans/{plan['id']}/feedback", json={"feedback": -1}, headers=auth_headers
        )
        assert feedback.status_code == 200
        assert feedback.json() == {
            "id": plan["id"],
            "feedback": -1,
            "message": "Feedback saved successfully",
        }
        detail = client.get(f"/plans/{plan['id']}", headers=auth_headers)
        assert detail.json()["feedback"] == -1

    def test_invalid_feedback_value(self, client, auth_headers, note):
        """Feedback must be 1 or -1."""
        plan = client.post(
            f"/notes/{note.id}/plans", json={"content": "# Day 1"}, headers=auth_headers
        ).json()

        response = client.post(
            f"/plans/{plan['id']}/feedback", json={"feedback": 5}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_unknown_plan(self, client, auth_headers):
        """Unknown plans are 404 PLAN_NOT_FOUND."""
        response = client.get(f"/plans/{uuid4()}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "PLAN_NOT_FOUND"

    def test_other_users_plan_is_forbidden(self, client, auth_headers, note, token_factory):
        """Plans inherit ownership from their note."""
        plan = client.post(
            f"/notes/{note.id}/plans", json={"content": "# Day 1"}, headers=auth_headers
        ).json()
        stranger = {"Authorization": f"Bearer {token_factory(uuid4())}"}

        response = client.get(f"/plans/{plan['id']}", headers=stranger)

        assert response.status_code == 403


@pytest.mark.integration
class TestGeneratePlan:
    """POST /notes/{note_id}/generate-plan."""

    def test_success(self, client, auth_headers, note, profile, fake_provider, test_session):
        """A plan is generated, stored and located by the Location header."""
        response = client.post(f"/notes/{note.id}/generate-plan", headers=auth_headers)

        assert response.status_code == 201, response.text
        body = response.json()
        assert response.headers["Location"] == f"/plans/{body['id']}"
        assert body["content"] == fake_provider.content
        assert body["remaining_generations"] == 4
        assert "Lisbon" in fake_provider.prompts[0]

        test_session.expire_all()
        assert test_session.get(Profile, profile.id).generation_count == 1
        (log,) = test_session.scalars(select(GenerationLog)).all()
        assert log.status == GenerationStatus.completed

    def test_incomplete_profile(self, client, auth_headers, note, profile, test_session):
        """Incomplete profiles are rejected with the missing fields."""
        profile.daily_budget = None
        test_session.commit()

        response = client.post(f"/notes/{note.id}/generate-plan", headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INCOMPLETE_PROFILE"
        assert body["required_fields"] == ["daily_budget"]

    def test_limit_exceeded(self, client, auth_headers, note, profile, test_session):
        """An exhausted quota returns 429 with the reset time."""
        profile.generation_count = 5
        test_session.commit()

        response = client.post(f"/notes/{note.id}/generate-plan", headers=auth_headers)

        assert response.status_code == 429
        body = response.json()
        assert body["code"] == "GENERATION_LIMIT_EXCEEDED"
        assert body["limit"] == 5
        assert datetime.fromisoformat(body["reset_at"]) > datetime.now(UTC)
        test_session.expire_all()
        assert test_session.scalars(select(GenerationLog)).all() == []

    def test_provider_failure(self, client, auth_headers, note, profile, fake_provider, test_session):
        """Provider errors become 500 AI_GENERATION_FAILED and a failed log."""
        fake_provider.error = RuntimeError("upstream exploded")

        response = client.post(f"/notes/{note.id}/generate-plan", headers=auth_headers)

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "AI_GENERATION_FAILED"
        assert "upstream exploded" not in body["message"]
        test_session.expire_all()
        (log,) = test_session.scalars(select(GenerationLog)).all()
        assert log.status == GenerationStatus.failed
        assert log.error_message == "upstream exploded"

    def test_unexpected_error(self, app, auth_headers, note):
        """Errors outside the business hierarchy become a generic 500."""

        def broken_service():
            raise RuntimeError("service wiring failed")

        app.dependency_overrides[get_generation_service] = broken_service
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post(f"/notes/{note.id}/generate-plan", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
