"""Tests for API routes."""

import inspect
from datetime import UTC, datetime

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from conftest import JSON
from meetroom.core.clock import as_utc
from meetroom.core.config import settings
from meetroom.models import Room, TimeRange
from meetroom.routes import pages, rooms
from meetroom.scheduling.errors import TransientStoreFailure


def parse_utc(value: str) -> datetime:
    return as_utc(datetime.fromisoformat(value))


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, client: TestClient):
        """Test the health endpoint returns OK."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"


class TestPages:
    """Tests for the HTML pages."""

    def test_index_page(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Create a room" in response.text
        assert "Join a room" in response.text

    def test_index_shows_notice(self, client: TestClient):
        response = client.get("/", params={"notice": "Room not found"})
        assert "Room not found" in response.text

    def test_dashboard_requires_session(self, client: TestClient):
        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"].startswith("/?notice=")

    def test_host_dashboard(self, host_client: TestClient):
        response = host_client.get("/dashboard")
        assert response.status_code == 200
        assert "Design Review" in response.text
        assert "Confirm Meeting" in response.text
        assert "Submit Meeting Time" not in response.text
        assert host_client.room["secret"] in response.text

    def test_guest_dashboard(self, guest_client: TestClient):
        response = guest_client.get("/dashboard")
        assert response.status_code == 200
        assert "Submit Meeting Time" in response.text
        assert "Confirm Meeting" not in response.text

    def test_confirmed_dashboard(self, host_client: TestClient, guest_client: TestClient):
        host_client.post(
            "/rooms/me/confirm",
            data={"start": "2024-01-01T10:30", "end": "2024-01-01T11:30"},
            headers=JSON,
        )

        response = guest_client.get("/dashboard")
        assert "Meeting Already Confirmed!" in response.text
        assert "2024-01-01 10:30 (Europe/Berlin)" in response.text
        assert "Submit Meeting Time" not in response.text

    def test_dashboard_timeline(self, host_client: TestClient, guest_client: TestClient):
        guest_client.post(
            "/rooms/me/availability",
            data={"start": "2024-01-01T10:00", "end": "2024-01-01T11:00", "mode": "BUSY"},
            headers=JSON,
        )

        response = host_client.get("/dashboard")
        assert "#FF0000" in response.text
        assert "2024-01-01 10:00 (Europe/Berlin)" in response.text


    def test_dashboard_store_failure_does_not_loop(self, host_client: TestClient, monkeypatch):
        def unavailable(*args, **kwargs):
            raise TransientStoreFailure()

        monkeypatch.setattr(pages, "get_room_state", unavailable)
        monkeypatch.setattr(settings, "store_retry_backoff_seconds", 0)

        response = host_client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"].startswith("/?notice=")

        # Session is kept; the failure was transient
        assert host_client.get("/rooms/me").status_code == 200


class TestRoomRoutes:
    """Tests for room creation and joining."""

    def test_create_room_form(self, make_client, session: Session):
        client = make_client()
        response = client.post(
            "/rooms",
            data={
                "title": "Kickoff",
                "host_name": "Bea",
                "start": "2024-01-01T09:00",
                "end": "2024-01-01T17:00",
                "max_attendees": "",
            },
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"].startswith("/dashboard")
        assert settings.session_cookie_name in response.cookies

        room = session.exec(select(Room).where(Room.title == "Kickoff")).first()
        assert room is not None
        assert room.timezone == "UTC"
        assert room.max_attendees is None

    def test_create_room_invalid_window(self, client: TestClient):
        response = client.post(
            "/rooms",
            data={
                "title": "Kickoff",
                "host_name": "Bea",
                "start": "2024-01-01T17:00",
                "end": "2024-01-01T09:00",
            },
            headers=JSON,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_range"

    def test_create_room_invalid_window_redirects_browser(self, client: TestClient):
        response = client.post(
            "/rooms",
            data={
                "title": "Kickoff",
                "host_name": "Bea",
                "start": "2024-01-01T17:00",
                "end": "2024-01-01T09:00",
            },
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"].startswith("/?notice=")

    def test_join_full_room_redirects_browser(self, make_client, host_client: TestClient):
        owner = make_client()
        small = owner.post(
            "/rooms",
            data={
                "title": "Small",
                "host_name": "Cy",
                "start": "2024-01-01T09:00",
                "end": "2024-01-01T10:00",
                "max_attendees": "1",
            },
            headers=JSON,
        ).json()
        make_client().post("/rooms/join", data={"secret": small["secret"], "name": "Dee"}, headers=JSON)

        # host_client is signed into another room
        response = host_client.post(
            "/rooms/join", data={"secret": small["secret"], "name": "Bea"}, follow_redirects=False
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/?notice=Room+is+full"

        state = host_client.get("/rooms/me").json()
        assert state["room"]["title"] == "Design Review"

    def test_join_unknown_secret(self, client: TestClient):
        response = client.post(
            "/rooms/join", data={"secret": "MISSING1", "name": "Alex"}, headers=JSON
        )
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_join_unknown_secret_redirects_browser(self, client: TestClient):
        response = client.post(
            "/rooms/join", data={"secret": "MISSING1", "name": "Alex"}, follow_redirects=False
        )
        assert response.status_code == 303
        assert response.headers["location"].startswith("/?notice=")

    def test_room_state(self, host_client: TestClient, guest_client: TestClient):
        response = guest_client.get("/rooms/me")
        assert response.status_code == 200

        data = response.json()
        assert data["room"]["title"] == "Design Review"
        assert data["room"]["state"] == "OPEN"
        assert data["current_user_id"] == guest_client.room["attendee_id"]
        assert data["is_host"] is False
        assert [a["name"] for a in data["attendees"]] == ["Bea", "Alex"]

    def test_retrying_handlers_are_not_coroutines(self):
        """Handlers that back off between retries run in the threadpool."""
        assert not inspect.iscoroutinefunction(rooms.room_state)
        assert not inspect.iscoroutinefunction(pages.dashboard)

    def test_room_state_requires_session(self, client: TestClient):
        response = client.get("/rooms/me", headers=JSON)
        assert response.status_code == 401
        assert response.json()["code"] == "unauthorized"


class TestAvailabilityRoutes:
    """Tests for submitting availability."""

    def test_submit_json(self, guest_client: TestClient):
        response = guest_client.post(
            "/rooms/me/availability",
            data={"start": "2024-01-01T10:00", "end": "2024-01-01T11:00", "mode": "BUSY"},
            headers=JSON,
        )
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is True
        assert len(data["ranges"]) == 1
        assert data["ranges"][0]["mode"] == "BUSY"
        assert parse_utc(data["ranges"][0]["start_utc"]) == datetime(2024, 1, 1, 10, tzinfo=UTC)

    def test_submit_redirect(self, guest_client: TestClient, session: Session):
        response = guest_client.post(
            "/rooms/me/availability",
            data={"start": "2024-01-01T13:00", "end": "2024-01-01T14:00", "mode": "FREE"},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"].startswith("/dashboard")
        assert len(session.exec(select(TimeRange)).all()) == 1

    def test_submit_invalid_range(self, guest_client: TestClient):
        response = guest_client.post(
            "/rooms/me/availability",
            data={"start": "2024-01-01T11:00", "end": "2024-01-01T11:00", "mode": "FREE"},
            headers=JSON,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_range"
        assert response.json()["retryable"] is False

    def test_submit_invalid_range_redirects_browser(self, guest_client: TestClient):
        response = guest_client.post(
            "/rooms/me/availability",
            data={"start": "2024-01-01T12:00", "end": "2024-01-01T11:00", "mode": "FREE"},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"].startswith("/dashboard?notice=")

    def test_submit_unknown_mode(self, guest_client: TestClient):
        response = guest_client.post(
            "/rooms/me/availability",
            data={"start": "2024-01-01T10:00", "end": "2024-01-01T11:00", "mode": "MAYBE"},
            headers=JSON,
        )
        assert response.status_code == 422

    def test_submit_requires_session(self, client: TestClient):
        response = client.post(
            "/rooms/me/availability",
            data={"start": "2024-01-01T10:00", "end": "2024-01-01T11:00", "mode": "FREE"},
            headers=JSON,
        )
        assert response.status_code == 401


class TestConfirmRoutes:
    """Tests for confirming and cancelling the meeting."""

    def test_guest_cannot_confirm(self, host_client: TestClient, guest_client: TestClient):
        response = guest_client.post(
            "/rooms/me/confirm",
            data={"start": "2024-01-01T10:30", "end": "2024-01-01T11:30"},
            headers=JSON,
        )
        assert response.status_code == 403
        assert response.json()["code"] == "not_host"

        state = host_client.get("/rooms/me").json()
        assert state["room"]["state"] == "OPEN"

    def test_host_confirms(self, host_client: TestClient, guest_client: TestClient):
        guest_client.post(
            "/rooms/me/availability",
            data={"start": "2024-01-01T10:00", "end": "2024-01-01T11:00", "mode": "BUSY"},
            headers=JSON,
        )

        response = host_client.post(
            "/rooms/me/confirm",
            data={"start": "2024-01-01T10:30", "end": "2024-01-01T11:30"},
            headers=JSON,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "CONFIRMED"
        assert parse_utc(data["actual_start_utc"]) == datetime(2024, 1, 1, 10, 30, tzinfo=UTC)
        assert parse_utc(data["actual_end_utc"]) == datetime(2024, 1, 1, 11, 30, tzinfo=UTC)

        late = guest_client.post(
            "/rooms/me/availability",
            data={"start": "2024-01-01T12:00", "end": "2024-01-01T13:00", "mode": "FREE"},
            headers=JSON,
        )
        assert late.status_code == 409
        assert late.json()["code"] == "room_already_confirmed"

    def test_second_confirm_conflicts(self, host_client: TestClient):
        first = host_client.post(
            "/rooms/me/confirm",
            data={"start": "2024-01-01T10:30", "end": "2024-01-01T11:30"},
            headers=JSON,
        )
        assert first.status_code == 200

        second = host_client.post(
            "/rooms/me/confirm",
            data={"start": "2024-01-01T14:00", "end": "2024-01-01T15:00"},
            headers=JSON,
        )
        assert second.status_code == 409
        assert second.json()["code"] == "already_confirmed"

        state = host_client.get("/rooms/me").json()
        assert parse_utc(state["room"]["actual_start_utc"]) == datetime(2024, 1, 1, 10, 30, tzinfo=UTC)

    def test_confirm_redirect(self, host_client: TestClient):
        response = host_client.post(
            "/rooms/me/confirm",
            data={"start": "2024-01-01T10:30", "end": "2024-01-01T11:30"},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"].startswith("/dashboard")

    def test_guest_cannot_cancel(self, host_client: TestClient, guest_client: TestClient):
        response = guest_client.post("/rooms/me/cancel", headers=JSON)
        assert response.status_code == 403

        assert host_client.get("/rooms/me").status_code == 200
        assert guest_client.get("/rooms/me").status_code == 200

    def test_host_cancels(self, host_client: TestClient, guest_client: TestClient, session: Session):
        response = host_client.post("/rooms/me/cancel", headers=JSON)
        assert response.status_code == 200
        assert response.json()["success"] is True

        assert session.exec(select(Room)).all() == []
        assert host_client.get("/rooms/me", headers=JSON).status_code == 401
        assert guest_client.get("/rooms/me", headers=JSON).status_code == 401


class TestLogout:
    def test_logout(self, guest_client: TestClient):
        response = guest_client.post("/logout", follow_redirects=False)
        assert response.status_code == 303

        assert guest_client.get("/rooms/me", headers=JSON).status_code == 401

    def test_logout_without_session(self, client: TestClient):
        response = client.post("/logout", headers=JSON)
        assert response.status_code == 200
