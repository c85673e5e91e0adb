"""Shared test fixtures."""

from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from meetroom.core.database import get_session
from meetroom.main import app
from meetroom.models import Attendee, Room
from meetroom.scheduling.rooms import create_room, join_room

WINDOW_START = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
WINDOW_END = datetime(2024, 1, 1, 17, 0, tzinfo=UTC)

JSON = {"Accept": "application/json"}


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="make_client")
def make_client_fixture(session: Session):
    """Build test clients sharing the test database session.

    Each client has its own cookie jar, so each one can be signed in as a
    different attendee.
    """

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    yield lambda: TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(make_client) -> TestClient:
    """A client with no session."""
    return make_client()


@pytest.fixture(name="room_and_host")
def room_and_host_fixture(session: Session) -> tuple[Room, Attendee]:
    """An OPEN room proposed for 2024-01-01 09:00-17:00 UTC."""
    return create_room(
        session,
        title="Quarterly Planning",
        host_name="Bea",
        start=WINDOW_START,
        end=WINDOW_END,
        timezone="Asia/Bangkok",
    )


@pytest.fixture(name="room")
def room_fixture(room_and_host) -> Room:
    return room_and_host[0]


@pytest.fixture(name="host")
def host_fixture(room_and_host) -> Attendee:
    return room_and_host[1]


@pytest.fixture(name="guest")
def guest_fixture(session: Session, room: Room) -> Attendee:
    """A non-host attendee of the room."""
    return join_room(session, room.secret, "Alex")


@pytest.fixture(name="host_client")
def host_client_fixture(make_client) -> TestClient:
    """A client that created a room through the API and is its host."""
    client = make_client()
    response = client.post(
        "/rooms",
        data={
            "title": "Design Review",
            "host_name": "Bea",
            "start": "2024-01-01T09:00",
            "end": "2024-01-01T17:00",
            "timezone": "Europe/Berlin",
        },
        headers=JSON,
    )
    assert response.status_code == 201
    client.room = response.json()
    return client


@pytest.fixture(name="guest_client")
def guest_client_fixture(make_client, host_client: TestClient) -> TestClient:
    """A client that joined the host client's room."""
    client = make_client()
    response = client.post(
        "/rooms/join",
        data={"secret": host_client.room["secret"], "name": "Alex"},
        headers=JSON,
    )
    assert response.status_code == 201
    client.room = response.json()
    return client
