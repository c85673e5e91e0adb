"""Session and room access.

Browsers carry an opaque token in a cookie; each token maps to exactly one
attendee of one room. This module issues and revokes tokens and resolves
them, and room secrets, back to ids.
"""
import logging
import secrets
from dataclasses import dataclass

from sqlmodel import Session, select

from meetroom.models import Attendee, Room, SessionToken
from meetroom.scheduling import store
from meetroom.scheduling.errors import NotFound, Unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    attendee_id: int
    room_id: int
    is_host: bool


def normalize_secret(secret: str) -> str:
    return secret.strip().upper()


def issue_session_token(session: Session, attendee: Attendee) -> str:
    """Create a session for the attendee and return its token."""
    token = secrets.token_urlsafe(32)
    with store.guarded(session):
        session.add(SessionToken(token=token, attendee_id=attendee.id))
        session.commit()
    return token


def resolve_current_user(session: Session, token: str | None) -> CurrentUser:
    """Resolve a session token to the attendee it signs in as.

    Raises:
        Unauthorized: no token, or the token is unknown (logged out, or its
            room was cancelled or expired).
    """
    if not token:
        raise Unauthorized()

    with store.guarded(session):
        row = session.get(SessionToken, token)
        if not row:
            raise Unauthorized()
        attendee = session.get(Attendee, row.attendee_id)
        if not attendee:
            raise Unauthorized()

    return CurrentUser(
        attendee_id=attendee.id,
        room_id=attendee.room_id,
        is_host=attendee.is_host,
    )


def resolve_room_by_secret(session: Session, secret: str) -> int:
    """Return the id of the room with this join code.

    Raises:
        NotFound: no room has this secret.
    """
    with store.guarded(session):
        statement = select(Room).where(Room.secret == normalize_secret(secret))
        room = session.exec(statement).first()
    if not room:
        raise NotFound()
    return room.id


def revoke_session_token(session: Session, token: str | None) -> bool:
    """Delete a session token. Returns False if there was nothing to delete."""
    if not token:
        return False

    with store.guarded(session):
        row = session.get(SessionToken, token)
        if not row:
            return False
        attendee_id = row.attendee_id
        session.delete(row)
        session.commit()

    logger.info(f"Attendee {attendee_id} logged out")
    return True
