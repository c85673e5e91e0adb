"""Room lifecycle: creation, joining and expiry.

Creating a room also creates its host attendee. Rooms live until the host
cancels them or until they are older than ``room_ttl_hours``, when the
background purge job removes them.
"""
import logging
import secrets
from datetime import datetime, timedelta

from sqlmodel import Session, select

from meetroom.core.clock import as_utc, utc_now
from meetroom.core.config import settings
from meetroom.models import Attendee, Room
from meetroom.scheduling import store
from meetroom.scheduling.access import normalize_secret, resolve_room_by_secret
from meetroom.scheduling.errors import RoomFull, TransientStoreFailure
from meetroom.scheduling.reconciliation import validate_range

logger = logging.getLogger(__name__)

# No 0/O or 1/I, the code is read aloud and typed by hand
SECRET_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SECRET_ATTEMPTS = 10


def generate_secret(length: int | None = None) -> str:
    """Generate a random room join code."""
    length = length or settings.secret_length
    return "".join(secrets.choice(SECRET_ALPHABET) for _ in range(length))


def _unused_secret(session: Session) -> str:
    for _ in range(SECRET_ATTEMPTS):
        secret = generate_secret()
        if not session.exec(select(Room).where(Room.secret == secret)).first():
            return secret
    raise TransientStoreFailure("Could not allocate a unique room code")


def create_room(
    session: Session,
    title: str,
    host_name: str,
    start: datetime,
    end: datetime,
    timezone: str = "UTC",
    max_attendees: int | None = None,
) -> tuple[Room, Attendee]:
    """Create an OPEN room and its host attendee.

    Raises:
        InvalidRange: the proposed window does not start before it ends.
    """
    start_utc, end_utc = validate_range(start, end)

    with store.guarded(session):
        room = Room(
            title=title.strip(),
            secret=_unused_secret(session),
            available_start_utc=start_utc,
            available_end_utc=end_utc,
            timezone=timezone.strip() or "UTC",
            max_attendees=max_attendees,
        )
        session.add(room)
        session.flush()  # Get room.id

        host = Attendee(room_id=room.id, name=host_name.strip(), is_host=True)
        session.add(host)
        session.commit()
        session.refresh(room)
        session.refresh(host)

    logger.info(f"Room {room.id} created: {room.title!r} by {host.name!r}")
    return room, host


def join_room(session: Session, secret: str, name: str) -> Attendee:
    """Add a (non-host) attendee to the room with this secret.

    Raises:
        NotFound: no room has this secret.
        RoomFull: the room already has ``max_attendees`` guests.
    """
    room_id = resolve_room_by_secret(session, normalize_secret(secret))

    with store.guarded(session):
        room = session.get(Room, room_id)
        if room.max_attendees is not None and store.count_guests(session, room_id) >= room.max_attendees:
            raise RoomFull()

        attendee = Attendee(room_id=room_id, name=name.strip())
        session.add(attendee)
        session.commit()
        session.refresh(attendee)

    logger.info(f"Attendee {attendee.id} ({attendee.name!r}) joined room {room_id}")
    return attendee


def purge_expired_rooms(
    session: Session,
    now: datetime | None = None,
    ttl_hours: int | None = None,
) -> int:
    """Delete rooms created more than ``ttl_hours`` ago.

    Returns the number of rooms deleted.
    """
    now = as_utc(now) if now else utc_now()
    ttl_hours = settings.room_ttl_hours if ttl_hours is None else ttl_hours
    cutoff = now - timedelta(hours=ttl_hours)

    with store.guarded(session):
        expired = session.exec(select(Room).where(Room.created_at < cutoff)).all()
        for room in expired:
            logger.info(f"Removing expired room {room.id}: {room.title!r}")
            store.delete_room(session, room)
        session.commit()

    return len(expired)
