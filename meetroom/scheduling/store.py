"""Persistence helpers for rooms, attendees and time ranges.

Everything that touches the database on behalf of the scheduling layer
goes through here, so driver failures are mapped to one retryable error
and the set-once confirmation lives in a single statement.
"""
import logging
import time
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlmodel import Session, col, select

from meetroom.core.clock import utc_now
from meetroom.core.config import settings
from meetroom.models import Attendee, Room, TimeRange
from meetroom.scheduling.errors import TransientStoreFailure

logger = logging.getLogger(__name__)


@contextmanager
def guarded(session: Session):
    """Run a unit of work, rolling back on any failure.

    Driver-level failures (lock timeouts, a dropped connection, an
    exhausted pool) are re-raised as ``TransientStoreFailure``. Everything
    else propagates unchanged.
    """
    try:
        yield
    except (OperationalError, PoolTimeoutError) as e:
        session.rollback()
        logger.warning(f"Store unavailable: {e}")
        raise TransientStoreFailure() from e
    except Exception:
        session.rollback()
        raise


def retry_transient(fn, *args, attempts: int | None = None, backoff: float | None = None, **kwargs):
    """Call ``fn`` and retry it on ``TransientStoreFailure``.

    Retries up to ``attempts`` calls in total with a linear backoff; the
    last failure is re-raised. Other errors are never retried.
    """
    if attempts is None:
        attempts = settings.store_retry_attempts
    if backoff is None:
        backoff = settings.store_retry_backoff_seconds

    for attempt in range(1, attempts + 1):
        try:
            return fn(*args, **kwargs)
        except TransientStoreFailure as e:
            if attempt >= attempts:
                logger.error(f"Giving up after {attempts} attempts: {e}")
                raise
            logger.warning(f"Transient store failure (attempt {attempt}/{attempts}): {e}")
            time.sleep(backoff * attempt)


def set_actual_window_once(
    session: Session,
    room_id: int,
    start_utc: datetime,
    end_utc: datetime,
    confirmed_by: int | None = None,
) -> bool:
    """Set the room's actual window only if it is still unset.

    A single conditional UPDATE, so concurrent confirmations cannot both
    win. Returns True if this call set the window. Does not commit.
    """
    statement = (
        update(Room)
        .where(col(Room.id) == room_id)
        .where(col(Room.actual_start_utc).is_(None))
        .values(
            actual_start_utc=start_utc,
            actual_end_utc=end_utc,
            confirmed_at=utc_now(),
            confirmed_by=confirmed_by,
        )
    )
    result = session.connection().execute(statement)
    return result.rowcount == 1


def attendees_for_room(session: Session, room_id: int) -> list[Attendee]:
    statement = select(Attendee).where(Attendee.room_id == room_id).order_by(Attendee.id)
    return list(session.exec(statement).all())


def ranges_for_attendee(session: Session, attendee_id: int) -> list[TimeRange]:
    statement = (
        select(TimeRange)
        .where(TimeRange.attendee_id == attendee_id)
        .order_by(TimeRange.id)
    )
    return list(session.exec(statement).all())


def ranges_for_room(session: Session, room_id: int) -> list[TimeRange]:
    """All ranges of every attendee in the room, in submission order."""
    statement = (
        select(TimeRange)
        .join(Attendee)
        .where(Attendee.room_id == room_id)
        .order_by(TimeRange.id)
    )
    return list(session.exec(statement).all())


def count_guests(session: Session, room_id: int) -> int:
    """Number of non-host attendees in the room."""
    statement = (
        select(Attendee)
        .where(Attendee.room_id == room_id)
        .where(Attendee.is_host == False)  # noqa: E712
    )
    return len(session.exec(statement).all())


def _delete_children(session: Session, room: Room) -> None:
    for attendee in room.attendees:
        for time_range in attendee.time_ranges:
            session.delete(time_range)
        for token in attendee.session_tokens:
            session.delete(token)
        session.delete(attendee)


def delete_room(session: Session, room: Room) -> None:
    """Delete a room with its attendees, ranges and session tokens.

    Does not commit.
    """
    _delete_children(session, room)
    session.delete(room)


def delete_open_room(session: Session, room: Room) -> bool:
    """Delete a room and everything it owns only if it is still unconfirmed.

    The room row goes with a conditional DELETE in the same transaction as
    its children. Returns False when a confirmation got there first; the
    caller must roll back. Does not commit.
    """
    _delete_children(session, room)
    session.flush()

    statement = (
        delete(Room)
        .where(col(Room.id) == room.id)
        .where(col(Room.actual_start_utc).is_(None))
    )
    result = session.connection().execute(statement)
    if result.rowcount != 1:
        return False

    session.expunge(room)
    return True
