"""Availability reconciliation for meeting rooms.

This module owns the room's scheduling rules:

- Attendees append FREE/BUSY ranges while the room is OPEN.
- The host confirms the actual meeting window exactly once, which moves
  the room to CONFIRMED; no transition leaves that state.
- The host may cancel an OPEN room, deleting it with everything it owns.

The confirmed window is deliberately not checked against the proposed
availability window or against attendees' BUSY ranges: the host has the
final say.

Every operation runs as one transaction on the given session and raises a
``SchedulingError`` subclass on failure.
"""
import logging
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from meetroom.core.clock import as_utc
from meetroom.models import Attendee, Room, RoomState, TimeRange, TimeRangeMode
from meetroom.scheduling import store
from meetroom.scheduling.errors import (
    AlreadyConfirmed,
    InvalidMode,
    InvalidRange,
    NotFound,
    NotHost,
    RoomAlreadyConfirmed,
)
from meetroom.scheduling.timeline import TimelineRow, build_timeline

logger = logging.getLogger(__name__)


class RoomPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    secret: str
    available_start_utc: datetime
    available_end_utc: datetime
    timezone: str
    max_attendees: int | None
    actual_start_utc: datetime | None
    actual_end_utc: datetime | None
    state: RoomState


class AttendeePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    is_host: bool


class TimeRangePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    attendee_id: int
    start_utc: datetime
    end_utc: datetime
    mode: TimeRangeMode


class RoomSnapshot(BaseModel):
    """Everything a client needs to render a room for one attendee."""

    room: RoomPublic
    attendees: list[AttendeePublic]
    ranges: list[TimeRangePublic]
    current_user_id: int
    is_host: bool
    timeline: list[TimelineRow]

    @property
    def state(self) -> RoomState:
        return self.room.state


def validate_range(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """Normalize both ends to UTC and require start < end."""
    start_utc, end_utc = as_utc(start), as_utc(end)
    if start_utc >= end_utc:
        raise InvalidRange()
    return start_utc, end_utc


def validate_mode(mode) -> TimeRangeMode:
    try:
        return TimeRangeMode(mode)
    except ValueError:
        raise InvalidMode(f"Unknown time range mode {mode!r}") from None


def submit_availability(
    session: Session,
    room_id: int,
    attendee_id: int,
    start: datetime,
    end: datetime,
    mode: TimeRangeMode,
) -> list[TimeRange]:
    """Append a FREE/BUSY range for an attendee.

    Returns the attendee's ranges in submission order.

    Raises:
        InvalidRange: start is not before end.
        InvalidMode: mode is not FREE or BUSY.
        NotFound: the attendee does not exist or is not in the room.
        RoomAlreadyConfirmed: the room's meeting is already confirmed.
    """
    start_utc, end_utc = validate_range(start, end)
    mode = validate_mode(mode)

    with store.guarded(session):
        attendee = session.get(Attendee, attendee_id)
        if not attendee or attendee.room_id != room_id:
            raise NotFound("Attendee not found in room")

        room = session.get(Room, room_id)
        if room.is_confirmed:
            raise RoomAlreadyConfirmed()

        time_range = TimeRange(
            attendee_id=attendee_id,
            start_utc=start_utc,
            end_utc=end_utc,
            mode=mode,
        )
        session.add(time_range)
        session.commit()

        ranges = store.ranges_for_attendee(session, attendee_id)

    logger.info(
        f"Attendee {attendee_id} in room {room_id} submitted {mode.value} "
        f"{start_utc.isoformat()} - {end_utc.isoformat()}"
    )
    return ranges


def confirm_meeting(
    session: Session,
    room_id: int,
    start: datetime,
    end: datetime,
    caller_is_host: bool,
    confirmed_by: int | None = None,
) -> Room:
    """Set the room's actual meeting window.

    ``caller_is_host`` comes pre-validated from the access layer. The
    window is written with a conditional update, so at most one of any
    number of concurrent calls succeeds.

    Raises:
        InvalidRange: start is not before end.
        NotFound: the room does not exist.
        NotHost: the caller is not the room's host.
        AlreadyConfirmed: the window was already set.
    """
    start_utc, end_utc = validate_range(start, end)

    with store.guarded(session):
        room = session.get(Room, room_id)
        if not room:
            raise NotFound()
        if not caller_is_host:
            raise NotHost("Only the host can confirm the meeting")

        if not store.set_actual_window_once(session, room_id, start_utc, end_utc, confirmed_by):
            raise AlreadyConfirmed()

        session.commit()
        session.refresh(room)

    logger.info(
        f"Room {room_id} confirmed for {start_utc.isoformat()} - {end_utc.isoformat()}"
    )
    return room


def cancel_meeting(session: Session, room_id: int, caller_is_host: bool) -> bool:
    """Delete an OPEN room together with its attendees and ranges.

    Raises:
        NotFound: the room does not exist.
        NotHost: the caller is not the room's host.
        AlreadyConfirmed: the room is CONFIRMED, which is terminal.
    """
    with store.guarded(session):
        room = session.get(Room, room_id)
        if not room:
            raise NotFound()
        if not caller_is_host:
            raise NotHost("Only the host can cancel the meeting")
        if room.is_confirmed or not store.delete_open_room(session, room):
            raise AlreadyConfirmed("Confirmed meetings cannot be cancelled")

        session.commit()

    logger.info(f"Room {room_id} cancelled by host")
    return True


def get_room_state(session: Session, room_id: int, current_user_id: int) -> RoomSnapshot:
    """Load a room, its attendees and ranges, and project the timeline.

    Raises:
        NotFound: the room does not exist.
    """
    with store.guarded(session):
        room = session.get(Room, room_id)
        if not room:
            raise NotFound()
        attendees = store.attendees_for_room(session, room_id)
        ranges = store.ranges_for_room(session, room_id)

    current = next((a for a in attendees if a.id == current_user_id), None)
    return RoomSnapshot(
        room=RoomPublic.model_validate(room),
        attendees=[AttendeePublic.model_validate(a) for a in attendees],
        ranges=[TimeRangePublic.model_validate(r) for r in ranges],
        current_user_id=current_user_id,
        is_host=bool(current and current.is_host),
        timeline=build_timeline(room, attendees, ranges),
    )
