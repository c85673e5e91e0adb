"""Room model for meeting scheduling sessions.

This module defines the Room model, the central entity of the application.
A host creates a room with a proposed availability window, attendees join
it with the room's secret code, and the host eventually confirms the
actual meeting time or cancels the room.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlmodel import Field, Relationship, SQLModel

from meetroom.core.clock import utc_now

if TYPE_CHECKING:
    from meetroom.models.attendee import Attendee


class RoomState(str, Enum):
    """Lifecycle state of a room.

    OPEN rooms accept availability submissions. CONFIRMED rooms have an
    actual meeting window and are read-only. CANCELLED rooms are deleted,
    so the state is never read back from the database.
    """
    OPEN = "OPEN"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class Room(SQLModel, table=True):
    """A scheduling session with one host and any number of attendees.

    Attributes:
        id: Auto-increment identifier.
        title: Meeting title shown on the dashboard.
        secret: Join code handed out by the host (unique).
        available_start_utc: Start of the host's proposed window.
        available_end_utc: End of the host's proposed window.
        timezone: Display label for timestamps. Never used for conversion.
        max_attendees: Cap on non-host attendees, or None for no cap.
        actual_start_utc: Confirmed meeting start, set exactly once.
        actual_end_utc: Confirmed meeting end, set exactly once.
        confirmed_at: When the host confirmed the meeting.
        confirmed_by: Attendee id of the confirming host.
        created_at: Creation time, used for TTL expiry.
        attendees: Participants of this room, host included.
    """
    id: int | None = Field(default=None, primary_key=True)
    title: str
    secret: str = Field(index=True, unique=True)
    available_start_utc: datetime
    available_end_utc: datetime
    timezone: str = Field(default="UTC")
    max_attendees: int | None = None
    actual_start_utc: datetime | None = None
    actual_end_utc: datetime | None = None
    confirmed_at: datetime | None = None
    confirmed_by: int | None = None
    created_at: datetime = Field(default_factory=utc_now, index=True)

    # Relationships
    attendees: list["Attendee"] = Relationship(back_populates="room")

    @property
    def is_confirmed(self) -> bool:
        return self.actual_start_utc is not None

    @property
    def state(self) -> RoomState:
        return RoomState.CONFIRMED if self.is_confirmed else RoomState.OPEN
