"""Attendee model for room participants.

This module defines the Attendee model which represents a person taking
part in a room. The room creator is stored as the host attendee; everyone
else joins with the room's secret code.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

from meetroom.core.clock import utc_now

if TYPE_CHECKING:
    from meetroom.models.room import Room
    from meetroom.models.session_token import SessionToken
    from meetroom.models.time_range import TimeRange


class Attendee(SQLModel, table=True):
    """A participant in a room.

    Exactly one attendee per room has ``is_host`` set: the one created
    together with the room. Attendees are never edited after joining.

    Attributes:
        id: Auto-increment identifier.
        room_id: Foreign key to the owning Room.
        name: Display name entered when creating or joining.
        is_host: Whether this attendee may confirm or cancel the meeting.
        created_at: When the attendee joined.
        room: Reference to the owning Room.
        time_ranges: Availability declarations submitted by this attendee.
        session_tokens: Browser sessions signed in as this attendee.
    """
    id: int | None = Field(default=None, primary_key=True)
    room_id: int = Field(foreign_key="room.id", index=True)
    name: str
    is_host: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)

    # Relationships
    room: Optional["Room"] = Relationship(back_populates="attendees")
    time_ranges: list["TimeRange"] = Relationship(back_populates="attendee")
    session_tokens: list["SessionToken"] = Relationship(back_populates="attendee")
