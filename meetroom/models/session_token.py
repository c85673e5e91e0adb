"""Session token model for browser sign-in.

This module defines the SessionToken model which maps the opaque value
stored in a browser cookie to the attendee that browser acts as. Tokens
are issued when a room is created or joined and removed on logout or when
the room goes away.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

from meetroom.core.clock import utc_now

if TYPE_CHECKING:
    from meetroom.models.attendee import Attendee


class SessionToken(SQLModel, table=True):
    """A signed-in browser session.

    Attributes:
        token: Random URL-safe value, also the cookie content.
        attendee_id: Attendee the session acts as.
        created_at: When the session was issued.
        attendee: Reference to the Attendee.
    """
    token: str = Field(primary_key=True)
    attendee_id: int = Field(foreign_key="attendee.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)

    # Relationship
    attendee: Optional["Attendee"] = Relationship(back_populates="session_tokens")
