"""Time range model for attendee availability.

Each TimeRange is one FREE or BUSY declaration. Ranges are append-only:
a new submission adds a row and never edits an earlier one. Overlapping
ranges are kept as independent declarations.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

from meetroom.core.clock import utc_now

if TYPE_CHECKING:
    from meetroom.models.attendee import Attendee


class TimeRangeMode(str, Enum):
    FREE = "FREE"
    BUSY = "BUSY"


class TimeRange(SQLModel, table=True):
    """A single availability declaration by an attendee.

    Attributes:
        id: Auto-increment identifier. Id order is submission order.
        attendee_id: Foreign key to the declaring Attendee.
        start_utc: Range start (naive UTC).
        end_utc: Range end (naive UTC), always after start_utc.
        mode: FREE or BUSY.
        created_at: Submission time.
        attendee: Reference to the declaring Attendee.
    """
    id: int | None = Field(default=None, primary_key=True)
    attendee_id: int = Field(foreign_key="attendee.id", index=True)
    start_utc: datetime
    end_utc: datetime
    mode: TimeRangeMode
    created_at: datetime = Field(default_factory=utc_now)

    # Relationship
    attendee: Optional["Attendee"] = Relationship(back_populates="time_ranges")
