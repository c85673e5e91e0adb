"""Per-attendee availability timelines for display.

``build_timeline`` is a pure projection of a room, its attendees and
their time ranges. Each range becomes a block with two halves, the start
and the end instant, both drawn in the colour of the range's mode.
"""
from datetime import datetime
from enum import Enum
from typing import Iterable

from pydantic import BaseModel

from meetroom.models import Attendee, Room, TimeRange, TimeRangeMode


class DisplayColor(str, Enum):
    AVAILABLE = "#00FF00"
    UNAVAILABLE = "#FF0000"


MODE_COLORS: dict[TimeRangeMode, DisplayColor] = {
    TimeRangeMode.FREE: DisplayColor.AVAILABLE,
    TimeRangeMode.BUSY: DisplayColor.UNAVAILABLE,
}


def color_for(mode: TimeRangeMode) -> DisplayColor:
    """Display colour of a range mode.

    Raises ValueError for a mode without a colour rather than rendering it
    blank.
    """
    try:
        return MODE_COLORS[TimeRangeMode(mode)]
    except (KeyError, ValueError):
        raise ValueError(f"No display colour for time range mode {mode!r}") from None


class TimelineHalf(BaseModel):
    at: datetime
    timezone: str
    color: DisplayColor


class TimelineBlock(BaseModel):
    range_id: int | None
    mode: TimeRangeMode
    start: TimelineHalf
    end: TimelineHalf


class TimelineRow(BaseModel):
    attendee_id: int
    attendee_name: str
    is_host: bool
    blocks: list[TimelineBlock]


def _block(room: Room, time_range: TimeRange) -> TimelineBlock:
    color = color_for(time_range.mode)
    return TimelineBlock(
        range_id=time_range.id,
        mode=time_range.mode,
        start=TimelineHalf(at=time_range.start_utc, timezone=room.timezone, color=color),
        end=TimelineHalf(at=time_range.end_utc, timezone=room.timezone, color=color),
    )


def build_timeline(
    room: Room,
    attendees: Iterable[Attendee],
    ranges: Iterable[TimeRange],
) -> list[TimelineRow]:
    """Build one timeline row per attendee.

    Rows follow attendee id order. Within a row, ranges are sorted by start
    time, latest first; ranges with the same start keep submission (id)
    order. Unsaved ranges (no id yet) come after saved ones in the order
    given. Ranges of attendees not in ``attendees`` are ignored.
    """
    indexed = sorted(
        enumerate(ranges),
        key=lambda item: (item[1].id is None, item[1].id or 0, item[0]),
    )
    by_attendee: dict[int, list[TimeRange]] = {}
    for _, time_range in indexed:
        by_attendee.setdefault(time_range.attendee_id, []).append(time_range)

    rows = []
    for attendee in sorted(attendees, key=lambda a: a.id):
        # sorted() is stable with reverse=True, so equal starts keep id order
        own = sorted(by_attendee.get(attendee.id, []), key=lambda r: r.start_utc, reverse=True)
        rows.append(
            TimelineRow(
                attendee_id=attendee.id,
                attendee_name=attendee.name,
                is_host=attendee.is_host,
                blocks=[_block(room, r) for r in own],
            )
        )
    return rows
