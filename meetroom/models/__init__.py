from meetroom.models.attendee import Attendee
from meetroom.models.room import Room, RoomState
from meetroom.models.session_token import SessionToken
from meetroom.models.time_range import TimeRange, TimeRangeMode

__all__ = ["Room", "RoomState", "Attendee", "TimeRange", "TimeRangeMode", "SessionToken"]
