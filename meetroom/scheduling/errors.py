"""Typed failures raised by the scheduling layer.

Every failure carries a stable ``code`` for clients, the HTTP status the
web layer answers with, and whether retrying the same call can succeed.
Only ``TransientStoreFailure`` is retryable.
"""


class SchedulingError(Exception):
    """Base class for scheduling failures."""

    code = "scheduling_error"
    status_code = 400
    retryable = False
    default_detail = "Scheduling request failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidRange(SchedulingError):
    code = "invalid_range"
    status_code = 400
    default_detail = "Start datetime must be less than end datetime"


class InvalidMode(SchedulingError):
    code = "invalid_mode"
    status_code = 400
    default_detail = "Mode must be FREE or BUSY"


class NotHost(SchedulingError):
    code = "not_host"
    status_code = 403
    default_detail = "Only the host can do this"


class AlreadyConfirmed(SchedulingError):
    code = "already_confirmed"
    status_code = 409
    default_detail = "Meeting already confirmed"


class RoomAlreadyConfirmed(AlreadyConfirmed):
    """Availability was submitted to a room whose meeting is confirmed."""

    code = "room_already_confirmed"
    default_detail = "Room is confirmed and no longer accepts availability"


class RoomFull(SchedulingError):
    code = "room_full"
    status_code = 409
    default_detail = "Room is full"


class NotFound(SchedulingError):
    code = "not_found"
    status_code = 404
    default_detail = "Room not found"


class Unauthorized(SchedulingError):
    code = "unauthorized"
    status_code = 401
    default_detail = "You are not logged in"


class TransientStoreFailure(SchedulingError):
    code = "store_unavailable"
    status_code = 503
    retryable = True
    default_detail = "Storage is temporarily unavailable, try again"
