"""Room routes for creating, joining and scheduling rooms."""
from datetime import datetime

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from meetroom.core.database import get_session
from meetroom.models import TimeRangeMode
from meetroom.routes.deps import (
    clear_session_cookie,
    get_current_user,
    get_session_token,
    redirect_with_notice,
    set_session_cookie,
    wants_json,
)
from meetroom.scheduling.access import CurrentUser, issue_session_token, revoke_session_token
from meetroom.scheduling.reconciliation import (
    RoomPublic,
    RoomSnapshot,
    TimeRangePublic,
    cancel_meeting,
    confirm_meeting,
    get_room_state,
    submit_availability,
)
from meetroom.scheduling.rooms import create_room, join_room
from meetroom.scheduling.store import retry_transient

router = APIRouter(tags=["rooms"])


@router.post("/rooms")
async def create(
    request: Request,
    title: str = Form(..., min_length=1),
    host_name: str = Form(..., min_length=1),
    start: datetime = Form(...),
    end: datetime = Form(...),
    timezone: str = Form("UTC"),
    max_attendees: int | None = Form(None, ge=1),
    session: Session = Depends(get_session),
):
    """
    Create a room and sign in as its host.

    The proposed availability window must start before it ends. Returns
    the room id and join code as JSON for AJAX requests, otherwise
    redirects to the dashboard.
    """
    room, host = create_room(
        session,
        title=title,
        host_name=host_name,
        start=start,
        end=end,
        timezone=timezone,
        max_attendees=max_attendees,
    )
    token = issue_session_token(session, host)

    if wants_json(request):
        response = JSONResponse(
            {"room_id": room.id, "attendee_id": host.id, "secret": room.secret},
            status_code=201,
        )
    else:
        response = redirect_with_notice("/dashboard", "Room created")
    return set_session_cookie(response, token)


@router.post("/rooms/join")
async def join(
    request: Request,
    secret: str = Form(..., min_length=1),
    name: str = Form(..., min_length=1),
    session: Session = Depends(get_session),
):
    """Join a room by its secret code and sign in as a new attendee."""
    attendee = join_room(session, secret, name)
    token = issue_session_token(session, attendee)

    if wants_json(request):
        response = JSONResponse(
            {"room_id": attendee.room_id, "attendee_id": attendee.id},
            status_code=201,
        )
    else:
        response = redirect_with_notice("/dashboard", "Joined room")
    return set_session_cookie(response, token)


@router.get("/rooms/me", response_model=RoomSnapshot)
def room_state(
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Get the signed-in attendee's room.

    Returns the room with its state, all attendees, all time ranges and
    the per-attendee timeline.
    """
    return retry_transient(get_room_state, session, user.room_id, user.attendee_id)


@router.post("/rooms/me/availability")
async def submit(
    request: Request,
    start: datetime = Form(...),
    end: datetime = Form(...),
    mode: TimeRangeMode = Form(...),
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Submit a FREE or BUSY range for the signed-in attendee.

    Fails with 400 if start is not before end and 409 once the meeting is
    confirmed.
    """
    ranges = submit_availability(
        session, user.room_id, user.attendee_id, start, end, mode
    )

    if wants_json(request):
        return JSONResponse({
            "success": True,
            "ranges": [
                TimeRangePublic.model_validate(r).model_dump(mode="json") for r in ranges
            ],
        })

    return redirect_with_notice("/dashboard", "Meeting time submitted")


@router.post("/rooms/me/confirm")
async def confirm(
    request: Request,
    start: datetime = Form(...),
    end: datetime = Form(...),
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Confirm the actual meeting time (host only).

    The window can be set once; later attempts fail with 409.
    """
    room = confirm_meeting(
        session,
        user.room_id,
        start,
        end,
        caller_is_host=user.is_host,
        confirmed_by=user.attendee_id,
    )

    if wants_json(request):
        return JSONResponse(RoomPublic.model_validate(room).model_dump(mode="json"))

    return redirect_with_notice("/dashboard", "Meeting confirmed")


@router.post("/rooms/me/cancel")
async def cancel(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Cancel the meeting (host only), deleting the room and everyone's sessions."""
    cancel_meeting(session, user.room_id, caller_is_host=user.is_host)

    if wants_json(request):
        response = JSONResponse({"success": True})
    else:
        response = redirect_with_notice("/", "Meeting cancelled")
    return clear_session_cookie(response)


@router.post("/logout")
async def logout(
    request: Request,
    token: str | None = Depends(get_session_token),
    session: Session = Depends(get_session),
):
    """Sign out of the current room."""
    revoke_session_token(session, token)

    if wants_json(request):
        response = JSONResponse({"success": True})
    else:
        response = redirect_with_notice("/")
    return clear_session_cookie(response)
