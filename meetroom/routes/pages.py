"""HTML pages: the entry page and the room dashboard."""
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlmodel import Session

from meetroom.core.database import get_session
from meetroom.models import RoomState, TimeRangeMode
from meetroom.routes.deps import get_current_user
from meetroom.scheduling.access import CurrentUser
from meetroom.scheduling.reconciliation import get_room_state
from meetroom.scheduling.store import retry_transient

router = APIRouter(tags=["pages"])
templates = Jinja2Templates(directory=Path(__file__).resolve().parent.parent / "templates")


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, notice: str | None = None):
    """Display the create-room and join-room forms."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {"notice": notice},
    )


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    request: Request,
    notice: str | None = None,
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Display the signed-in attendee's room.

    Shows the proposed window and, depending on the room state:
    - CONFIRMED: the confirmed meeting time, read-only
    - OPEN, host: the confirm and cancel form
    - OPEN, attendee: the availability form

    followed by every attendee's timeline. Visitors without a valid
    session are sent back to the entry page.
    """
    snapshot = retry_transient(get_room_state, session, user.room_id, user.attendee_id)

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "snapshot": snapshot,
            "room": snapshot.room,
            "is_confirmed": snapshot.state == RoomState.CONFIRMED,
            "is_host": snapshot.is_host,
            "modes": list(TimeRangeMode),
            "notice": notice,
        },
    )
