"""Shared route dependencies."""
from urllib.parse import urlencode

from fastapi import Depends, Request
from fastapi.responses import RedirectResponse, Response
from sqlmodel import Session

from meetroom.core.config import settings
from meetroom.core.database import get_session
from meetroom.scheduling.access import CurrentUser, resolve_current_user


def wants_json(request: Request) -> bool:
    """Check if the client prefers JSON response (AJAX request)."""
    accept = request.headers.get("accept", "")
    return "application/json" in accept


def get_session_token(request: Request) -> str | None:
    return request.cookies.get(settings.session_cookie_name)


def get_current_user(
    token: str | None = Depends(get_session_token),
    session: Session = Depends(get_session),
) -> CurrentUser:
    """Resolve the signed-in attendee, or raise Unauthorized."""
    return resolve_current_user(session, token)


def redirect_with_notice(url: str, notice: str | None = None) -> RedirectResponse:
    """303 redirect, optionally carrying a notification for the next page."""
    if notice:
        url = f"{url}?{urlencode({'notice': notice})}"
    return RedirectResponse(url, status_code=303)


def set_session_cookie(response: Response, token: str) -> Response:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        httponly=True,
        samesite="lax",
    )
    return response


def clear_session_cookie(response: Response) -> Response:
    response.delete_cookie(settings.session_cookie_name)
    return response
