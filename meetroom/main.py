"""Meeting Scheduler Web Application."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from meetroom.core.config import settings
from meetroom.core.database import create_db_and_tables
from meetroom.core.scheduler import shutdown_scheduler, start_scheduler
from meetroom.routes import pages, rooms
from meetroom.routes.deps import clear_session_cookie, redirect_with_notice, wants_json
from meetroom.scheduling.errors import NotFound, SchedulingError, Unauthorized

# Configure logging
log_dir = Path.home() / ".logs" / "meetroom"
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    logger.info("Starting Meeting Scheduler application")
    create_db_and_tables()
    start_scheduler()
    yield
    # Shutdown
    shutdown_scheduler()
    logger.info("Meeting Scheduler application shut down")


app = FastAPI(
    title=settings.app_name,
    description="Collect attendees' free/busy availability and let the host confirm a meeting time",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for external access
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount static files
app.mount(
    "/static",
    StaticFiles(directory=Path(__file__).resolve().parent / "static"),
    name="static",
)

# Include routers
app.include_router(pages.router)
app.include_router(rooms.router)


def _notice_target(request: Request, exc: SchedulingError) -> str:
    """Where to send a browser after a failed request.

    Only a failed action inside a room goes back to the dashboard. Page
    loads and pre-session requests (create, join) go to the entry page, so
    a dashboard that cannot load never redirects to itself.
    """
    if isinstance(exc, (Unauthorized, NotFound)):
        return "/"
    if request.method == "GET" or not request.url.path.startswith("/rooms/me/"):
        return "/"
    return "/dashboard"


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    """
    Render scheduling failures.

    JSON clients get the status code with the error code and whether a
    retry may help. Browsers are redirected with a notification; the
    session cookie is dropped when it no longer resolves to a room.
    """
    log = logger.warning if exc.retryable else logger.info
    log(f"{request.method} {request.url.path} failed: {exc.code}: {exc.detail}")

    if wants_json(request):
        headers = {"Retry-After": "1"} if exc.retryable else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "code": exc.code, "retryable": exc.retryable},
            headers=headers,
        )

    response = redirect_with_notice(_notice_target(request, exc), exc.detail)
    in_room = request.url.path == "/dashboard" or request.url.path.startswith("/rooms/me")
    if isinstance(exc, Unauthorized) or (isinstance(exc, NotFound) and in_room):
        return clear_session_cookie(response)
    return response


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
