"""Database configuration and session management for SQLite.

This module configures the SQLite database engine with settings suited to
a small multi-user web application: WAL mode for concurrent access and
foreign key enforcement for data integrity.

SQLite Configuration Choices:
    - **WAL (Write-Ahead Logging)**: Readers keep working while a writer
      holds the lock, so attendees can load the dashboard while someone
      else submits availability or the purge job deletes expired rooms.

    - **Foreign Keys**: Disabled by default in SQLite. Enabled so that a
      TimeRange can never point at a missing Attendee, nor an Attendee at
      a missing Room.

    - **timeout**: The driver's busy timeout. Concurrent writers (two hosts
      racing to confirm, for example) wait up to this long for the write
      lock; past it the driver raises ``OperationalError``, which the
      store layer reports as a retryable failure.

    - **check_same_thread=False**: Required for FastAPI, whose dependency
      injection may hand a session to a different worker thread.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from meetroom.core.config import settings


def sqlite_connect_args(timeout: float) -> dict:
    """Driver arguments for a SQLite connection."""
    return {"check_same_thread": False, "timeout": timeout}


connect_args = (
    sqlite_connect_args(settings.db_timeout_seconds)
    if settings.database_url.startswith("sqlite")
    else {}
)

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    These settings are connection-level, not database-level, so they must
    be set each time a new connection is established from the pool.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if engine.dialect.name == "sqlite":
    sa_event.listen(engine, "connect", set_sqlite_pragma)


def create_db_and_tables():
    """Create all database tables."""
    # Import models so their tables are registered on the metadata
    import meetroom.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session
