"""Database configuration and session management for SQLite.

The engine is configured for a small web service sharing one SQLite file:

    - **WAL (Write-Ahead Logging)**: readers are not blocked while an invite
      or RSVP is being written, and the background push-retry job can write
      while users read their calendars.

    - **Foreign Keys**: off by default in SQLite. Enabled so that deleting a
      CalendarEvent also removes its Attendee rows (``ON DELETE CASCADE``).

    - **check_same_thread=False**: FastAPI may hand a session to a different
      thread than the one that opened the connection.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from cpd_calendar.core.config import settings

connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


@sa_event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    Pragmas are connection-level, so they are applied every time the pool
    opens a new connection.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_and_tables():
    """Create all database tables."""
    # Imported for its side effect of registering the table models.
    import cpd_calendar.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session
