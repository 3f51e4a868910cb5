"""Engine, session factory and the request-scoped session dependency."""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from stableplan.config import get_settings
from stableplan.models.base import Base

settings = get_settings()

is_sqlite = settings.DATABASE_URL.startswith("sqlite")

engine = create_engine(
    settings.DATABASE_URL,
    # Pooled SQLite connections are shared across request threads
    connect_args={"check_same_thread": False} if is_sqlite else {},
    echo=settings.SQL_ECHO,
)

if is_sqlite:
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # ON DELETE SET NULL on plan provenance and session logs needs this
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create any missing tables for the registered models."""
    import stableplan.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
