"""
Shared fixtures: an in-memory SQLite database per test, seed data and an
authenticated API client.
"""

from datetime import date
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stableplan.database import get_db
from stableplan.main import app
from stableplan.models import (
    AssignmentPermission,
    Base,
    Horse,
    HorseAssignment,
    PlanBlock,
    PlannedSession,
    Programme,
    ProgrammeStatus,
    ProgrammeVersion,
    Slot,
    User,
    UserRole,
)
from stableplan.schemas.schedule import DayEntry, ScheduleBlock, entries_to_json
from stableplan.services.auth_service import create_access_token

MONDAY = date(2025, 1, 6)

WEEK_TITLES = ["Flat work", "Hack", "Rest", "Jumping", "Lunge", "Canter sets", "Rest"]


def build_week(week: int = 1, titles: Optional[List[str]] = None) -> List[DayEntry]:
    """Seven entries for one week; titles equal to "Rest" become rest days."""
    entries = []
    for day, title in enumerate(titles or WEEK_TITLES, start=1):
        if title == "Rest":
            entries.append(DayEntry.rest(week, day))
            continue
        entries.append(DayEntry(
            week=week,
            day=day,
            title=title,
            category="training",
            duration_min=30,
            duration_max=45,
            intensity_rpe_min=4,
            intensity_rpe_max=6,
            blocks=[
                ScheduleBlock(name="Warm-up", text="10 min walk"),
                ScheduleBlock(name="Main", text=title),
            ],
        ))
    return entries


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def trainer(db_session) -> User:
    user = User(email="trainer@example.com", name="Tess Trainer", role=UserRole.TRAINER)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def rider(db_session) -> User:
    user = User(email="rider@example.com", name="Rory Rider", role=UserRole.RIDER)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def horse(db_session, trainer) -> Horse:
    horse = Horse(name="Biscuit")
    db_session.add(horse)
    db_session.flush()
    db_session.add(HorseAssignment(
        user_id=trainer.id, horse_id=horse.id, permission=AssignmentPermission.EDIT
    ))
    db_session.commit()
    return horse


@pytest.fixture
def programme(db_session, trainer) -> Programme:
    programme = Programme(name="Foundation", created_by_id=trainer.id)
    db_session.add(programme)
    db_session.commit()
    return programme


@pytest.fixture
def published_version(db_session, programme) -> ProgrammeVersion:
    version = ProgrammeVersion(
        programme_id=programme.id,
        version=1,
        status=ProgrammeStatus.PUBLISHED,
        num_weeks=1,
        manual_html="<h1>Foundation manual</h1>",
        manual_file_name="foundation.docx",
        schedule_data=entries_to_json(build_week()),
    )
    db_session.add(version)
    db_session.flush()
    programme.status = ProgrammeStatus.PUBLISHED
    programme.latest_version_id = version.id
    db_session.commit()
    return version


@pytest.fixture
def book_session(db_session):
    """Factory putting a planned session outside any applied plan on a horse's calendar."""
    def book(horse_id: int, on: date, slot: Slot = Slot.AM) -> PlannedSession:
        block = PlanBlock(horse_id=horse_id, name="Manual", start_date=on, num_weeks=1)
        session = PlannedSession(
            plan_block=block,
            horse_id=horse_id,
            date=on,
            slot=slot,
            session_type="Farrier",
        )
        db_session.add_all([block, session])
        db_session.commit()
        return session

    return book


# =============================================================================
# API
# =============================================================================


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(trainer):
    return {"Authorization": f"Bearer {create_access_token(trainer.id)}"}


@pytest.fixture
def rider_headers(rider):
    return {"Authorization": f"Bearer {create_access_token(rider.id)}"}
