"""Test fixtures for the search service."""

import os
from datetime import date, datetime, timezone

import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FORMAT"] = "text"
os.environ["VIEWPORT_SAMPLE_SEED"] = "global_v1"

from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from infraster.api.deps import get_db
from infraster.db.models import (
    AccessibilityType,
    Equipment,
    ExceptionKind,
    GaugeReading,
    InformationNote,
    Infrastructure,
    OpeningSchedule,
    RoomType,
    ScheduleDay,
    ScheduleException,
    Weekday,
)
from infraster.db.session import Base, Store
from infraster.main import create_app

store = Store("sqlite://", poolclass=StaticPool)
store.open()


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=store.engine)
    yield
    Base.metadata.drop_all(bind=store.engine)


@pytest.fixture
def db():
    with store.session() as session:
        yield session


@pytest.fixture
def client(db):
    app = create_app(store)

    def _override():
        yield db

    app.dependency_overrides[get_db] = _override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ═══════════════════════════════════════════════════════════════════════
#  Builders
# ═══════════════════════════════════════════════════════════════════════

WEEKEND = (Weekday.SATURDAY, Weekday.SUNDAY)
TUESDAY_TO_SUNDAY = tuple(Weekday)[1:]
EVERY_DAY = tuple(Weekday)


def _named(db, model, name: str, **extra):
    row = db.query(model).filter_by(name=name, **extra).first()
    if row is None:
        row = model(name=name, **extra)
        db.add(row)
    return row


def add_infrastructure(
    db,
    name: str,
    *,
    address: str | None = None,
    lat: float | None = None,
    lon: float | None = None,
    capacity: float | None = None,
    in_service: bool = True,
    owner_id: int | None = None,
    information: str | None = None,
    pieces=(),
    equipements=(),
    accessibilites=(),
) -> Infrastructure:
    """Insert one infrastructure with its facet memberships (equipment named after its type)."""
    infra = Infrastructure(
        name=name,
        address=address,
        latitude=lat,
        longitude=lon,
        capacity=capacity,
        in_service=in_service,
        owner_id=owner_id,
        information=information,
    )
    infra.room_types = [_named(db, RoomType, p) for p in pieces]
    infra.equipment = [_named(db, Equipment, e, equipment_type=e) for e in equipements]
    infra.accessibility_types = [_named(db, AccessibilityType, a) for a in accessibilites]
    db.add(infra)
    db.commit()
    return infra


def add_schedule(db, infra: Infrastructure, days=(), exceptions=()) -> OpeningSchedule:
    """``exceptions`` is a sequence of ``(start, end, kind)`` tuples."""
    schedule = OpeningSchedule(infrastructure_id=infra.id)
    schedule.days = [ScheduleDay(weekday=Weekday(d).value) for d in days]
    schedule.exceptions = [
        ScheduleException(start_date=start, end_date=end, kind=ExceptionKind(kind).value)
        for start, end, kind in exceptions
    ]
    db.add(schedule)
    db.commit()
    return schedule


def add_note(db, infra: Infrastructure, text: str, appears_on: date, expires_on: date | None = None) -> InformationNote:
    note = InformationNote(infrastructure_id=infra.id, text=text, appears_on=appears_on, expires_on=expires_on)
    db.add(note)
    db.commit()
    return note


def add_gauge(db, infra: Infrastructure, occupancy: float, max_occupancy: float, recorded_at: datetime) -> GaugeReading:
    reading = GaugeReading(
        infrastructure_id=infra.id,
        occupancy=occupancy,
        max_occupancy=max_occupancy,
        recorded_at=recorded_at.replace(tzinfo=timezone.utc) if recorded_at.tzinfo is None else recorded_at,
    )
    db.add(reading)
    db.commit()
    return reading
