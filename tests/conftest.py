"""
Pytest Fixtures für Slotbooking.

Tests laufen gegen eine In-Memory-SQLite-Datenbank. StaticPool sorgt dafür,
dass App und Tests dieselbe Verbindung (und damit dieselbe DB) sehen.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
import requests
from datetime import date, timedelta
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from slotbooking.main import app
from slotbooking.database import Base, get_db, create_db_engine
from slotbooking.models import Unit, WeekdaySlot
from slotbooking.services.facility_directory import SqlFacilityDirectory
from slotbooking.services.reservation_service import ReservationPlanner, CallerContext
from slotbooking.services.slot_service import SlotScheduler
from slotbooking.utils.security import create_access_token


# ============ DATENBANK SETUP ============

engine = create_db_engine("sqlite://", poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# ============ BASIS FIXTURES ============

@pytest.fixture(scope="function")
def db():
    """Frische Datenbank für jeden Test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """FastAPI TestClient, der die Test-DB statt der echten verwendet."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============ SERVICE FIXTURES ============

@pytest.fixture
def scheduler(db):
    return SlotScheduler(db, SqlFacilityDirectory(db))


@pytest.fixture
def planner(db, scheduler):
    return ReservationPlanner(db, scheduler)


@pytest.fixture
def caller():
    return CallerContext(user_id="3f1c2a9e-0000-4000-8000-000000000001")


# ============ STAMMDATEN FIXTURES ============

def next_weekday(day_of_week: int) -> date:
    """Nächstes Datum (ab morgen) mit dem Wochentag, Sonntag=0."""
    check_date = date.today() + timedelta(days=1)
    while check_date.isoweekday() % 7 != day_of_week:
        check_date += timedelta(days=1)
    return check_date


FRIDAY = 5


@pytest.fixture
def unit(db):
    """Erstellt Test-Platz"""
    court = Unit(name="Platz 1", active=True)
    db.add(court)
    db.commit()
    db.refresh(court)
    return court


@pytest.fixture
def other_unit(db):
    court = Unit(name="Platz 2", active=True)
    db.add(court)
    db.commit()
    db.refresh(court)
    return court


def make_slot(db, unit_id: int, day_of_week: int, open_minute: int, close_minute: int, active: bool = True) -> WeekdaySlot:
    slot = WeekdaySlot(
        unit_id=unit_id,
        day_of_week=day_of_week,
        open_minute=open_minute,
        close_minute=close_minute,
        active=active
    )
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


@pytest.fixture
def friday_slots(db, unit):
    """Freitags-Slots 09:00-10:00, 10:00-11:00 und 11:00-12:00"""
    return [
        make_slot(db, unit.id, FRIDAY, 9 * 60, 10 * 60),
        make_slot(db, unit.id, FRIDAY, 10 * 60, 11 * 60),
        make_slot(db, unit.id, FRIDAY, 11 * 60, 12 * 60),
    ]


@pytest.fixture
def friday():
    return next_weekday(FRIDAY)


# ============ FACILITY-SERVICE FAKES ============

class FakeResponse:

    def __init__(self, status_code: int):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeHttpSession:
    """Ersetzt requests.Session, antwortet immer mit demselben Statuscode"""

    def __init__(self, status_code: int):
        self.status_code = status_code
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        return FakeResponse(self.status_code)


# ============ AUTH TOKEN FIXTURES ============

@pytest.fixture
def user_token(caller):
    return create_access_token({"sub": caller.user_id})


@pytest.fixture
def other_user_token():
    return create_access_token({"sub": "3f1c2a9e-0000-4000-8000-000000000002"})


# ============ HELPER FUNKTIONEN ============

def auth_header(token: str) -> dict:
    """Erstellt Authorization Header"""
    return {"Authorization": f"Bearer {token}"}
