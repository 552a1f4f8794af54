"""
Tests für die Unit of Work (atomic).

Testet:
- Abbildung von Store-Fehlern auf ConflictError
- Sperrverhalten der SQLite-Transaktionen
"""
import sqlite3

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from slotbooking.database import Base, atomic, create_db_engine
from slotbooking.errors import ConflictError
from slotbooking.models import Unit, ReservationSlot, BookedSlot


class TestAtomicErrors:

    def test_foreign_key_violation_is_not_a_conflict(self, db):
        """Fremdschlüssel-Fehler sind Programmfehler und kein Buchungskonflikt"""
        with pytest.raises(IntegrityError):
            with atomic(db, "Konflikt"):
                db.add(ReservationSlot(reservation_id=999, slot_id=999))

        assert db.query(ReservationSlot).count() == 0

    def test_unique_violation_is_a_conflict(self, db, planner, caller, friday_slots, friday):
        a = friday_slots[0]
        reservation = planner.create(caller, friday, [a.id])

        with pytest.raises(ConflictError) as exc_info:
            with atomic(db, "Slot schon belegt"):
                db.execute(insert(BookedSlot).values(
                    slot_id=a.id, reservation_date=friday, reservation_id=reservation.id
                ))

        assert exc_info.value.message == "Slot schon belegt"
        assert db.query(BookedSlot).count() == 1

    def test_other_errors_roll_back(self, db):
        with pytest.raises(ValueError):
            with atomic(db, "Konflikt"):
                db.add(Unit(name="Platz 9", active=True))
                db.flush()
                raise ValueError("abgebrochen")

        assert db.query(Unit).filter(Unit.name == "Platz 9").count() == 0


@pytest.fixture
def db_file(tmp_path):
    path = tmp_path / "locks.db"
    engine = create_db_engine(f"sqlite:///{path}")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session, path
    finally:
        session.close()
        engine.dispose()


def can_take_write_lock(path) -> bool:
    """Versucht ohne Wartezeit eine Schreibsperre über eine zweite Verbindung zu bekommen."""
    other = sqlite3.connect(path, timeout=0, isolation_level=None)
    try:
        other.execute("BEGIN IMMEDIATE")
        other.execute("ROLLBACK")
        return True
    except sqlite3.OperationalError:
        return False
    finally:
        other.close()


class TestSqliteLocking:

    def test_read_does_not_take_write_lock(self, db_file):
        session, path = db_file
        session.query(Unit).count()

        assert session.in_transaction()
        assert can_take_write_lock(path)

    def test_atomic_takes_write_lock(self, db_file):
        session, path = db_file

        with atomic(session, "Konflikt"):
            session.query(Unit).count()
            assert not can_take_write_lock(path)

        assert can_take_write_lock(path)

    def test_atomic_after_read_takes_write_lock(self, db_file):
        """Eine offene Lese-Transaktion wird vor der Unit of Work beendet"""
        session, path = db_file
        session.query(Unit).count()

        with atomic(session, "Konflikt"):
            assert not can_take_write_lock(path)
            session.add(Unit(name="Platz 1", active=True))

        assert session.query(Unit).count() == 1
