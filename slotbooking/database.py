import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from slotbooking.config import settings
from slotbooking.errors import ConflictError

logger = logging.getLogger("slotbooking.database")

# PostgreSQL: serialization_failure, unique_violation
SERIALIZATION_FAILURE = "40001"
UNIQUE_VIOLATION = "23505"

# Execution-Option, mit der atomic() auf SQLite eine Schreibtransaktion anfordert
SQLITE_BEGIN = "sqlite_begin"


class Base(DeclarativeBase):
    pass


def create_db_engine(url: str, **kwargs):
    """
    Erstellt die Engine so, dass schreibende Transaktionen serialisierbar laufen.

    SQLite kennt kein SERIALIZABLE für lesende Transaktionen. Lesende Zugriffe
    starten dort mit BEGIN DEFERRED, atomic() fordert per Execution-Option
    BEGIN IMMEDIATE (Schreibsperre) an.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, isolation_level="SERIALIZABLE", **kwargs)

    connect_args = kwargs.pop("connect_args", {})
    connect_args.setdefault("check_same_thread", False)
    engine = create_engine(url, connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def _configure_sqlite(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        # Transaktionen steuern wir selbst über das begin-Event
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _sqlstate(exc) -> str | None:
    return getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)


def _is_serialization_failure(exc: OperationalError) -> bool:
    return _sqlstate(exc) == SERIALIZATION_FAILURE


def _is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == UNIQUE_VIOLATION:
        return True
    # SQLite meldet Primärschlüssel- und Unique-Verletzungen gleich
    return "UNIQUE constraint failed" in str(exc.orig)


def _begin_write(db: Session) -> None:
    """Öffnet auf SQLite eine Transaktion mit Schreibsperre."""
    if db.get_bind().dialect.name != "sqlite":
        return
    if db.in_transaction():
        if db.new or db.dirty or db.deleted:
            # Offene Änderungen des Aufrufers gehören zu dieser Unit of Work
            return
        # Reine Lese-Transaktion beenden, damit die Schreibsperre vor dem ersten Lesen greift
        db.commit()
    db.connection(execution_options={SQLITE_BEGIN: "IMMEDIATE"})


@contextmanager
def atomic(db: Session, conflict_detail: str):
    """
    Unit of Work: alles oder nichts.

    Commit am Ende, Rollback bei jedem Fehler. Unique-/Primärschlüssel-Verletzungen
    und Serialisierungsfehler werden als ConflictError gemeldet, alle anderen
    Store-Fehler unverändert weitergereicht.
    """
    try:
        _begin_write(db)
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if _is_unique_violation(exc):
            logger.warning(f"Unique-Constraint verletzt: {exc.orig}")
            raise ConflictError(conflict_detail) from exc
        logger.error(f"Constraint verletzt: {exc.orig}")
        raise
    except OperationalError as exc:
        db.rollback()
        if _is_serialization_failure(exc):
            logger.warning(f"Serialisierungskonflikt: {exc.orig}")
            raise ConflictError(conflict_detail) from exc
        raise
    except Exception:
        db.rollback()
        raise
