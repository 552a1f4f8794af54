import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from slotbooking.database import atomic
from slotbooking.errors import NotFoundError, InvalidArgumentError, AlreadyExistsError
from slotbooking.models.reservation import Reservation, ReservationSlot, ReservationStatus, BookedSlot
from slotbooking.services.slot_service import SlotScheduler
from slotbooking.services.time_interval import is_contiguous_chain, weekday_of, DAY_NAMES

logger = logging.getLogger("slotbooking.services.reservation_service")

ALREADY_BOOKED = "Ein oder mehrere Slots sind an diesem Datum bereits gebucht"


@dataclass(frozen=True)
class CallerContext:
    """Identität des Aufrufers, vom Identity-Service bereits authentifiziert."""
    user_id: str


class ReservationPlanner:
    """
    Buchung zusammenhängender Slots einer Unit für ein konkretes Datum.

    Statusübergänge: CONFIRMED (nur über create) -> CANCELLED (nur über cancel).
    """

    def __init__(self, db: Session, slots: SlotScheduler):
        self.db = db
        self.slots = slots

    def _query(self):
        return self.db.query(Reservation).options(
            joinedload(Reservation.slot_links).joinedload(ReservationSlot.slot)
        )

    def get(self, reservation_id: int) -> Reservation:
        reservation = self._query().filter(Reservation.id == reservation_id).first()
        if not reservation:
            raise NotFoundError(f"Reservierung: {reservation_id} nicht gefunden")
        return reservation

    def find_many(
        self,
        user_id: Optional[str] = None,
        reservation_date: Optional[date] = None,
        status: Optional[ReservationStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> tuple[list[Reservation], int]:
        filters = []
        if user_id:
            filters.append(Reservation.user_id == user_id)
        if reservation_date:
            filters.append(Reservation.reservation_date == reservation_date)
        if status:
            filters.append(Reservation.status == status)

        total = self.db.query(Reservation).filter(*filters).count()

        # Paginierung auf den Reservierungen, nicht auf den gejointen Zeilen
        id_query = self.db.query(Reservation.id).filter(*filters).order_by(Reservation.id).offset(offset)
        if limit is not None:
            id_query = id_query.limit(limit)
        ids = [row.id for row in id_query.all()]

        items = self._query().filter(Reservation.id.in_(ids)).order_by(Reservation.id).all() if ids else []
        return items, total

    def create(self, caller: CallerContext, reservation_date: date, slot_ids: list[int]) -> Reservation:
        logger.debug(f"Reservierung für User {caller.user_id} am {reservation_date}, Slots {slot_ids}")

        with atomic(self.db, ALREADY_BOOKED):
            # 1. Schneller Vorab-Check, bevor Slot-Daten geladen werden
            if self._count_booked(reservation_date, slot_ids) > 0:
                logger.warning(f"Slots {slot_ids} am {reservation_date} bereits gebucht")
                raise AlreadyExistsError(ALREADY_BOOKED)

            if not slot_ids:
                raise InvalidArgumentError("Mindestens ein Slot muss angegeben werden")

            # 2. Slots laden
            slots, _ = self.slots.find_many(ids=slot_ids)
            missing = sorted(set(slot_ids) - {s.id for s in slots})
            if missing:
                raise NotFoundError(f"Slots nicht gefunden: {missing}")
            inactive = [s.id for s in slots if not s.active]
            if inactive:
                raise InvalidArgumentError(f"Slots sind deaktiviert: {inactive}")

            # 3. Gleiche Unit
            if len({s.unit_id for s in slots}) != 1:
                raise InvalidArgumentError("Alle Slots müssen zur selben Unit gehören")

            # 4. Gleicher Wochentag, passend zum Datum
            weekdays = {s.day_of_week for s in slots}
            if len(weekdays) != 1 or weekdays.pop() != weekday_of(reservation_date):
                raise InvalidArgumentError(
                    f"Alle Slots müssen am Wochentag der Reservierung liegen "
                    f"({DAY_NAMES[weekday_of(reservation_date)]})"
                )

            # 5. Lückenlos und ohne Überschneidung
            if len(set(slot_ids)) != len(slot_ids):
                raise InvalidArgumentError("Slots dürfen nicht doppelt angegeben werden")
            if not is_contiguous_chain(s.interval() for s in slots):
                raise InvalidArgumentError("Alle Slots müssen zeitlich lückenlos aneinander anschließen")

            # 6. Reservierung, Verknüpfungen und Belegungen in einem Schritt
            now = datetime.now(timezone.utc)
            reservation = Reservation(
                user_id=caller.user_id,
                reservation_date=reservation_date,
                status=ReservationStatus.CONFIRMED,
                created_at=now,
                updated_at=now
            )
            self.db.add(reservation)
            self.db.flush()

            for slot_id in slot_ids:
                self.db.add(ReservationSlot(reservation_id=reservation.id, slot_id=slot_id))
                self.db.add(BookedSlot(slot_id=slot_id, reservation_date=reservation_date, reservation_id=reservation.id))

        logger.info(f"Reservierung {reservation.id} für User {caller.user_id} am {reservation_date} bestätigt")
        return self.get(reservation.id)

    def cancel(self, reservation_id: int) -> Reservation:
        """
        Storniert die Reservierung und gibt die Slots für das Datum wieder frei.
        Erneutes Stornieren ist erlaubt und aktualisiert nur updated_at.
        """
        with atomic(self.db, f"Reservierung: {reservation_id} wurde parallel geändert"):
            reservation = self.db.query(Reservation).filter(Reservation.id == reservation_id).first()
            if not reservation:
                raise NotFoundError(f"Reservierung: {reservation_id} nicht gefunden")

            self.db.query(BookedSlot).filter(
                BookedSlot.reservation_id == reservation_id
            ).delete(synchronize_session=False)

            reservation.status = ReservationStatus.CANCELLED
            reservation.updated_at = datetime.now(timezone.utc)

        logger.info(f"Reservierung {reservation_id} storniert")
        return self.get(reservation_id)

    def _count_booked(self, reservation_date: date, slot_ids: list[int]) -> int:
        return self.db.query(Reservation.id).join(
            ReservationSlot, ReservationSlot.reservation_id == Reservation.id
        ).filter(
            Reservation.reservation_date == reservation_date,
            Reservation.status == ReservationStatus.CONFIRMED,
            ReservationSlot.slot_id.in_(slot_ids)
        ).distinct().count()
