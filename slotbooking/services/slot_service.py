import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from slotbooking.database import atomic
from slotbooking.errors import NotFoundError, ConflictError
from slotbooking.models.slot import WeekdaySlot
from slotbooking.models.reservation import ReservationSlot
from slotbooking.schemas.slot import SlotCreate, SlotUpdate
from slotbooking.services.time_interval import TimeInterval, overlaps, parse_time, DAY_NAMES

logger = logging.getLogger("slotbooking.services.slot_service")

CONCURRENT_SLOT_CHANGE = "Slot kollidiert mit einer parallelen Änderung, bitte erneut versuchen"


def describe_slot(slot: WeekdaySlot) -> str:
    return f"Slot: {slot.id} - day: {DAY_NAMES[slot.day_of_week]} - {slot.open_time} - {slot.close_time}"


class SlotScheduler:
    """
    Pflege der wöchentlichen Slots einer Unit.
    Jede Änderung stellt sicher, dass sich aktive Slots derselben Unit am selben
    Wochentag nicht überschneiden.
    """

    def __init__(self, db: Session, directory):
        self.db = db
        self.directory = directory

    def get(self, slot_id: int) -> WeekdaySlot:
        slot = self.db.query(WeekdaySlot).filter(WeekdaySlot.id == slot_id).first()
        if not slot:
            raise NotFoundError(f"Slot: {slot_id} nicht gefunden")
        return slot

    def find_many(
        self,
        unit_id: Optional[int] = None,
        day_of_week: Optional[int] = None,
        ids: Optional[list[int]] = None,
        active: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> tuple[list[WeekdaySlot], int]:
        query = self.db.query(WeekdaySlot)
        if unit_id is not None:
            query = query.filter(WeekdaySlot.unit_id == unit_id)
        if day_of_week is not None:
            query = query.filter(WeekdaySlot.day_of_week == day_of_week)
        if ids is not None:
            query = query.filter(WeekdaySlot.id.in_(ids))
        if active is not None:
            query = query.filter(WeekdaySlot.active == active)

        total = query.count()
        query = query.order_by(WeekdaySlot.id).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all(), total

    def create(self, request: SlotCreate) -> WeekdaySlot:
        interval = TimeInterval.from_strings(request.day_of_week, request.open_time, request.close_time)

        with atomic(self.db, CONCURRENT_SLOT_CHANGE):
            self._ensure_unit_exists(request.unit_id)
            self._ensure_no_overlap(request.unit_id, interval)

            now = datetime.now(timezone.utc)
            slot = WeekdaySlot(
                unit_id=request.unit_id,
                day_of_week=interval.day_of_week,
                open_minute=interval.open_minute,
                close_minute=interval.close_minute,
                active=True,
                created_at=now,
                updated_at=now
            )
            self.db.add(slot)

        self.db.refresh(slot)
        logger.info(f"{describe_slot(slot)} für Unit {slot.unit_id} angelegt")
        return slot

    def update(self, slot_id: int, changes: SlotUpdate) -> WeekdaySlot:
        with atomic(self.db, CONCURRENT_SLOT_CHANGE):
            slot = self.get(slot_id)

            # Nicht übergebene Felder behalten den bisherigen Wert
            unit_id = changes.unit_id if changes.unit_id is not None else slot.unit_id
            day_of_week = changes.day_of_week if changes.day_of_week is not None else slot.day_of_week
            open_minute = parse_time(changes.open_time) if changes.open_time is not None else slot.open_minute
            close_minute = parse_time(changes.close_time) if changes.close_time is not None else slot.close_minute
            active = changes.active if changes.active is not None else slot.active

            interval = TimeInterval(day_of_week, open_minute, close_minute)

            if unit_id != slot.unit_id:
                self._ensure_unit_exists(unit_id)
            # Deaktivierte Slots kollidieren nie
            if active:
                self._ensure_no_overlap(unit_id, interval, exclude_id=slot.id)

            slot.unit_id = unit_id
            slot.day_of_week = interval.day_of_week
            slot.open_minute = interval.open_minute
            slot.close_minute = interval.close_minute
            slot.active = active
            slot.updated_at = datetime.now(timezone.utc)

        self.db.refresh(slot)
        logger.info(f"{describe_slot(slot)} aktualisiert")
        return slot

    def delete(self, slot_id: int) -> None:
        """Idempotent: ein nicht (mehr) vorhandener Slot ist kein Fehler."""
        with atomic(self.db, CONCURRENT_SLOT_CHANGE):
            slot = self.db.query(WeekdaySlot).filter(WeekdaySlot.id == slot_id).first()
            if not slot:
                logger.debug(f"Slot: {slot_id} existiert nicht, nichts zu löschen")
                return

            referenced = self.db.query(ReservationSlot).filter(ReservationSlot.slot_id == slot_id).first()
            if referenced:
                raise ConflictError(
                    f"Slot: {slot_id} wird von Reservierungen referenziert und kann nur deaktiviert werden"
                )
            self.db.delete(slot)

        logger.info(f"Slot: {slot_id} gelöscht")

    def _ensure_unit_exists(self, unit_id: int) -> None:
        if not self.directory.unit_exists(unit_id):
            raise NotFoundError(f"Unit: {unit_id} nicht gefunden")

    def _ensure_no_overlap(self, unit_id: int, interval: TimeInterval, exclude_id: Optional[int] = None) -> None:
        query = self.db.query(WeekdaySlot).filter(
            WeekdaySlot.unit_id == unit_id,
            WeekdaySlot.day_of_week == interval.day_of_week,
            WeekdaySlot.active == True
        )
        if exclude_id is not None:
            query = query.filter(WeekdaySlot.id != exclude_id)

        conflicting = [s for s in query.order_by(WeekdaySlot.id).all() if overlaps(s.interval(), interval)]
        if conflicting:
            logger.warning(f"Überschneidung für Unit {unit_id}: {[s.id for s in conflicting]}")
            raise ConflictError(
                f"Überschneidender Slot für Unit {unit_id} vorhanden: "
                + "; ".join(describe_slot(s) for s in conflicting)
            )
