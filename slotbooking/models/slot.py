from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Boolean, DateTime, Index, CheckConstraint

from slotbooking.database import Base
from slotbooking.services.time_interval import TimeInterval, format_time


class WeekdaySlot(Base):
    """Wiederkehrendes Zeitfenster einer Unit an einem Wochentag (0=Sonntag)."""
    __tablename__ = "slots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Existenz prüft das Facility-Verzeichnis, daher kein Fremdschlüssel auf units
    unit_id = Column(Integer, nullable=False)
    day_of_week = Column(Integer, nullable=False)
    # Minuten seit Mitternacht
    open_minute = Column(Integer, nullable=False)
    close_minute = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("open_minute < close_minute", name="ck_slot_open_before_close"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_slot_day_of_week"),
        Index("ix_slots_unit_day", "unit_id", "day_of_week"),
    )

    @property
    def open_time(self) -> str:
        return format_time(self.open_minute)

    @property
    def close_time(self) -> str:
        return format_time(self.close_minute)

    def interval(self) -> TimeInterval:
        return TimeInterval(self.day_of_week, self.open_minute, self.close_minute)
