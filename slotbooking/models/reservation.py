import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Date, DateTime, Enum, ForeignKey, PrimaryKeyConstraint
from sqlalchemy.orm import relationship

from slotbooking.database import Base
from slotbooking.services.time_interval import format_time


class ReservationStatus(enum.Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Subject aus dem Token des Identity-Service
    user_id = Column(String, nullable=False, index=True)
    reservation_date = Column(Date, nullable=False, index=True)
    status = Column(Enum(ReservationStatus), nullable=False, default=ReservationStatus.CONFIRMED)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    slot_links = relationship("ReservationSlot", back_populates="reservation", order_by="ReservationSlot.slot_id")
    claims = relationship("BookedSlot", back_populates="reservation")

    @property
    def slots(self) -> list:
        return sorted((link.slot for link in self.slot_links), key=lambda s: s.open_minute)

    @property
    def start_time(self) -> str | None:
        slots = self.slots
        return format_time(slots[0].open_minute) if slots else None

    @property
    def end_time(self) -> str | None:
        slots = self.slots
        return format_time(slots[-1].close_minute) if slots else None


class ReservationSlot(Base):
    """
    Verknüpfung Reservierung <-> Slot.
    Wird einmalig beim Anlegen geschrieben und danach nie verändert.
    """
    __tablename__ = "reservation_slots"

    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=False)
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="RESTRICT"), nullable=False)

    reservation = relationship("Reservation", back_populates="slot_links")
    slot = relationship("WeekdaySlot")

    __table_args__ = (
        PrimaryKeyConstraint("reservation_id", "slot_id"),
    )


class BookedSlot(Base):
    """
    Belegung eines Slots an einem Datum durch eine bestätigte Reservierung.

    Der Primärschlüssel (slot_id, reservation_date) verhindert Doppelbuchungen
    auch bei parallelen Anfragen. Beim Stornieren wird die Zeile gelöscht.
    """
    __tablename__ = "booked_slots"

    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="RESTRICT"), nullable=False)
    reservation_date = Column(Date, nullable=False)
    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=False)

    reservation = relationship("Reservation", back_populates="claims")

    __table_args__ = (
        PrimaryKeyConstraint("slot_id", "reservation_date", name="pk_booked_slot_date"),
    )
