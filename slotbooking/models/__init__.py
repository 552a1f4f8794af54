from slotbooking.models.unit import Unit
from slotbooking.models.slot import WeekdaySlot
from slotbooking.models.reservation import Reservation, ReservationSlot, ReservationStatus, BookedSlot
