import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from slotbooking.database import get_db
from slotbooking.models.reservation import ReservationStatus
from slotbooking.routers.slots import get_slot_scheduler
from slotbooking.services.reservation_service import ReservationPlanner, CallerContext
from slotbooking.services.slot_service import SlotScheduler
from slotbooking.schemas.reservation import ReservationCreate, ReservationResponse, ReservationPage
from slotbooking.utils.security import get_caller

logger = logging.getLogger("slotbooking.routers.reservations")

router = APIRouter(prefix="/reservations", tags=["reservations"])


def get_reservation_planner(
    db: Session = Depends(get_db),
    scheduler: SlotScheduler = Depends(get_slot_scheduler)
) -> ReservationPlanner:
    return ReservationPlanner(db, scheduler)


@router.get("/", response_model=ReservationPage)
def get_reservations(
    user_id: Optional[str] = None,
    reservation_date: Optional[date] = None,
    status: Optional[ReservationStatus] = None,
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    planner: ReservationPlanner = Depends(get_reservation_planner),
    caller: CallerContext = Depends(get_caller)
):
    items, total = planner.find_many(
        user_id=user_id,
        reservation_date=reservation_date,
        status=status,
        limit=limit,
        offset=offset
    )
    return ReservationPage(items=items, total=total)


@router.get("/{id}", response_model=ReservationResponse)
def get_reservation(id: int, planner: ReservationPlanner = Depends(get_reservation_planner), caller: CallerContext = Depends(get_caller)):
    return planner.get(id)


@router.post("/", response_model=ReservationResponse, status_code=201)
def create_reservation(
    request: ReservationCreate,
    planner: ReservationPlanner = Depends(get_reservation_planner),
    caller: CallerContext = Depends(get_caller)
):
    return planner.create(caller, request.reservation_date, request.slot_ids)


@router.delete("/{id}", response_model=ReservationResponse)
def cancel_reservation(id: int, planner: ReservationPlanner = Depends(get_reservation_planner), caller: CallerContext = Depends(get_caller)):
    """Storniert die Reservierung (kein physisches Löschen)."""
    return planner.cancel(id)
