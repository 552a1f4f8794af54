import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from slotbooking.database import get_db
from slotbooking.services.facility_directory import get_facility_directory
from slotbooking.services.reservation_service import CallerContext
from slotbooking.services.slot_service import SlotScheduler
from slotbooking.schemas.slot import SlotCreate, SlotUpdate, SlotResponse, SlotPage
from slotbooking.utils.security import get_caller

logger = logging.getLogger("slotbooking.routers.slots")

router = APIRouter(prefix="/slots", tags=["slots"])


def get_slot_scheduler(db: Session = Depends(get_db)) -> SlotScheduler:
    return SlotScheduler(db, get_facility_directory(db))


@router.get("/", response_model=SlotPage)
def get_slots(
    unit_id: Optional[int] = Query(default=None, gt=0),
    day_of_week: Optional[int] = Query(default=None, ge=0, le=6),
    ids: Optional[list[int]] = Query(default=None),
    active: Optional[bool] = None,
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    scheduler: SlotScheduler = Depends(get_slot_scheduler),
    caller: CallerContext = Depends(get_caller)
):
    items, total = scheduler.find_many(
        unit_id=unit_id,
        day_of_week=day_of_week,
        ids=ids,
        active=active,
        limit=limit,
        offset=offset
    )
    return SlotPage(items=items, total=total)


@router.get("/{id}", response_model=SlotResponse)
def get_slot(id: int, scheduler: SlotScheduler = Depends(get_slot_scheduler), caller: CallerContext = Depends(get_caller)):
    return scheduler.get(id)


@router.post("/", response_model=SlotResponse, status_code=201)
def create_slot(
    request: SlotCreate,
    scheduler: SlotScheduler = Depends(get_slot_scheduler),
    caller: CallerContext = Depends(get_caller)
):
    logger.debug(f"User {caller.user_id} legt Slot an: {request}")
    return scheduler.create(request)


@router.patch("/{id}", response_model=SlotResponse)
def update_slot(
    id: int,
    changes: SlotUpdate,
    scheduler: SlotScheduler = Depends(get_slot_scheduler),
    caller: CallerContext = Depends(get_caller)
):
    return scheduler.update(id, changes)


@router.delete("/{id}")
def delete_slot(id: int, scheduler: SlotScheduler = Depends(get_slot_scheduler), caller: CallerContext = Depends(get_caller)):
    scheduler.delete(id)
    return {"message": "Slot gelöscht"}
