from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime

from slotbooking.models.reservation import ReservationStatus


class SlotInfo(BaseModel):
    id: int
    unit_id: int
    day_of_week: int
    open_time: str
    close_time: str

    model_config = {"from_attributes": True}


class ReservationCreate(BaseModel):
    reservation_date: date
    slot_ids: list[int] = Field(min_length=1)

    @field_validator('reservation_date')
    @classmethod
    def reservation_date_not_in_past(cls, v):
        if v < date.today():
            raise ValueError('Reservierungsdatum darf nicht in der Vergangenheit liegen')
        return v


class ReservationResponse(BaseModel):
    id: int
    user_id: str
    reservation_date: date
    status: ReservationStatus
    start_time: Optional[str]
    end_time: Optional[str]
    slots: list[SlotInfo]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class ReservationPage(BaseModel):
    items: list[ReservationResponse]
    total: int
