from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class SlotCreate(BaseModel):
    unit_id: int = Field(gt=0)
    day_of_week: int = Field(ge=0, le=6, description="0=Sonntag ... 6=Samstag")
    open_time: str = Field(examples=["08:00"], description="Startzeit HH:MM")
    close_time: str = Field(examples=["22:00"], description="Endzeit HH:MM")


class SlotUpdate(BaseModel):
    """Partielles Update: nicht gesetzte Felder (None) behalten ihren bisherigen Wert."""
    unit_id: Optional[int] = Field(default=None, gt=0)
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    active: Optional[bool] = None


class SlotResponse(BaseModel):
    id: int
    unit_id: int
    day_of_week: int
    open_time: str
    close_time: str
    active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class SlotPage(BaseModel):
    items: list[SlotResponse]
    total: int
