from pydantic import BaseModel
from typing import List
from datetime import date
from enum import Enum


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    LOW = "low"
    SOLD_OUT = "sold-out"


class AvailabilityRecordResponse(BaseModel):
    date: date
    room_type_id: str
    available: int
    total: int
    status: AvailabilityStatus

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    hotel_id: str
    check_in: date
    nights: int
    window_start: date
    window_end: date  # exclusive
    records: List[AvailabilityRecordResponse]
