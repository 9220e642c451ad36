from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
import re


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


def _strip_markup(v):
    """Remove script tags and inline event handlers from free text."""
    if isinstance(v, str):
        v = re.sub(r'<script[^>]*>.*?</script>', '', v, flags=re.IGNORECASE | re.DOTALL)
        v = re.sub(r'on\w+\s*=', '', v, flags=re.IGNORECASE)
    return v


class CustomerInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Guest full name")
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    country: Optional[str] = Field(None, max_length=100)
    referral_name: Optional[str] = Field(None, max_length=100)
    ref_agency: Optional[str] = Field(None, max_length=100)

    @field_validator('name', mode='before')
    @classmethod
    def sanitize_name(cls, v):
        return _strip_markup(v)


class RoomTypeSelection(BaseModel):
    room_type_id: str = Field(..., min_length=1, max_length=36)
    quantity: int = Field(..., ge=1, le=500)


def _reject_duplicate_room_types(selections: Optional[List[RoomTypeSelection]]):
    if selections is None:
        return
    seen = set()
    for selection in selections:
        if selection.room_type_id in seen:
            raise ValueError(f"Room type {selection.room_type_id} selected more than once")
        seen.add(selection.room_type_id)


class BookingCreate(BaseModel):
    hotel_id: str = Field(..., min_length=1, max_length=36)
    room_types: List[RoomTypeSelection] = Field(..., min_length=1)
    check_in: date
    nights: int = Field(..., ge=1)
    customer: CustomerInput
    total_price: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator('notes', mode='before')
    @classmethod
    def sanitize_notes(cls, v):
        return _strip_markup(v)

    @model_validator(mode='after')
    def validate_selections(self):
        _reject_duplicate_room_types(self.room_types)
        return self


class BookingUpdate(BaseModel):
    """Every field optional; anything omitted keeps its current value."""
    hotel_id: Optional[str] = Field(None, min_length=1, max_length=36)
    check_in: Optional[date] = None
    nights: Optional[int] = Field(None, ge=1)
    room_types: Optional[List[RoomTypeSelection]] = Field(None, min_length=1)
    total_price: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator('notes', mode='before')
    @classmethod
    def sanitize_notes(cls, v):
        return _strip_markup(v)

    @model_validator(mode='after')
    def validate_selections(self):
        _reject_duplicate_room_types(self.room_types)
        return self


class BookingSearch(BaseModel):
    confirmation_id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    hotel_name: Optional[str] = None
    stay_date: Optional[date] = None  # falls within [check_in, check_out]
    status: Optional[BookingStatus] = None

    def has_criteria(self) -> bool:
        for value in self.model_dump().values():
            if isinstance(value, str):
                if value.strip():
                    return True
            elif value is not None:
                return True
        return False


class CustomerResponse(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    country: Optional[str] = None
    referral_name: Optional[str] = None
    ref_agency: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class BookingRoomResponse(BaseModel):
    room_type_id: str
    room_type_name: str = ""
    room_id: Optional[str] = None
    quantity: int


class BookingResponse(BaseModel):
    id: str
    confirmation_id: str
    hotel_id: str
    hotel_name: str = ""
    customer: Optional[CustomerResponse] = None
    check_in: date
    check_out: date
    nights: int
    total_price: Optional[Decimal] = None
    notes: Optional[str] = None
    status: BookingStatus
    rooms: List[BookingRoomResponse] = []
    created_at: datetime
    updated_at: datetime
