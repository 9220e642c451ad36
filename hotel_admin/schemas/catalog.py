from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum


class RoomStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class HotelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=255)
    currency: str = Field("USD", min_length=3, max_length=3)
    timezone: str = Field("UTC", max_length=64)


class HotelUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=255)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    timezone: Optional[str] = Field(None, max_length=64)


class HotelResponse(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    currency: str
    timezone: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class RoomTypeCreate(BaseModel):
    """
    New room type. When a room-number range is given the rooms are created
    too and `total_rooms` is set to the size of the range.
    """
    hotel_id: str = Field(..., min_length=1, max_length=36)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    base_price: Decimal = Field(Decimal("0"), ge=0)
    max_occupancy: int = Field(1, ge=1)
    total_rooms: Optional[int] = Field(None, ge=0)
    room_prefix: str = Field("", max_length=10)
    start_room_number: Optional[int] = Field(None, ge=0)
    end_room_number: Optional[int] = Field(None, ge=0)

    @model_validator(mode='after')
    def validate_range(self):
        bounds = (self.start_room_number, self.end_room_number)
        if (bounds[0] is None) != (bounds[1] is None):
            raise ValueError("start_room_number and end_room_number must be given together")
        if bounds[0] is not None and bounds[1] < bounds[0]:
            raise ValueError("end_room_number must not be lower than start_room_number")
        return self


class RoomTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    base_price: Optional[Decimal] = Field(None, ge=0)
    max_occupancy: Optional[int] = Field(None, ge=1)
    total_rooms: Optional[int] = Field(None, ge=0)


class RoomTypeResponse(BaseModel):
    id: str
    hotel_id: str
    name: str
    description: Optional[str] = None
    base_price: Decimal
    max_occupancy: int
    total_rooms: Optional[int] = None
    capacity: int  # resolved: total_rooms, or the number of rooms of this type
    is_active: bool


class RoomCreate(BaseModel):
    hotel_id: str = Field(..., min_length=1, max_length=36)
    room_type_id: str = Field(..., min_length=1, max_length=36)
    room_number: str = Field(..., min_length=1, max_length=20)
    status: RoomStatus = RoomStatus.ACTIVE


class RoomBulkCreate(BaseModel):
    hotel_id: str = Field(..., min_length=1, max_length=36)
    room_type_id: str = Field(..., min_length=1, max_length=36)
    prefix: str = Field("", max_length=10)
    start_number: int = Field(..., ge=0)
    end_number: int = Field(..., ge=0)

    @model_validator(mode='after')
    def validate_range(self):
        if self.end_number < self.start_number:
            raise ValueError("end_number must not be lower than start_number")
        if self.end_number - self.start_number >= 1000:
            raise ValueError("At most 1000 rooms can be added at once")
        return self


class RoomUpdate(BaseModel):
    status: Optional[RoomStatus] = None
    room_type_id: Optional[str] = Field(None, min_length=1, max_length=36)


class RoomResponse(BaseModel):
    id: str
    hotel_id: str
    room_type_id: str
    room_number: str
    status: RoomStatus

    class Config:
        from_attributes = True
