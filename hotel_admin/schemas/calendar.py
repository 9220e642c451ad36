from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import date
from enum import Enum


class BlockType(str, Enum):
    OUT_OF_ORDER = "OOO"
    OUT_OF_SERVICE = "OOS"
    HOLD = "Hold"


class BlockToggle(BaseModel):
    room_id: str = Field(..., min_length=1, max_length=36)
    date: date
    block_type: BlockType = BlockType.OUT_OF_ORDER


class RoomBlockResponse(BaseModel):
    id: str
    room_id: str
    date: date
    type: BlockType
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class BlockToggleResponse(BaseModel):
    room_id: str
    date: date
    block: Optional[RoomBlockResponse] = None  # None when the block was cleared


class CalendarCell(BaseModel):
    block_type: Optional[BlockType] = None
    confirmation_id: Optional[str] = None


class RoomCalendarRow(BaseModel):
    room_id: str
    room_number: str
    room_type_id: str
    days: Dict[date, CalendarCell]


class RoomCalendarResponse(BaseModel):
    hotel_id: str
    year: int
    rooms: List[RoomCalendarRow]
