from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional

from ..database import get_db
from ..models.user import AppUser
from ..permissions import Capability, require
from ..schemas.calendar import (
    BlockToggle, BlockToggleResponse, RoomBlockResponse,
    RoomCalendarResponse, RoomCalendarRow
)
from ..services.block_service import BlockService
from ..utils.dependencies import get_current_user

router = APIRouter(prefix="/api/calendar", tags=["Calendar"])


@router.get("/{hotel_id}", response_model=RoomCalendarResponse)
async def get_room_calendar(
    hotel_id: str,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    """Per-room occupancy (blocks and bookings) for one year."""
    require(current_user, Capability.VIEW)
    year = year or date.today().year
    rows = BlockService(db).room_calendar(hotel_id, year)
    return RoomCalendarResponse(
        hotel_id=hotel_id,
        year=year,
        rooms=[RoomCalendarRow(**row) for row in rows]
    )


@router.post("/blocks/toggle", response_model=BlockToggleResponse)
async def toggle_block(
    toggle: BlockToggle,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    block = BlockService(db).toggle_block(toggle.room_id, toggle.date, toggle.block_type, current_user)
    return BlockToggleResponse(
        room_id=toggle.room_id,
        date=toggle.date,
        block=RoomBlockResponse.model_validate(block) if block is not None else None
    )
