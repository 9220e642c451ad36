"""
Block Service

Room blocks (out of order, out of service, hold) and the per-room yearly
calendar. A block takes one physical room out of inventory for one night
and counts against its room type's availability.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..exceptions import NotFoundError
from ..models.room import Room
from ..models.room_block import BLOCK_CYCLE, BlockType, RoomBlock
from ..models.user import AppUser
from ..permissions import Capability, require
from ..utils.dates import date_range, stay_dates
from ..utils.db_helpers import read_guard, transaction
from .booking_service import bookings_overlapping
from .catalog_service import CatalogService

logger = logging.getLogger(__name__)


class BlockService:

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)

    def toggle_block(
        self,
        room_id: str,
        target_date: date,
        block_type: BlockType,
        actor: AppUser,
        reason: Optional[str] = None
    ) -> Optional[RoomBlock]:
        """
        Click on a calendar cell.

        No block yet: create one of `block_type`.
        Existing block: advance OOO -> OOS -> Hold -> cleared.

        Returns the block as it now stands, or None when it was cleared.
        """
        require(actor, Capability.MANAGE_BLOCKS)

        with transaction(self.db, "Toggle room block"):
            room = self.db.get(Room, room_id)
            if room is None:
                raise NotFoundError("Room", room_id)

            block = self.db.query(RoomBlock).filter(
                RoomBlock.room_id == room_id,
                RoomBlock.date == target_date
            ).first()

            if block is None:
                block = RoomBlock(
                    room_id=room_id,
                    date=target_date,
                    type=BlockType(block_type).value,
                    reason=reason
                )
                self.db.add(block)
            else:
                next_type = BLOCK_CYCLE[BlockType(block.type)]
                if next_type is None:
                    self.db.delete(block)
                    block = None
                else:
                    block.type = next_type.value

        state = block.type if block is not None else "cleared"
        logger.info(f"Room {room_id} on {target_date}: {state}")
        return block

    @read_guard("list room blocks")
    def list_blocks(self, hotel_id: str, start: date, end: date) -> List[RoomBlock]:
        """Blocks on the hotel's rooms with start <= date < end."""
        return (
            self.db.query(RoomBlock)
            .join(Room, RoomBlock.room_id == Room.id)
            .filter(
                Room.hotel_id == hotel_id,
                RoomBlock.date >= start,
                RoomBlock.date < end
            )
            .order_by(RoomBlock.date, Room.room_number)
            .all()
        )

    @read_guard("build room calendar")
    def room_calendar(self, hotel_id: str, year: int) -> List[dict]:
        """
        One row per room of the hotel with the occupied days of `year`.

        A day shows the block type and/or the confirmation id of the
        booking occupying the room. Line items assigned to a room occupy
        that room; the others are spread over the first free rooms of their
        type in room-number order.
        """
        self.catalog.get_hotel(hotel_id)
        start, end = date(year, 1, 1), date(year + 1, 1, 1)
        days_of_year = set(date_range(start, end))

        rooms = (
            self.db.query(Room)
            .filter(Room.hotel_id == hotel_id)
            .order_by(Room.room_type_id, Room.room_number)
            .all()
        )
        rooms_by_type: Dict[str, List[Room]] = defaultdict(list)
        for room in rooms:
            rooms_by_type[room.room_type_id].append(room)

        cells: Dict[str, Dict[date, dict]] = {room.id: {} for room in rooms}

        for block in self.list_blocks(hotel_id, start, end):
            cells[block.room_id][block.date] = {"block_type": block.type, "confirmation_id": None}

        def occupy(room_id: str, nights: List[date], confirmation_id: str):
            for night in nights:
                cell = cells[room_id].setdefault(night, {"block_type": None, "confirmation_id": None})
                cell["confirmation_id"] = confirmation_id

        def is_free(room_id: str, nights: List[date]) -> bool:
            return all(
                cells[room_id].get(night, {}).get("confirmation_id") is None
                for night in nights
            )

        bookings = bookings_overlapping(self.db, hotel_id, start, end)
        pending = []
        for booking in bookings:
            nights = [n for n in stay_dates(booking.check_in, booking.nights) if n in days_of_year]
            for item in booking.rooms:
                if item.room_id and item.room_id in cells:
                    occupy(item.room_id, nights, booking.confirmation_id)
                else:
                    pending.append((booking.confirmation_id, item, nights))

        for confirmation_id, item, nights in pending:
            remaining = item.quantity
            for room in rooms_by_type.get(item.room_type_id, []):
                if remaining == 0:
                    break
                if is_free(room.id, nights):
                    occupy(room.id, nights, confirmation_id)
                    remaining -= 1
            if remaining:
                logger.debug(f"{confirmation_id}: {remaining} rooms of {item.room_type_id} not placed on calendar")

        return [
            {
                "room_id": room.id,
                "room_number": room.room_number,
                "room_type_id": room.room_type_id,
                "days": cells[room.id],
            }
            for room in rooms
        ]
