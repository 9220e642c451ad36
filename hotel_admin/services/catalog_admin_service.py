"""
Catalog Admin Service

Write side of the catalog: hotels, room types and physical rooms.
Hotels and room types referenced by bookings are deactivated, never deleted.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..exceptions import NotFoundError, ValidationError
from ..models.hotel import Hotel
from ..models.room import Room, RoomStatus
from ..models.room_type import RoomType
from ..models.user import AppUser
from ..permissions import Capability, require
from ..schemas.catalog import (
    HotelCreate, HotelUpdate, RoomBulkCreate, RoomCreate,
    RoomTypeCreate, RoomTypeUpdate, RoomUpdate
)
from ..utils.db_helpers import read_guard, transaction
from .catalog_service import CatalogService

logger = logging.getLogger(__name__)


def format_room_number(prefix: str, number: int, width: int = 3) -> str:
    """'A', 7 -> 'A007'"""
    return f"{prefix or ''}{str(number).zfill(width)}"


class CatalogAdminService:

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)

    # ------------------------------------------------------------------
    # Hotels
    # ------------------------------------------------------------------

    def create_hotel(self, data: HotelCreate, actor: AppUser) -> Hotel:
        require(actor, Capability.MANAGE_CATALOG)
        with transaction(self.db, "Create hotel"):
            hotel = Hotel(**data.model_dump())
            self.db.add(hotel)
        logger.info(f"Hotel created: {hotel.name} ({hotel.id})")
        return hotel

    def update_hotel(self, hotel_id: str, data: HotelUpdate, actor: AppUser) -> Hotel:
        require(actor, Capability.MANAGE_CATALOG)
        with transaction(self.db, "Update hotel"):
            hotel = self.catalog.get_hotel(hotel_id)
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(hotel, field, value)
        return hotel

    def deactivate_hotel(self, hotel_id: str, actor: AppUser) -> Hotel:
        require(actor, Capability.MANAGE_CATALOG)
        with transaction(self.db, "Deactivate hotel"):
            hotel = self.catalog.get_hotel(hotel_id)
            hotel.is_active = False
        logger.info(f"Hotel deactivated: {hotel_id}")
        return hotel

    # ------------------------------------------------------------------
    # Room types
    # ------------------------------------------------------------------

    def create_room_type(self, data: RoomTypeCreate, actor: AppUser) -> RoomType:
        """
        Create a room type. With a room-number range the rooms
        `prefix + number` are created as well and total_rooms is set to the
        size of the range.
        """
        require(actor, Capability.MANAGE_CATALOG)

        with transaction(self.db, "Create room type"):
            self.catalog.get_hotel(data.hotel_id)

            total_rooms = data.total_rooms
            numbers: List[str] = []
            if data.start_room_number is not None:
                numbers = [
                    f"{data.room_prefix}{n}"
                    for n in range(data.start_room_number, data.end_room_number + 1)
                ]
                total_rooms = len(numbers)
                self._reject_taken_numbers(data.hotel_id, numbers)

            room_type = RoomType(
                hotel_id=data.hotel_id,
                name=data.name,
                description=data.description,
                base_price=data.base_price,
                max_occupancy=data.max_occupancy,
                total_rooms=total_rooms
            )
            self.db.add(room_type)
            self.db.flush()

            for number in numbers:
                self.db.add(Room(
                    hotel_id=data.hotel_id,
                    room_type_id=room_type.id,
                    room_number=number
                ))

        logger.info(f"Room type created: {room_type.name} with {len(numbers)} rooms")
        return room_type

    def update_room_type(self, room_type_id: str, data: RoomTypeUpdate, actor: AppUser) -> RoomType:
        require(actor, Capability.MANAGE_CATALOG)
        with transaction(self.db, "Update room type"):
            room_type = self.catalog.get_room_type(room_type_id)
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(room_type, field, value)
        return room_type

    def deactivate_room_type(self, room_type_id: str, actor: AppUser) -> RoomType:
        require(actor, Capability.MANAGE_CATALOG)
        with transaction(self.db, "Deactivate room type"):
            room_type = self.catalog.get_room_type(room_type_id)
            room_type.is_active = False
        logger.info(f"Room type deactivated: {room_type_id}")
        return room_type

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    @read_guard("list rooms")
    def list_rooms(self, hotel_id: str, room_type_id: Optional[str] = None) -> List[Room]:
        self.catalog.get_hotel(hotel_id)
        query = self.db.query(Room).filter(Room.hotel_id == hotel_id)
        if room_type_id:
            query = query.filter(Room.room_type_id == room_type_id)
        return query.order_by(Room.room_number).all()

    def _get_room(self, room_id: str) -> Room:
        room = self.db.get(Room, room_id)
        if room is None:
            raise NotFoundError("Room", room_id)
        return room

    def _room_type_in_hotel(self, room_type_id: str, hotel_id: str) -> RoomType:
        room_type = self.catalog.get_room_type(room_type_id)
        if room_type.hotel_id != hotel_id:
            raise ValidationError(f"Room type {room_type_id} belongs to another hotel")
        return room_type

    def _reject_taken_numbers(self, hotel_id: str, numbers: List[str]) -> None:
        taken = [
            number for (number,) in
            self.db.query(Room.room_number).filter(
                Room.hotel_id == hotel_id,
                Room.room_number.in_(numbers)
            ).all()
        ]
        if taken:
            raise ValidationError(
                "Room numbers already exist in this hotel",
                [f"Room {number} already exists" for number in sorted(taken)]
            )

    def create_room(self, data: RoomCreate, actor: AppUser) -> Room:
        require(actor, Capability.MANAGE_CATALOG)
        with transaction(self.db, "Create room"):
            self._room_type_in_hotel(data.room_type_id, data.hotel_id)
            self._reject_taken_numbers(data.hotel_id, [data.room_number])
            room = Room(
                hotel_id=data.hotel_id,
                room_type_id=data.room_type_id,
                room_number=data.room_number,
                status=data.status.value
            )
            self.db.add(room)
        return room

    def bulk_create_rooms(self, data: RoomBulkCreate, actor: AppUser) -> List[Room]:
        """Rooms prefix + zero-padded number for every number in the inclusive range."""
        require(actor, Capability.MANAGE_CATALOG)

        numbers = [
            format_room_number(data.prefix, n)
            for n in range(data.start_number, data.end_number + 1)
        ]
        with transaction(self.db, "Bulk create rooms"):
            self._room_type_in_hotel(data.room_type_id, data.hotel_id)
            self._reject_taken_numbers(data.hotel_id, numbers)
            rooms = [
                Room(hotel_id=data.hotel_id, room_type_id=data.room_type_id, room_number=number)
                for number in numbers
            ]
            self.db.add_all(rooms)

        logger.info(f"Added {len(rooms)} rooms to room type {data.room_type_id}")
        return rooms

    def update_room(self, room_id: str, data: RoomUpdate, actor: AppUser) -> Room:
        """Change a room's status and/or move it to another room type of the same hotel."""
        require(actor, Capability.MANAGE_CATALOG)
        with transaction(self.db, "Update room"):
            room = self._get_room(room_id)
            if data.room_type_id is not None and data.room_type_id != room.room_type_id:
                self._room_type_in_hotel(data.room_type_id, room.hotel_id)
                room.room_type_id = data.room_type_id
            if data.status is not None:
                room.status = RoomStatus(data.status.value).value
        return room
