"""
Catalog Service

Read side of the hotel catalog: hotels and their room types, with each
room type's capacity resolved. Availability and bookings read through here.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..exceptions import NotFoundError
from ..models.hotel import Hotel
from ..models.room import Room
from ..models.room_type import RoomType
from ..utils.db_helpers import read_guard

logger = logging.getLogger(__name__)


@dataclass
class RoomTypeCapacity:
    """A room type together with the number of rooms it can sell per night."""
    room_type: RoomType
    capacity: int

    @property
    def id(self) -> str:
        return self.room_type.id

    @property
    def name(self) -> str:
        return self.room_type.name


class CatalogService:

    def __init__(self, db: Session):
        self.db = db

    @read_guard("list hotels")
    def list_hotels(self, include_inactive: bool = False) -> List[Hotel]:
        query = self.db.query(Hotel)
        if not include_inactive:
            query = query.filter(Hotel.is_active.is_(True))
        return query.order_by(Hotel.name).all()

    @read_guard("load hotel")
    def get_hotel(self, hotel_id: str) -> Hotel:
        hotel = self.db.get(Hotel, hotel_id)
        if hotel is None:
            raise NotFoundError("Hotel", hotel_id)
        return hotel

    @read_guard("load room type")
    def get_room_type(self, room_type_id: str) -> RoomType:
        room_type = self.db.get(RoomType, room_type_id)
        if room_type is None:
            raise NotFoundError("Room type", room_type_id)
        return room_type

    @read_guard("list room types")
    def list_room_types(self, hotel_id: str, include_inactive: bool = False) -> List[RoomTypeCapacity]:
        """
        Room types of one hotel ordered by name, with capacity resolved.

        Capacity is `total_rooms` when it is set and positive, otherwise the
        number of Room rows of that type. The fallback counts come from a
        single grouped query.
        """
        self.get_hotel(hotel_id)

        query = self.db.query(RoomType).filter(RoomType.hotel_id == hotel_id)
        if not include_inactive:
            query = query.filter(RoomType.is_active.is_(True))
        room_types = query.order_by(RoomType.name).all()

        needs_count = [rt.id for rt in room_types if not rt.total_rooms]
        room_counts = self._count_rooms(needs_count) if needs_count else {}

        return [
            RoomTypeCapacity(
                room_type=rt,
                capacity=rt.total_rooms if rt.total_rooms else room_counts.get(rt.id, 0),
            )
            for rt in room_types
        ]

    @read_guard("load room type capacity")
    def room_type_capacity(self, room_type_id: str) -> RoomTypeCapacity:
        room_type = self.get_room_type(room_type_id)
        capacity = room_type.total_rooms or self._count_rooms([room_type.id]).get(room_type.id, 0)
        return RoomTypeCapacity(room_type=room_type, capacity=capacity)

    def _count_rooms(self, room_type_ids: List[str]) -> Dict[str, int]:
        rows = (
            self.db.query(Room.room_type_id, func.count(Room.id))
            .filter(Room.room_type_id.in_(room_type_ids))
            .group_by(Room.room_type_id)
            .all()
        )
        return {room_type_id: count for room_type_id, count in rows}
