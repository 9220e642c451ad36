"""
Availability Service

Computes, for one hotel, how many rooms of each type are free on each date
of a padded window around a requested stay.

    occupied  = booked inventory slots + room blocks
    available = max(0, capacity - occupied)

The whole window is loaded with two queries (slots, blocks) and counted in
memory; nothing is cached between requests.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import ValidationError
from ..models.inventory_slot import InventorySlot
from ..models.room import Room
from ..models.room_block import RoomBlock
from ..schemas.availability import AvailabilityStatus
from ..utils.dates import date_range, stay_dates
from ..utils.db_helpers import read_guard
from .catalog_service import CatalogService, RoomTypeCapacity

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityRecord:
    date: date
    room_type_id: str
    available: int
    total: int
    status: AvailabilityStatus


def classify_status(available: int, total: int, low_ratio: Optional[float] = None) -> AvailabilityStatus:
    """
    sold-out when nothing is left, low when at most ceil(total * ratio)
    rooms are left, available otherwise.
    """
    if low_ratio is None:
        low_ratio = settings.low_availability_ratio
    if available <= 0:
        return AvailabilityStatus.SOLD_OUT
    if available <= math.ceil(total * low_ratio):
        return AvailabilityStatus.LOW
    return AvailabilityStatus.AVAILABLE


def check_stay_length(nights: int) -> None:
    """Reject stays outside 1..max_stay_nights before any date arithmetic."""
    if nights < 1:
        raise ValidationError("Nights must be at least 1")
    if nights > settings.max_stay_nights:
        raise ValidationError(f"A stay cannot exceed {settings.max_stay_nights} nights")


def availability_window(check_in: date, nights: int, padding_days: Optional[int] = None) -> Tuple[date, date]:
    """[check_in - padding, check_in + nights + padding), end exclusive."""
    if padding_days is None:
        padding_days = settings.availability_padding_days
    start = check_in - timedelta(days=padding_days)
    end = check_in + timedelta(days=nights + padding_days)
    return start, end


class AvailabilityService:

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)

    @read_guard("compute availability")
    def compute_availability(
        self,
        hotel_id: str,
        check_in: date,
        nights: int,
        exclude_booking_id: Optional[str] = None,
        padding_days: Optional[int] = None
    ) -> List[AvailabilityRecord]:
        """
        Availability for every room type of the hotel on every date of the
        padded window, ordered by room type name then date.

        `exclude_booking_id` leaves one booking's own slots out of the count;
        used when checking whether an existing booking can be moved.
        """
        check_stay_length(nights)

        window_start, window_end = availability_window(check_in, nights, padding_days)
        dates = date_range(window_start, window_end)

        room_types = self.catalog.list_room_types(hotel_id)
        if not room_types:
            return []

        occupied = self._load_slot_counts(hotel_id, window_start, window_end, exclude_booking_id)
        occupied.update(self._load_block_counts(hotel_id, window_start, window_end))

        return self._build_records(room_types, dates, occupied)

    def minimum_availability(
        self,
        hotel_id: str,
        check_in: date,
        nights: int,
        exclude_booking_id: Optional[str] = None
    ) -> Dict[str, int]:
        """
        Lowest available count per room type over the nights of the stay
        (the padding days are ignored). This is the ceiling for the quantity
        that can be booked.
        """
        records = self.compute_availability(hotel_id, check_in, nights, exclude_booking_id)
        nights_of_stay = set(stay_dates(check_in, nights))

        minimum: Dict[str, int] = {}
        for record in records:
            if record.date not in nights_of_stay:
                continue
            current = minimum.get(record.room_type_id)
            if current is None or record.available < current:
                minimum[record.room_type_id] = record.available
        return minimum

    def validate_quantities(
        self,
        hotel_id: str,
        check_in: date,
        nights: int,
        selections: Iterable,
        exclude_booking_id: Optional[str] = None
    ) -> None:
        """
        Reject the request if any selected quantity exceeds what is free on
        some night of the stay, or names a room type the hotel does not sell.

        `selections` holds objects with `room_type_id` and `quantity`.
        """
        minimum = self.minimum_availability(hotel_id, check_in, nights, exclude_booking_id)
        names = {rt.id: rt.name for rt in self.catalog.list_room_types(hotel_id)}

        errors = []
        for selection in selections:
            if selection.room_type_id not in minimum:
                errors.append(f"Room type {selection.room_type_id} is not offered by hotel {hotel_id}")
                continue
            free = minimum[selection.room_type_id]
            if selection.quantity > free:
                errors.append(
                    f"{names.get(selection.room_type_id, selection.room_type_id)}: "
                    f"requested {selection.quantity}, only {free} available for the whole stay"
                )

        if errors:
            logger.info(f"Rejected quantities for hotel {hotel_id} from {check_in} x{nights}: {errors}")
            raise ValidationError("Requested rooms are not available", errors)

    def _load_slot_counts(
        self,
        hotel_id: str,
        start: date,
        end: date,
        exclude_booking_id: Optional[str]
    ) -> Counter:
        query = self.db.query(InventorySlot.room_type_id, InventorySlot.date).filter(
            InventorySlot.hotel_id == hotel_id,
            InventorySlot.date >= start,
            InventorySlot.date < end,
            InventorySlot.booking_id.isnot(None),
        )
        if exclude_booking_id:
            query = query.filter(InventorySlot.booking_id != exclude_booking_id)
        return Counter((room_type_id, day) for room_type_id, day in query.all())

    def _load_block_counts(self, hotel_id: str, start: date, end: date) -> Counter:
        rows = (
            self.db.query(Room.room_type_id, RoomBlock.date)
            .select_from(RoomBlock)
            .join(Room, RoomBlock.room_id == Room.id)
            .filter(
                Room.hotel_id == hotel_id,
                RoomBlock.date >= start,
                RoomBlock.date < end,
            )
            .all()
        )
        return Counter((room_type_id, day) for room_type_id, day in rows)

    @staticmethod
    def _build_records(
        room_types: List[RoomTypeCapacity],
        dates: List[date],
        occupied: Counter
    ) -> List[AvailabilityRecord]:
        records = []
        for room_type in room_types:
            for day in dates:
                available = max(0, room_type.capacity - occupied[(room_type.id, day)])
                records.append(AvailabilityRecord(
                    date=day,
                    room_type_id=room_type.id,
                    available=available,
                    total=room_type.capacity,
                    status=classify_status(available, room_type.capacity),
                ))
        return records
