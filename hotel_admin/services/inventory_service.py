"""
Inventory Service

Manages the room-type inventory slots that back availability.

Each booked room-night is one row in room_type_inventory_slots. Slot
numbers are unique per (hotel, room type, date); the unique constraint is
the arbiter between concurrent writers and a losing insert is retried with
a freshly read number.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import ConcurrencyConflictError
from ..models.inventory_slot import InventorySlot
from ..utils.dates import stay_dates

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Service for allocating and releasing inventory slots.

    Key responsibilities:
    - Allocate one slot per night of a stay for a booking
    - Retry slot numbering on unique-constraint conflicts
    - Release every slot held by a booking

    Callers own the transaction; nothing here commits.
    """

    def __init__(self, db: Session, max_attempts: Optional[int] = None):
        self.db = db
        self.max_attempts = max_attempts or settings.slot_allocation_max_attempts

    def _next_slot_no(self, hotel_id: str, room_type_id: str, target_date: date) -> int:
        current = self.db.query(func.max(InventorySlot.slot_no)).filter(
            InventorySlot.hotel_id == hotel_id,
            InventorySlot.room_type_id == room_type_id,
            InventorySlot.date == target_date
        ).scalar()
        return (current or 0) + 1

    def _insert_slot(self, hotel_id: str, room_type_id: str, target_date: date, booking_id: str) -> InventorySlot:
        """Insert one slot, re-reading the next number after each lost race."""
        for attempt in range(1, self.max_attempts + 1):
            slot_no = self._next_slot_no(hotel_id, room_type_id, target_date)
            slot = InventorySlot(
                hotel_id=hotel_id,
                room_type_id=room_type_id,
                date=target_date,
                slot_no=slot_no,
                booking_id=booking_id
            )
            try:
                with self.db.begin_nested():
                    self.db.add(slot)
                return slot
            except IntegrityError:
                logger.warning(
                    f"Slot #{slot_no} for {room_type_id} on {target_date} taken "
                    f"(attempt {attempt}/{self.max_attempts}), retrying"
                )

        raise ConcurrencyConflictError(
            f"Could not allocate a slot for room type {room_type_id} on {target_date} "
            f"after {self.max_attempts} attempts"
        )

    def allocate_slots(
        self,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        nights: int,
        booking_id: str
    ) -> int:
        """
        Allocate one slot per night in [check_in, check_in + nights) for a
        single room of `room_type_id`. Call once per unit booked.
        Returns count of slots created.
        """
        count = 0
        for night in stay_dates(check_in, nights):
            self._insert_slot(hotel_id, room_type_id, night, booking_id)
            count += 1

        logger.debug(f"Allocated {count} slots for room type {room_type_id}, booking {booking_id}")
        return count

    def allocate_line_item(
        self,
        hotel_id: str,
        room_type_id: str,
        quantity: int,
        check_in: date,
        nights: int,
        booking_id: str
    ) -> int:
        """quantity x nights slots for one booking line item."""
        return sum(
            self.allocate_slots(hotel_id, room_type_id, check_in, nights, booking_id)
            for _ in range(quantity)
        )

    def release_booking(self, booking_id: str) -> int:
        """
        Delete every slot tagged with the booking.
        Returns count of slots released.
        """
        count = self.db.query(InventorySlot).filter(
            InventorySlot.booking_id == booking_id
        ).delete(synchronize_session=False)

        logger.info(f"Released {count} slots for booking {booking_id}")
        return count

    def count_booking_slots(self, booking_id: str) -> int:
        return self.db.query(func.count(InventorySlot.id)).filter(
            InventorySlot.booking_id == booking_id
        ).scalar()
