"""
Booking draft store.

Holds what the booking wizard has collected so far: hotel, stay, room
quantities and guest details. State changes only through the methods
below; `to_request()` turns a finished draft into a BookingCreate.

This is a client-side helper for Python callers that drive the wizard
(admin scripts, a front-end test harness). The HTTP API and the services
never read it; they only ever see the BookingCreate it produces, posted
to /api/bookings.
"""

import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from .exceptions import ValidationError
from .schemas.booking import BookingCreate, CustomerInput, RoomTypeSelection


class DraftStep(int, enum.Enum):
    HOTEL = 1
    STAY = 2
    ROOMS = 3
    GUEST = 4
    REVIEW = 5


@dataclass
class BookingDraft:
    hotel_id: Optional[str] = None
    check_in: Optional[date] = None
    nights: int = 1
    quantities: Dict[str, int] = field(default_factory=dict)
    guest: Optional[CustomerInput] = None
    notes: Optional[str] = None
    step: DraftStep = DraftStep.HOTEL

    def select_hotel(self, hotel_id: str) -> None:
        # Room types belong to one hotel, so a new hotel drops the selection
        if hotel_id != self.hotel_id:
            self.quantities.clear()
        self.hotel_id = hotel_id

    def set_stay(self, check_in: date, nights: int) -> None:
        if nights < 1:
            raise ValidationError("Nights must be at least 1")
        self.check_in = check_in
        self.nights = nights

    def set_quantity(self, room_type_id: str, quantity: int) -> None:
        """Quantity 0 removes the room type from the selection."""
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative")
        if quantity == 0:
            self.quantities.pop(room_type_id, None)
        else:
            self.quantities[room_type_id] = quantity

    def set_guest(self, guest: CustomerInput, notes: Optional[str] = None) -> None:
        self.guest = guest
        self.notes = notes

    def missing(self) -> List[str]:
        """What still has to be filled in before the draft can be submitted."""
        problems = []
        if not self.hotel_id:
            problems.append("Select a hotel")
        if self.check_in is None:
            problems.append("Choose a check-in date")
        if not self.quantities:
            problems.append("Select at least one room")
        if self.guest is None:
            problems.append("Enter the guest details")
        return problems

    def _step_complete(self, step: DraftStep) -> bool:
        if step == DraftStep.HOTEL:
            return bool(self.hotel_id)
        if step == DraftStep.STAY:
            return self.check_in is not None
        if step == DraftStep.ROOMS:
            return bool(self.quantities)
        if step == DraftStep.GUEST:
            return self.guest is not None
        return True

    def advance(self) -> DraftStep:
        if self.step == DraftStep.REVIEW:
            return self.step
        if not self._step_complete(self.step):
            raise ValidationError(f"Step {self.step.name.lower()} is not complete")
        self.step = DraftStep(self.step + 1)
        return self.step

    def back(self) -> DraftStep:
        if self.step != DraftStep.HOTEL:
            self.step = DraftStep(self.step - 1)
        return self.step

    def reset(self) -> None:
        self.hotel_id = None
        self.check_in = None
        self.nights = 1
        self.quantities = {}
        self.guest = None
        self.notes = None
        self.step = DraftStep.HOTEL

    def to_request(self) -> BookingCreate:
        problems = self.missing()
        if problems:
            raise ValidationError("Booking draft is incomplete", problems)
        return BookingCreate(
            hotel_id=self.hotel_id,
            room_types=[
                RoomTypeSelection(room_type_id=room_type_id, quantity=quantity)
                for room_type_id, quantity in sorted(self.quantities.items())
            ],
            check_in=self.check_in,
            nights=self.nights,
            customer=self.guest,
            notes=self.notes
        )
