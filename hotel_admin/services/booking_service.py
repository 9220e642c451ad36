"""
Booking Service

Booking lifecycle against the inventory:

    create  -> customer, booking header, line items, quantity x nights slots
    update  -> header changes, full replacement of line items and slots
    delete  -> line items, slots, then the booking row
    cancel  -> status change and release of slots

Every write runs in one transaction; a failure at any step rolls the whole
operation back and is raised to the caller.
"""

import secrets
import string
import time
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from ..config import settings
from ..exceptions import ConcurrencyConflictError, NotFoundError, ValidationError
from ..models.booking import Booking, BookingRoom, BookingStatus
from ..models.customer import Customer
from ..models.hotel import Hotel
from ..models.room_type import RoomType
from ..models.user import AppUser
from ..permissions import Capability, require
from ..schemas.booking import BookingCreate, BookingSearch, BookingUpdate, RoomTypeSelection
from ..utils.dates import check_out_for
from ..utils.db_helpers import acquire_row_lock, lock_rows, read_guard, transaction
from ..utils.logging_config import get_logger
from .availability_service import AvailabilityService, check_stay_length
from .catalog_service import CatalogService
from .customer_service import create_customer, normalize_phone, validate_customer_info
from .inventory_service import InventoryService

logger = get_logger(__name__)

CONFIRMATION_ALPHABET = string.ascii_uppercase + string.digits


def generate_confirmation_id() -> str:
    """
    Human-typeable code: BK + last 6 digits of the epoch milliseconds +
    3 random characters, e.g. BK482913X7Q.
    """
    stamp = str(int(time.time() * 1000))[-6:]
    suffix = ''.join(secrets.choice(CONFIRMATION_ALPHABET) for _ in range(3))
    return f"BK{stamp}{suffix}"


class BookingService:

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)
        self.availability = AvailabilityService(db)
        self.inventory = InventoryService(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _booking_query(self):
        return self.db.query(Booking).options(
            joinedload(Booking.customer),
            joinedload(Booking.hotel),
            selectinload(Booking.rooms).joinedload(BookingRoom.room_type),
        )

    @read_guard("load booking")
    def get_booking(self, booking_id: str) -> Booking:
        booking = self._booking_query().filter(Booking.id == booking_id).first()
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    @read_guard("search bookings")
    def search_bookings(self, criteria: BookingSearch, limit: int = 100) -> List[Booking]:
        """
        Bookings matching every supplied criterion, newest first.
        Text criteria are case-insensitive substring matches; no criteria
        at all returns nothing rather than everything.
        """
        if not criteria.has_criteria():
            return []

        query = (
            self._booking_query()
            .outerjoin(Customer, Booking.customer_id == Customer.id)
            .join(Hotel, Booking.hotel_id == Hotel.id)
        )

        if criteria.confirmation_id and criteria.confirmation_id.strip():
            query = query.filter(
                func.upper(Booking.confirmation_id) == criteria.confirmation_id.strip().upper()
            )
        if criteria.name and criteria.name.strip():
            query = query.filter(Customer.name.ilike(f"%{criteria.name.strip()}%"))
        if criteria.phone and criteria.phone.strip():
            # Phones are stored normalized; match on digits so spacing and prefixes don't matter
            digits = normalize_phone(criteria.phone).lstrip('+') or criteria.phone.strip()
            query = query.filter(Customer.phone.contains(digits))
        if criteria.email and criteria.email.strip():
            query = query.filter(Customer.email.ilike(f"%{criteria.email.strip()}%"))
        if criteria.hotel_name and criteria.hotel_name.strip() and criteria.hotel_name != "all":
            query = query.filter(Hotel.name.ilike(f"%{criteria.hotel_name.strip()}%"))
        if criteria.stay_date:
            query = query.filter(
                Booking.check_in <= criteria.stay_date,
                Booking.check_out >= criteria.stay_date
            )
        if criteria.status:
            query = query.filter(Booking.status == criteria.status.value)

        return query.order_by(Booking.created_at.desc()).limit(limit).all()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_room_types(self, hotel_id: str) -> None:
        """Serialize capacity checks for one hotel across concurrent writers."""
        lock_rows(self.db, RoomType, RoomType.hotel_id == hotel_id, order_by=RoomType.id)

    def _check_room_types_exist(self, selections: Sequence[RoomTypeSelection]) -> None:
        # The client's catalog may be stale; a vanished room type aborts the write
        for selection in selections:
            if self.db.get(RoomType, selection.room_type_id) is None:
                raise NotFoundError("Room type", selection.room_type_id)

    def _new_confirmation_id(self) -> str:
        for _ in range(settings.confirmation_code_max_attempts):
            candidate = generate_confirmation_id()
            taken = self.db.query(Booking.id).filter(Booking.confirmation_id == candidate).first()
            if taken is None:
                return candidate
            logger.warning(f"Confirmation id {candidate} already used, generating another")
        raise ConcurrencyConflictError("Could not generate a unique confirmation id")

    def _allocate(self, booking: Booking, selections: Sequence[RoomTypeSelection]) -> int:
        return sum(
            self.inventory.allocate_line_item(
                booking.hotel_id,
                selection.room_type_id,
                selection.quantity,
                booking.check_in,
                booking.nights,
                booking.id
            )
            for selection in selections
        )

    def _add_line_items(self, booking_id: str, selections: Sequence[RoomTypeSelection]) -> None:
        for selection in selections:
            self.db.add(BookingRoom(
                booking_id=booking_id,
                room_type_id=selection.room_type_id,
                quantity=selection.quantity
            ))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_booking(self, data: BookingCreate, actor: AppUser) -> Tuple[Booking, Customer]:
        """
        Create a confirmed booking with its customer, line items and
        inventory slots.

        Raises:
            PermissionDeniedError: actor may not create bookings
            ValidationError: guest details missing or rooms not available
            NotFoundError: hotel or a selected room type does not exist
            PersistenceError / ConcurrencyConflictError: the write failed
        """
        require(actor, Capability.CREATE_BOOKING)
        started = time.perf_counter()

        check_stay_length(data.nights)
        customer_errors = validate_customer_info(data.customer)
        if customer_errors:
            raise ValidationError("Guest details are incomplete", customer_errors)

        with transaction(self.db, "Create booking"):
            hotel = self.catalog.get_hotel(data.hotel_id)
            if not hotel.is_active:
                raise ValidationError(f"Hotel {hotel.name} is not accepting bookings")

            self._lock_room_types(data.hotel_id)
            self._check_room_types_exist(data.room_types)
            self.availability.validate_quantities(
                data.hotel_id, data.check_in, data.nights, data.room_types
            )

            customer = create_customer(self.db, data.customer)
            self.db.flush()

            booking = Booking(
                confirmation_id=self._new_confirmation_id(),
                hotel_id=data.hotel_id,
                room_type_id=None,
                customer_id=customer.id,
                check_in=data.check_in,
                check_out=check_out_for(data.check_in, data.nights),
                nights=data.nights,
                total_price=data.total_price,
                notes=data.notes,
                referral_name=data.customer.referral_name,
                ref_agency=data.customer.ref_agency,
                status=BookingStatus.CONFIRMED.value,
                created_by_id=actor.id,
                updated_by_id=actor.id
            )
            self.db.add(booking)
            self.db.flush()

            self._add_line_items(booking.id, data.room_types)
            self.db.flush()

            slot_count = self._allocate(booking, data.room_types)

        logger.booking_created(
            booking.id,
            booking.confirmation_id,
            slot_count,
            duration_ms=round((time.perf_counter() - started) * 1000, 2)
        )
        return booking, customer

    def update_booking(self, booking_id: str, data: BookingUpdate, actor: AppUser) -> Booking:
        """
        Change dates, nights, hotel and/or line items of a booking.

        Requested quantities are checked against the new stay (ignoring the
        booking's own current slots) before anything is written. Line items
        are replaced wholesale when supplied, and the booking's slots are
        always deleted and allocated again.
        """
        require(actor, Capability.EDIT_BOOKING)

        with transaction(self.db, "Update booking"):
            booking = acquire_row_lock(self.db, Booking, Booking.id == booking_id)
            if booking is None:
                raise NotFoundError("Booking", booking_id)
            if booking.status == BookingStatus.CANCELLED.value:
                raise ValidationError("Cancelled bookings cannot be edited")

            hotel_id = data.hotel_id or booking.hotel_id
            check_in = data.check_in or booking.check_in
            nights = data.nights or booking.nights
            check_stay_length(nights)

            if data.room_types is not None:
                selections = list(data.room_types)
            else:
                selections = [
                    RoomTypeSelection(room_type_id=item.room_type_id, quantity=item.quantity)
                    for item in booking.rooms
                ]

            if hotel_id != booking.hotel_id:
                hotel = self.catalog.get_hotel(hotel_id)
                if not hotel.is_active:
                    raise ValidationError(f"Hotel {hotel.name} is not accepting bookings")

            self._lock_room_types(hotel_id)
            self._check_room_types_exist(selections)
            self.availability.validate_quantities(
                hotel_id, check_in, nights, selections, exclude_booking_id=booking.id
            )

            booking.hotel_id = hotel_id
            booking.check_in = check_in
            booking.nights = nights
            booking.check_out = check_out_for(check_in, nights)
            if data.total_price is not None:
                booking.total_price = data.total_price
            if data.notes is not None:
                booking.notes = data.notes
            booking.updated_by_id = actor.id

            if data.room_types is not None:
                self.db.query(BookingRoom).filter(
                    BookingRoom.booking_id == booking.id
                ).delete(synchronize_session=False)
                self._add_line_items(booking.id, selections)
            self.db.flush()

            self.inventory.release_booking(booking.id)
            slot_count = self._allocate(booking, selections)

        logger.booking_updated(booking.id, booking.confirmation_id, slot_count)
        return booking

    def delete_booking(self, booking_id: str, actor: AppUser) -> None:
        """Remove a booking: line items and slots first, then the booking row."""
        require(actor, Capability.DELETE_BOOKING)

        with transaction(self.db, "Delete booking"):
            booking = acquire_row_lock(self.db, Booking, Booking.id == booking_id)
            if booking is None:
                raise NotFoundError("Booking", booking_id)
            confirmation_id = booking.confirmation_id

            self.db.query(BookingRoom).filter(
                BookingRoom.booking_id == booking_id
            ).delete(synchronize_session=False)
            released = self.inventory.release_booking(booking_id)
            self.db.query(Booking).filter(
                Booking.id == booking_id
            ).delete(synchronize_session=False)
            self.db.expunge(booking)

        logger.booking_deleted(booking_id, confirmation_id, released)

    def cancel_booking(self, booking_id: str, actor: AppUser, reason: Optional[str] = None) -> Booking:
        """
        Mark a booking cancelled and give its inventory back.
        Line items stay for the record.
        """
        require(actor, Capability.DELETE_BOOKING)

        with transaction(self.db, "Cancel booking"):
            booking = acquire_row_lock(self.db, Booking, Booking.id == booking_id)
            if booking is None:
                raise NotFoundError("Booking", booking_id)
            if booking.status == BookingStatus.CANCELLED.value:
                raise ValidationError("Booking is already cancelled")

            booking.status = BookingStatus.CANCELLED.value
            booking.updated_by_id = actor.id
            if reason:
                booking.notes = f"{booking.notes}\n" if booking.notes else ""
                booking.notes += f"Cancelled: {reason}"
            released = self.inventory.release_booking(booking_id)

        logger.info(f"Booking {booking.confirmation_id} cancelled, released {released} slots")
        return booking


def bookings_overlapping(db: Session, hotel_id: str, start, end) -> List[Booking]:
    """Confirmed bookings of a hotel with at least one night in [start, end)."""
    return (
        db.query(Booking)
        .options(selectinload(Booking.rooms))
        .filter(
            Booking.hotel_id == hotel_id,
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.check_in < end,
            Booking.check_out > start
        )
        .order_by(Booking.check_in)
        .all()
    )
