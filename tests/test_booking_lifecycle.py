"""
Tests for the Booking Lifecycle

Test Coverage:
1. Create: quantity x nights slots, line items, customer, confirmation id
2. Create rejections happen before any write
3. Update: nights change, room replacement, availability excluding own slots
4. Delete and cancel give inventory back
5. Search criteria
6. Slot numbering retries on conflicts and fails loudly when exhausted
7. A failing step rolls the whole write back
"""

import re
from datetime import date, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import func
from sqlalchemy.exc import OperationalError

from hotel_admin.exceptions import (
    ConcurrencyConflictError, NotFoundError, PermissionDeniedError,
    PersistenceError, ValidationError
)
from hotel_admin.models.booking import Booking, BookingRoom, BookingStatus
from hotel_admin.models.customer import Customer
from hotel_admin.models.inventory_slot import InventorySlot
from hotel_admin.schemas.booking import BookingSearch, BookingUpdate, RoomTypeSelection
from hotel_admin.services.availability_service import AvailabilityService
from hotel_admin.services.booking_service import BookingService, generate_confirmation_id
from hotel_admin.services.inventory_service import InventoryService

CHECK_IN = date(2025, 3, 10)


def _slot_count(db, booking_id=None):
    query = db.query(func.count(InventorySlot.id))
    if booking_id:
        query = query.filter(InventorySlot.booking_id == booking_id)
    return query.scalar()


class TestCreateBooking:

    def test_allocates_quantity_times_nights_slots(self, db, catalog, users, make_booking_request):
        request = make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 2)], nights=3)

        booking, customer = BookingService(db).create_booking(request, users.staff)

        assert _slot_count(db, booking.id) == 6
        assert booking.check_out == CHECK_IN + timedelta(days=3)
        assert booking.status == BookingStatus.CONFIRMED.value
        assert booking.room_type_id is None
        assert booking.customer_id == customer.id
        assert booking.created_by_id == users.staff.id

        items = db.query(BookingRoom).filter(BookingRoom.booking_id == booking.id).all()
        assert [(i.room_type_id, i.quantity) for i in items] == [(catalog.deluxe.id, 2)]

    def test_slot_numbers_are_unique_per_date(self, db, catalog, users, make_booking_request):
        service = BookingService(db)
        service.create_booking(make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 2)]), users.staff)
        service.create_booking(make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)]), users.staff)

        numbers = sorted(
            slot_no for (slot_no,) in db.query(InventorySlot.slot_no).filter(
                InventorySlot.room_type_id == catalog.deluxe.id,
                InventorySlot.date == CHECK_IN
            )
        )
        assert numbers == [1, 2, 3]

    def test_multiple_room_types(self, db, catalog, users, make_booking_request):
        request = make_booking_request(
            catalog.hotel.id, [(catalog.deluxe.id, 1), (catalog.standard.id, 2)], nights=2
        )
        booking, _ = BookingService(db).create_booking(request, users.staff)

        assert _slot_count(db, booking.id) == 6
        assert len(booking.rooms) == 2

    def test_confirmation_id_format(self, db, catalog, users, make_booking_request):
        booking, _ = BookingService(db).create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)]), users.staff
        )
        assert re.fullmatch(r"BK\d{6}[A-Z0-9]{3}", booking.confirmation_id)
        assert re.fullmatch(r"BK\d{6}[A-Z0-9]{3}", generate_confirmation_id())

    def test_confirmation_id_collision_is_regenerated(self, db, catalog, users, make_booking_request):
        service = BookingService(db)
        first, _ = service.create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)]), users.staff
        )
        taken = first.confirmation_id

        with patch(
            "hotel_admin.services.booking_service.generate_confirmation_id",
            side_effect=[taken, "BK123456ABC"]
        ):
            second, _ = service.create_booking(
                make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)]), users.staff
            )
        assert second.confirmation_id == "BK123456ABC"

    def test_customer_is_stored_normalized(self, db, catalog, users, make_booking_request):
        request = make_booking_request(
            catalog.hotel.id, [(catalog.deluxe.id, 1)],
            name="  Jane   Guest ", phone="0044 20 7946 0958", email="Jane@Example.COM"
        )
        _, customer = BookingService(db).create_booking(request, users.staff)

        assert customer.name == "Jane Guest"
        assert customer.phone == "+442079460958"
        assert customer.email == "jane@example.com"

    def test_rejects_quantity_above_availability_without_writing(self, db, catalog, users, make_booking_request):
        request = make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 6)])

        with pytest.raises(ValidationError):
            BookingService(db).create_booking(request, users.staff)

        assert db.query(Booking).count() == 0
        assert db.query(Customer).count() == 0
        assert _slot_count(db) == 0

    def test_rejects_unknown_room_type(self, db, catalog, users, make_booking_request):
        request = make_booking_request(catalog.hotel.id, [("no-such-type", 1)])

        with pytest.raises(NotFoundError):
            BookingService(db).create_booking(request, users.staff)
        assert db.query(Booking).count() == 0

    def test_rejects_unknown_hotel(self, db, catalog, users, make_booking_request):
        request = make_booking_request("no-such-hotel", [(catalog.deluxe.id, 1)])

        with pytest.raises(NotFoundError):
            BookingService(db).create_booking(request, users.staff)

    def test_requires_phone_or_email(self, db, catalog, users, make_booking_request):
        request = make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)], phone=None, email=None)

        with pytest.raises(ValidationError) as exc_info:
            BookingService(db).create_booking(request, users.staff)
        assert any("phone" in e for e in exc_info.value.errors)
        assert db.query(Customer).count() == 0

    def test_rejects_duplicate_room_types_in_request(self, catalog, make_booking_request):
        with pytest.raises(ValueError):
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1), (catalog.deluxe.id, 2)])

    def test_viewer_cannot_create(self, db, catalog, users, make_booking_request):
        with pytest.raises(PermissionDeniedError):
            BookingService(db).create_booking(
                make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)]), users.viewer
            )

    def test_deactivated_hotel_is_rejected(self, db, catalog, users, make_booking_request):
        catalog.hotel.is_active = False
        db.commit()

        with pytest.raises(ValidationError):
            BookingService(db).create_booking(
                make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)]), users.staff
            )

    def test_failure_mid_write_rolls_everything_back(self, db, catalog, users, make_booking_request):
        request = make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 2)])
        failure = OperationalError("INSERT", {}, Exception("disk I/O error"))

        with patch.object(InventoryService, "allocate_line_item", side_effect=failure):
            with pytest.raises(PersistenceError):
                BookingService(db).create_booking(request, users.staff)

        assert db.query(Booking).count() == 0
        assert db.query(BookingRoom).count() == 0
        assert db.query(Customer).count() == 0
        assert _slot_count(db) == 0


class TestUpdateBooking:

    @pytest.fixture
    def booking(self, db, catalog, users, make_booking_request):
        booking, _ = BookingService(db).create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 2)], nights=3), users.staff
        )
        return booking

    def test_extend_nights(self, db, catalog, users, booking):
        updated = BookingService(db).update_booking(booking.id, BookingUpdate(nights=5), users.staff)

        assert updated.nights == 5
        assert updated.check_out == CHECK_IN + timedelta(days=5)
        assert _slot_count(db, booking.id) == 10

    def test_move_dates(self, db, catalog, users, booking):
        new_check_in = date(2025, 4, 1)
        updated = BookingService(db).update_booking(
            booking.id, BookingUpdate(check_in=new_check_in), users.staff
        )

        assert updated.check_out == new_check_in + timedelta(days=3)
        dates = {d for (d,) in db.query(InventorySlot.date).filter(InventorySlot.booking_id == booking.id)}
        assert dates == {new_check_in + timedelta(days=i) for i in range(3)}

    def test_replace_room_types(self, db, catalog, users, booking):
        BookingService(db).update_booking(
            booking.id,
            BookingUpdate(room_types=[RoomTypeSelection(room_type_id=catalog.standard.id, quantity=1)]),
            users.staff
        )

        items = db.query(BookingRoom).filter(BookingRoom.booking_id == booking.id).all()
        assert [(i.room_type_id, i.quantity) for i in items] == [(catalog.standard.id, 1)]
        room_types = {rt for (rt,) in db.query(InventorySlot.room_type_id).filter(InventorySlot.booking_id == booking.id)}
        assert room_types == {catalog.standard.id}
        assert _slot_count(db, booking.id) == 3

    def test_own_slots_do_not_block_an_edit(self, db, catalog, users, make_booking_request):
        full, _ = BookingService(db).create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 5)]), users.staff
        )

        updated = BookingService(db).update_booking(full.id, BookingUpdate(notes="late arrival"), users.staff)

        assert updated.notes == "late arrival"
        assert _slot_count(db, full.id) == 10

    def test_edit_above_availability_is_rejected_without_writing(self, db, catalog, users, make_booking_request):
        service = BookingService(db)
        service.create_booking(make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 3)]), users.staff)
        mine, _ = service.create_booking(make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)]), users.staff)

        minimum = AvailabilityService(db).minimum_availability(
            catalog.hotel.id, CHECK_IN, 2, exclude_booking_id=mine.id
        )
        assert minimum[catalog.deluxe.id] == 2

        with pytest.raises(ValidationError):
            service.update_booking(
                mine.id,
                BookingUpdate(room_types=[RoomTypeSelection(room_type_id=catalog.deluxe.id, quantity=4)]),
                users.staff
            )

        item = db.query(BookingRoom).filter(BookingRoom.booking_id == mine.id).one()
        assert item.quantity == 1
        assert _slot_count(db, mine.id) == 2

    def test_move_to_other_hotel_needs_its_room_types(self, db, catalog, users, booking):
        with pytest.raises(ValidationError):
            BookingService(db).update_booking(
                booking.id, BookingUpdate(hotel_id=catalog.other_hotel.id), users.staff
            )

        updated = BookingService(db).update_booking(
            booking.id,
            BookingUpdate(
                hotel_id=catalog.other_hotel.id,
                room_types=[RoomTypeSelection(room_type_id=catalog.cabin.id, quantity=2)]
            ),
            users.staff
        )
        assert updated.hotel_id == catalog.other_hotel.id
        hotels = {h for (h,) in db.query(InventorySlot.hotel_id).filter(InventorySlot.booking_id == booking.id)}
        assert hotels == {catalog.other_hotel.id}

    def test_unknown_booking(self, db, catalog, users):
        with pytest.raises(NotFoundError):
            BookingService(db).update_booking("missing", BookingUpdate(nights=2), users.staff)

    def test_viewer_cannot_edit(self, db, catalog, users, booking):
        with pytest.raises(PermissionDeniedError):
            BookingService(db).update_booking(booking.id, BookingUpdate(nights=2), users.viewer)


class TestDeleteAndCancel:

    def test_delete_restores_availability(self, db, catalog, users, make_booking_request):
        service = BookingService(db)
        availability = AvailabilityService(db)
        booking, _ = service.create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 5)]), users.admin
        )
        assert availability.minimum_availability(catalog.hotel.id, CHECK_IN, 2)[catalog.deluxe.id] == 0

        booking_id = booking.id
        service.delete_booking(booking_id, users.admin)

        assert availability.minimum_availability(catalog.hotel.id, CHECK_IN, 2)[catalog.deluxe.id] == 5
        assert db.get(Booking, booking_id) is None
        assert db.query(BookingRoom).filter(BookingRoom.booking_id == booking_id).count() == 0
        assert _slot_count(db, booking_id) == 0

    def test_delete_unknown(self, db, catalog, users):
        with pytest.raises(NotFoundError):
            BookingService(db).delete_booking("missing", users.admin)

    def test_staff_cannot_delete(self, db, catalog, users, make_booking_request):
        booking, _ = BookingService(db).create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)]), users.staff
        )
        with pytest.raises(PermissionDeniedError):
            BookingService(db).delete_booking(booking.id, users.staff)
        assert _slot_count(db, booking.id) == 2

    def test_cancel_releases_slots_and_keeps_line_items(self, db, catalog, users, make_booking_request):
        service = BookingService(db)
        booking, _ = service.create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 2)]), users.staff
        )

        cancelled = service.cancel_booking(booking.id, users.admin, reason="guest request")

        assert cancelled.status == BookingStatus.CANCELLED.value
        assert "guest request" in cancelled.notes
        assert _slot_count(db, booking.id) == 0
        assert db.query(BookingRoom).filter(BookingRoom.booking_id == booking.id).count() == 1

        with pytest.raises(ValidationError):
            service.cancel_booking(booking.id, users.admin)
        with pytest.raises(ValidationError):
            service.update_booking(booking.id, BookingUpdate(nights=3), users.admin)


class TestSearchBookings:

    @pytest.fixture
    def bookings(self, db, catalog, users, make_booking_request):
        service = BookingService(db)
        first, _ = service.create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)], name="Alice Moreau",
                                 email="alice@example.com"),
            users.staff
        )
        second, _ = service.create_booking(
            make_booking_request(catalog.other_hotel.id, [(catalog.cabin.id, 1)], name="Bob Stone",
                                 check_in=date(2025, 6, 1), nights=4, phone="+1 555 0100 22"),
            users.staff
        )
        return first, second

    def test_no_criteria_returns_nothing(self, db, bookings):
        assert BookingService(db).search_bookings(BookingSearch()) == []
        assert BookingService(db).search_bookings(BookingSearch(name="   ")) == []

    def test_by_name_case_insensitive(self, db, bookings):
        results = BookingService(db).search_bookings(BookingSearch(name="alice"))
        assert [b.id for b in results] == [bookings[0].id]

    def test_by_confirmation_id(self, db, bookings):
        code = bookings[1].confirmation_id
        results = BookingService(db).search_bookings(BookingSearch(confirmation_id=code.lower()))
        assert [b.id for b in results] == [bookings[1].id]

    @pytest.mark.parametrize("phone", ["+1 555 0100 22", "+1555010022", "0100 22", "(555) 010-022"])
    def test_by_phone_as_typed(self, db, bookings, phone):
        results = BookingService(db).search_bookings(BookingSearch(phone=phone))
        assert [b.id for b in results] == [bookings[1].id]

    def test_by_stay_date_inclusive(self, db, bookings):
        results = BookingService(db).search_bookings(BookingSearch(stay_date=date(2025, 6, 5)))
        assert [b.id for b in results] == [bookings[1].id]

    def test_by_hotel_name(self, db, bookings):
        results = BookingService(db).search_bookings(BookingSearch(hotel_name="hill"))
        assert [b.id for b in results] == [bookings[1].id]

    def test_by_status(self, db, users, bookings):
        BookingService(db).cancel_booking(bookings[0].id, users.admin)
        results = BookingService(db).search_bookings(BookingSearch(status="cancelled"))
        assert [b.id for b in results] == [bookings[0].id]

    def test_get_booking(self, db, bookings):
        booking = BookingService(db).get_booking(bookings[0].id)
        assert booking.customer.name == "Alice Moreau"
        assert booking.hotel.name == "Seaside Hotel"

        with pytest.raises(NotFoundError):
            BookingService(db).get_booking("missing")


class TestSlotAllocation:

    def test_conflict_is_retried_with_next_number(self, db, catalog, users, make_booking_request):
        existing, _ = BookingService(db).create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)], nights=1), users.staff
        )
        inventory = InventoryService(db)

        # First read is stale (slot 1 is already taken), second is fresh
        with patch.object(InventoryService, "_next_slot_no", side_effect=[1, 2]):
            created = inventory.allocate_slots(catalog.hotel.id, catalog.deluxe.id, CHECK_IN, 1, existing.id)
        db.commit()

        assert created == 1
        numbers = sorted(n for (n,) in db.query(InventorySlot.slot_no).filter(InventorySlot.date == CHECK_IN))
        assert numbers == [1, 2]

    def test_exhausted_retries_raise(self, db, catalog, users, make_booking_request):
        existing, _ = BookingService(db).create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 1)], nights=1), users.staff
        )
        inventory = InventoryService(db, max_attempts=3)

        with patch.object(InventoryService, "_next_slot_no", return_value=1) as next_slot:
            with pytest.raises(ConcurrencyConflictError):
                inventory.allocate_slots(catalog.hotel.id, catalog.deluxe.id, CHECK_IN, 1, existing.id)
        db.rollback()

        assert next_slot.call_count == 3
        assert _slot_count(db) == 1

    def test_release_booking(self, db, catalog, users, make_booking_request):
        booking, _ = BookingService(db).create_booking(
            make_booking_request(catalog.hotel.id, [(catalog.deluxe.id, 2)], nights=2), users.staff
        )
        inventory = InventoryService(db)

        assert inventory.count_booking_slots(booking.id) == 4
        assert inventory.release_booking(booking.id) == 4
        db.commit()
        assert inventory.count_booking_slots(booking.id) == 0
