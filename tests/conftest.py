"""
Shared fixtures: an in-memory SQLite database per test, a seeded catalog
and one user per built-in role.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")

from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hotel_admin.database import Base, build_engine
from hotel_admin import models  # noqa: F401
from hotel_admin.models.hotel import Hotel
from hotel_admin.models.room import Room
from hotel_admin.models.room_type import RoomType
from hotel_admin.models.user import AppUser, UserRole
from hotel_admin.schemas.booking import BookingCreate, CustomerInput, RoomTypeSelection


CHECK_IN = date(2025, 3, 10)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


def _user(db, role: UserRole) -> AppUser:
    user = AppUser(
        auth_id=f"auth|{role.value}",
        email=f"{role.value}@example.com",
        full_name=f"{role.value.title()} User",
        role=role.value
    )
    db.add(user)
    return user


@pytest.fixture
def users(db):
    admin = _user(db, UserRole.ADMIN)
    staff = _user(db, UserRole.STAFF)
    viewer = _user(db, UserRole.VIEWER)
    db.commit()
    return SimpleNamespace(admin=admin, staff=staff, viewer=viewer)


@pytest.fixture
def catalog(db):
    """
    Seaside Hotel:
      Deluxe   - total_rooms 5, rooms D101..D105
      Standard - total_rooms unset, rooms S201..S203 (capacity 3 by count)
    Hill Lodge:
      Cabin    - total_rooms 2, rooms C1..C2
    """
    hotel = Hotel(name="Seaside Hotel")
    other_hotel = Hotel(name="Hill Lodge")
    db.add_all([hotel, other_hotel])
    db.flush()

    deluxe = RoomType(hotel_id=hotel.id, name="Deluxe", total_rooms=5, base_price=120)
    standard = RoomType(hotel_id=hotel.id, name="Standard", total_rooms=None, base_price=80)
    cabin = RoomType(hotel_id=other_hotel.id, name="Cabin", total_rooms=2, base_price=60)
    db.add_all([deluxe, standard, cabin])
    db.flush()

    deluxe_rooms = [
        Room(hotel_id=hotel.id, room_type_id=deluxe.id, room_number=f"D10{n}")
        for n in range(1, 6)
    ]
    standard_rooms = [
        Room(hotel_id=hotel.id, room_type_id=standard.id, room_number=f"S20{n}")
        for n in range(1, 4)
    ]
    cabin_rooms = [
        Room(hotel_id=other_hotel.id, room_type_id=cabin.id, room_number=f"C{n}")
        for n in range(1, 3)
    ]
    db.add_all(deluxe_rooms + standard_rooms + cabin_rooms)
    db.commit()

    return SimpleNamespace(
        hotel=hotel,
        other_hotel=other_hotel,
        deluxe=deluxe,
        standard=standard,
        cabin=cabin,
        deluxe_rooms=deluxe_rooms,
        standard_rooms=standard_rooms,
        cabin_rooms=cabin_rooms,
    )


@pytest.fixture
def make_booking_request():
    """Build a BookingCreate; `rooms` is a list of (room_type_id, quantity)."""
    def _make(hotel_id, rooms, check_in=CHECK_IN, nights=2, name="Jane Guest",
              phone="+44 20 7946 0958", email=None, notes=None):
        return BookingCreate(
            hotel_id=hotel_id,
            room_types=[RoomTypeSelection(room_type_id=rt, quantity=q) for rt, q in rooms],
            check_in=check_in,
            nights=nights,
            customer=CustomerInput(name=name, phone=phone, email=email),
            notes=notes
        )
    return _make
