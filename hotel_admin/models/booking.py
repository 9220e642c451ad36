import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, Integer, Numeric, Text, ForeignKey, DateTime, Index, CheckConstraint
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    confirmation_id = Column(String(20), nullable=False, unique=True)
    hotel_id = Column(String(36), ForeignKey("hotels.id", ondelete="RESTRICT"), nullable=False)

    # Legacy single room type; line items live in booking_rooms
    room_type_id = Column(String(36), ForeignKey("room_types.id", ondelete="SET NULL"), nullable=True)

    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)  # always check_in + nights
    nights = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=True)
    notes = Column(Text, nullable=True)
    referral_name = Column(String(100), nullable=True)
    ref_agency = Column(String(100), nullable=True)
    status = Column(String(20), default=BookingStatus.CONFIRMED.value, nullable=False)

    created_by_id = Column(String(36), ForeignKey("app_users.id", ondelete="SET NULL"), nullable=True)
    updated_by_id = Column(String(36), ForeignKey("app_users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    hotel = relationship("Hotel", back_populates="bookings")
    customer = relationship("Customer", back_populates="bookings")
    rooms = relationship("BookingRoom", back_populates="booking", order_by="BookingRoom.room_type_id")
    slots = relationship("InventorySlot", back_populates="booking")

    __table_args__ = (
        CheckConstraint("nights >= 1", name="ck_booking_nights_positive"),
        Index("ix_booking_hotel_dates", "hotel_id", "check_in", "check_out"),
        Index("ix_booking_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Booking {self.confirmation_id} - {self.check_in} x{self.nights}>"


class BookingRoom(Base):
    """Line item: `quantity` rooms of one room type within a booking."""
    __tablename__ = "booking_rooms"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="RESTRICT"), nullable=False)
    room_type_id = Column(String(36), ForeignKey("room_types.id", ondelete="RESTRICT"), nullable=False)

    # Optional assignment to a physical room, used by the calendar view
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True)

    quantity = Column(Integer, nullable=False, default=1)

    booking = relationship("Booking", back_populates="rooms")
    room_type = relationship("RoomType")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_booking_room_quantity_positive"),
        Index("ix_booking_room_booking", "booking_id"),
    )

    def __repr__(self):
        return f"<BookingRoom {self.room_type_id} x{self.quantity}>"
