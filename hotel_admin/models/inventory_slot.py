"""
Inventory Slot Model

One row per room-night consumed by a booking. Occupancy for a
(hotel, room type, date) is the number of rows with a booking_id.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, DateTime, Integer, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base


class InventorySlot(Base):
    __tablename__ = "room_type_inventory_slots"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    hotel_id = Column(String(36), ForeignKey("hotels.id", ondelete="RESTRICT"), nullable=False)
    room_type_id = Column(String(36), ForeignKey("room_types.id", ondelete="RESTRICT"), nullable=False)
    date = Column(Date, nullable=False)

    # Only unique per (hotel, room type, date); carries no other meaning
    slot_no = Column(Integer, nullable=False)

    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="RESTRICT"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    booking = relationship("Booking", back_populates="slots")

    __table_args__ = (
        # The allocator retries against this constraint on concurrent inserts
        UniqueConstraint("hotel_id", "room_type_id", "date", "slot_no", name="uq_inventory_slot"),
        Index("ix_inventory_slot_hotel_date", "hotel_id", "date"),
        Index("ix_inventory_slot_booking", "booking_id"),
    )

    def __repr__(self):
        return f"<InventorySlot {self.room_type_id} {self.date} #{self.slot_no}>"
