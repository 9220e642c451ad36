import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Index
from sqlalchemy.orm import relationship
from ..database import Base


class Hotel(Base):
    __tablename__ = "hotels"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    address = Column(String(500), nullable=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    timezone = Column(String(64), nullable=False, default="UTC")

    # Hotels referenced by bookings are deactivated, never deleted
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room_types = relationship("RoomType", back_populates="hotel", order_by="RoomType.name")
    rooms = relationship("Room", back_populates="hotel")
    bookings = relationship("Booking", back_populates="hotel")

    __table_args__ = (
        Index("ix_hotel_name", "name"),
    )

    def __repr__(self):
        return f"<Hotel {self.name}>"
