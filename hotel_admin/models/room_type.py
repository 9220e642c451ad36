import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from ..database import Base


class RoomType(Base):
    """
    A category of physical rooms within one hotel.

    `total_rooms` is the canonical capacity. When it is NULL or 0 the
    capacity falls back to the number of Room rows of this type
    (see CatalogService.list_room_types).
    """
    __tablename__ = "room_types"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    hotel_id = Column(String(36), ForeignKey("hotels.id", ondelete="RESTRICT"), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(10, 2), default=0)
    max_occupancy = Column(Integer, default=1)
    total_rooms = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    hotel = relationship("Hotel", back_populates="room_types")
    rooms = relationship("Room", back_populates="room_type")

    __table_args__ = (
        Index("ix_room_type_hotel", "hotel_id", "name"),
    )

    def __repr__(self):
        return f"<RoomType {self.name} ({self.total_rooms})>"
