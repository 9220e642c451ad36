import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class RoomStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    hotel_id = Column(String(36), ForeignKey("hotels.id", ondelete="RESTRICT"), nullable=False)
    room_type_id = Column(String(36), ForeignKey("room_types.id", ondelete="RESTRICT"), nullable=False)
    room_number = Column(String(20), nullable=False)
    status = Column(String(20), default=RoomStatus.ACTIVE.value, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    hotel = relationship("Hotel", back_populates="rooms")
    room_type = relationship("RoomType", back_populates="rooms")
    blocks = relationship("RoomBlock", back_populates="room", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("hotel_id", "room_number", name="uq_room_hotel_number"),
        Index("ix_room_room_type", "room_type_id"),
    )

    def __repr__(self):
        return f"<Room {self.room_number} [{self.status}]>"
