import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class BlockType(str, enum.Enum):
    OUT_OF_ORDER = "OOO"
    OUT_OF_SERVICE = "OOS"
    HOLD = "Hold"


# Clicking an existing block moves it to the next type; Hold is cleared
BLOCK_CYCLE = {
    BlockType.OUT_OF_ORDER: BlockType.OUT_OF_SERVICE,
    BlockType.OUT_OF_SERVICE: BlockType.HOLD,
    BlockType.HOLD: None,
}


class RoomBlock(Base):
    """Manual hold on one physical room for one night, independent of bookings."""
    __tablename__ = "room_blocks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    type = Column(String(10), nullable=False, default=BlockType.OUT_OF_ORDER.value)
    reason = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room = relationship("Room", back_populates="blocks")

    __table_args__ = (
        UniqueConstraint("room_id", "date", name="uq_room_block_room_date"),
    )

    def __repr__(self):
        return f"<RoomBlock {self.room_id} {self.date} {self.type}>"
