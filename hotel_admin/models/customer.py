import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from ..database import Base


class Customer(Base):
    """Guest contact details. A new row is written for every booking."""
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True, index=True)
    email = Column(String(255), nullable=True)
    country = Column(String(100), nullable=True)

    # Referral metadata (agent / agency that sent the guest)
    referral_name = Column(String(100), nullable=True)
    ref_agency = Column(String(100), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bookings = relationship("Booking", back_populates="customer")

    def __repr__(self):
        return f"<Customer {self.name} - {self.phone}>"
