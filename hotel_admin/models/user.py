import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON
from ..database import Base
import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"
    VIEWER = "viewer"


ROLE_LABELS = {
    UserRole.ADMIN: "Administrator",
    UserRole.STAFF: "Front desk staff",
    UserRole.VIEWER: "Read-only",
}


class Role(Base):
    """Named role with an explicit permission list (capability names)."""
    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(50), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    permissions = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Role {self.name}>"


class AppUser(Base):
    """
    Back-office user. Authentication happens at the identity provider;
    `auth_id` is the subject claim of the tokens it issues.
    """
    __tablename__ = "app_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    auth_id = Column(String(100), nullable=True, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(200), nullable=False)
    role = Column(String(50), nullable=False, default=UserRole.STAFF.value)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<AppUser {self.email} [{self.role}]>"
