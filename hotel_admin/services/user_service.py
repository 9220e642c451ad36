"""
User Service

Back-office users and roles. Identity is owned by the external provider;
this only keeps the local profile, role assignment and active flag.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from ..exceptions import NotFoundError, ValidationError
from ..models.user import AppUser, Role, UserRole
from ..permissions import Capability, parse_capabilities, require
from ..schemas.user import RoleCreate, RoleUpdate, UserCreate, UserUpdate
from ..utils.db_helpers import read_guard, transaction

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @read_guard("list users")
    def list_users(self, include_inactive: bool = True) -> List[AppUser]:
        query = self.db.query(AppUser)
        if not include_inactive:
            query = query.filter(AppUser.is_active.is_(True))
        return query.order_by(AppUser.email).all()

    @read_guard("load user")
    def get_user(self, user_id: str) -> AppUser:
        user = self.db.get(AppUser, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    @read_guard("load user by subject")
    def get_by_auth_id(self, auth_id: str) -> Optional[AppUser]:
        return self.db.query(AppUser).filter(AppUser.auth_id == auth_id).first()

    @read_guard("load role permissions")
    def role_permissions(self, role_name: str) -> List[str]:
        """Permission names stored on the Role row, empty when there is none."""
        role = self.db.query(Role).filter(Role.name == role_name).first()
        return list(role.permissions or []) if role else []

    def _check_role_exists(self, role_name: str) -> None:
        builtin = {r.value for r in UserRole}
        if role_name in builtin:
            return
        if self.db.query(Role.id).filter(Role.name == role_name).first() is None:
            raise ValidationError(f"Unknown role: {role_name}")

    def create_user(self, data: UserCreate, actor: AppUser) -> AppUser:
        require(actor, Capability.MANAGE_USERS)
        email = data.email.lower()

        with transaction(self.db, "Create user"):
            if self.db.query(AppUser.id).filter(AppUser.email == email).first():
                raise ValidationError(f"A user with email {email} already exists")
            self._check_role_exists(data.role)

            user = AppUser(
                email=email,
                full_name=data.full_name.strip(),
                role=data.role,
                auth_id=data.auth_id
            )
            self.db.add(user)

        logger.info(f"User created: {email} [{data.role}] by {actor.email}")
        return user

    def update_user(self, user_id: str, data: UserUpdate, actor: AppUser) -> AppUser:
        require(actor, Capability.MANAGE_USERS)

        with transaction(self.db, "Update user"):
            user = self.get_user(user_id)
            changes = data.model_dump(exclude_unset=True)

            if "role" in changes:
                self._check_role_exists(changes["role"])
            if user.id == actor.id and changes.get("is_active") is False:
                raise ValidationError("You cannot deactivate your own account")

            for field, value in changes.items():
                setattr(user, field, value)

        logger.info(f"User {user.email} updated by {actor.email}: {sorted(changes)}")
        return user

    def toggle_active(self, user_id: str, actor: AppUser) -> AppUser:
        require(actor, Capability.MANAGE_USERS)

        with transaction(self.db, "Toggle user"):
            user = self.get_user(user_id)
            if user.id == actor.id:
                raise ValidationError("You cannot deactivate your own account")
            user.is_active = not user.is_active

        return user

    def record_login(self, user: AppUser) -> None:
        with transaction(self.db, "Record login"):
            user.last_login = datetime.utcnow()

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    @read_guard("list roles")
    def list_roles(self) -> List[Role]:
        return self.db.query(Role).order_by(Role.name).all()

    def _clean_permissions(self, names: List[str]) -> List[str]:
        unknown = [name for name in names if name not in {c.value for c in Capability}]
        if unknown:
            raise ValidationError("Unknown permissions", [f"Unknown permission: {n}" for n in unknown])
        return sorted(c.value for c in parse_capabilities(names))

    def create_role(self, data: RoleCreate, actor: AppUser) -> Role:
        require(actor, Capability.MANAGE_ROLES)

        with transaction(self.db, "Create role"):
            if self.db.query(Role.id).filter(Role.name == data.name).first():
                raise ValidationError(f"Role {data.name} already exists")
            role = Role(
                name=data.name,
                description=data.description,
                permissions=self._clean_permissions(data.permissions)
            )
            self.db.add(role)

        logger.info(f"Role created: {role.name} {role.permissions}")
        return role

    def update_role(self, role_id: str, data: RoleUpdate, actor: AppUser) -> Role:
        require(actor, Capability.MANAGE_ROLES)

        with transaction(self.db, "Update role"):
            role = self.db.get(Role, role_id)
            if role is None:
                raise NotFoundError("Role", role_id)

            changes = data.model_dump(exclude_unset=True)
            if "name" in changes and changes["name"] != role.name:
                if self.db.query(Role.id).filter(Role.name == changes["name"]).first():
                    raise ValidationError(f"Role {changes['name']} already exists")
                # Users reference roles by name
                self.db.query(AppUser).filter(AppUser.role == role.name).update(
                    {AppUser.role: changes["name"]}, synchronize_session=False
                )
            if changes.get("permissions") is not None:
                changes["permissions"] = self._clean_permissions(changes["permissions"])
            elif "permissions" in changes:
                del changes["permissions"]

            for field, value in changes.items():
                setattr(role, field, value)

        return role
