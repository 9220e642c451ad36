"""
Authorization policy.

Every mutating service entry point calls `require(actor, Capability.X)`.
Nothing else in the code base inspects role names.
"""

import enum
import logging
from typing import Iterable, Optional, Set

from .exceptions import PermissionDeniedError
from .models.user import AppUser, UserRole

logger = logging.getLogger(__name__)


class Capability(str, enum.Enum):
    VIEW = "view"
    CREATE_BOOKING = "create_booking"
    EDIT_BOOKING = "edit_booking"
    DELETE_BOOKING = "delete_booking"
    MANAGE_BLOCKS = "manage_blocks"
    MANAGE_CATALOG = "manage_catalog"
    MANAGE_USERS = "manage_users"
    MANAGE_ROLES = "manage_roles"


DEFAULT_ROLE_CAPABILITIES = {
    UserRole.ADMIN.value: frozenset(Capability),
    UserRole.STAFF.value: frozenset({
        Capability.VIEW,
        Capability.CREATE_BOOKING,
        Capability.EDIT_BOOKING,
        Capability.MANAGE_BLOCKS,
    }),
    UserRole.VIEWER.value: frozenset({Capability.VIEW}),
}


def parse_capabilities(names: Iterable[str]) -> Set[Capability]:
    parsed = set()
    for name in names or []:
        try:
            parsed.add(Capability(name))
        except ValueError:
            logger.warning(f"Ignoring unknown capability '{name}'")
    return parsed


def capabilities_for(role_name: str, stored_permissions: Optional[Iterable[str]] = None) -> Set[Capability]:
    """Built-in defaults for the role merged with the permissions stored on its Role row."""
    role_key = (role_name or "").lower()
    granted = set(DEFAULT_ROLE_CAPABILITIES.get(role_key, frozenset()))
    granted |= parse_capabilities(stored_permissions or [])
    return granted


def can(user: Optional[AppUser], capability: Capability, stored_permissions: Optional[Iterable[str]] = None) -> bool:
    if user is None or not user.is_active:
        return False
    if stored_permissions is None:
        # Attached by get_current_user from the user's Role row
        stored_permissions = getattr(user, "permissions", None)
    return capability in capabilities_for(user.role, stored_permissions)


def require(user: Optional[AppUser], capability: Capability, stored_permissions: Optional[Iterable[str]] = None) -> None:
    """Raise PermissionDeniedError unless `user` holds `capability`."""
    if not can(user, capability, stored_permissions):
        who = user.email if user is not None else "anonymous"
        logger.warning(f"Permission denied: {who} lacks {capability.value}")
        raise PermissionDeniedError(f"Missing permission: {capability.value}")
