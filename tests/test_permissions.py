"""
Tests for the authorization policy

Test Coverage:
1. Built-in role defaults
2. Stored role permissions extend the defaults
3. Inactive and missing users hold nothing
"""

import pytest

from hotel_admin.exceptions import PermissionDeniedError
from hotel_admin.models.user import AppUser
from hotel_admin.permissions import Capability, can, capabilities_for, require


def _user(role, active=True, permissions=None):
    user = AppUser(email=f"{role}@example.com", full_name=role, role=role, is_active=active)
    if permissions is not None:
        user.permissions = permissions
    return user


class TestRoleDefaults:

    def test_admin_holds_everything(self):
        assert capabilities_for("admin") == set(Capability)

    def test_staff(self):
        staff = _user("staff")
        assert can(staff, Capability.CREATE_BOOKING)
        assert can(staff, Capability.EDIT_BOOKING)
        assert can(staff, Capability.MANAGE_BLOCKS)
        assert not can(staff, Capability.DELETE_BOOKING)
        assert not can(staff, Capability.MANAGE_CATALOG)
        assert not can(staff, Capability.MANAGE_USERS)

    def test_viewer_only_views(self):
        assert capabilities_for("viewer") == {Capability.VIEW}

    def test_role_name_is_case_insensitive(self):
        assert capabilities_for("ADMIN") == set(Capability)

    def test_unknown_role_has_nothing(self):
        assert capabilities_for("night-auditor") == set()


class TestStoredPermissions:

    def test_stored_permissions_extend_defaults(self):
        viewer = _user("viewer", permissions=["create_booking"])
        assert can(viewer, Capability.CREATE_BOOKING)
        assert not can(viewer, Capability.DELETE_BOOKING)

    def test_custom_role(self):
        auditor = _user("night-auditor")
        assert can(auditor, Capability.VIEW, stored_permissions=["view", "manage_blocks"])
        assert not can(auditor, Capability.CREATE_BOOKING, stored_permissions=["view"])

    def test_unknown_permission_names_are_ignored(self):
        assert capabilities_for("viewer", ["fly", "view"]) == {Capability.VIEW}


class TestRequire:

    def test_inactive_user_is_denied(self):
        with pytest.raises(PermissionDeniedError):
            require(_user("admin", active=False), Capability.VIEW)

    def test_anonymous_is_denied(self):
        assert not can(None, Capability.VIEW)
        with pytest.raises(PermissionDeniedError):
            require(None, Capability.VIEW)

    def test_allowed_passes(self):
        require(_user("staff"), Capability.CREATE_BOOKING)
