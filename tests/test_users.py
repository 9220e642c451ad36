"""
Tests for users and roles administration
"""

import pytest

from hotel_admin.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from hotel_admin.models.user import AppUser
from hotel_admin.schemas.user import RoleCreate, RoleUpdate, UserCreate, UserUpdate
from hotel_admin.services.user_service import UserService


class TestUsers:

    def test_create_user(self, db, users):
        user = UserService(db).create_user(
            UserCreate(email="New.Person@Example.com", full_name=" New Person ", auth_id="auth|new"),
            users.admin
        )
        assert user.email == "new.person@example.com"
        assert user.full_name == "New Person"
        assert user.role == "staff"
        assert UserService(db).get_by_auth_id("auth|new").id == user.id

    def test_duplicate_email(self, db, users):
        with pytest.raises(ValidationError):
            UserService(db).create_user(UserCreate(email="staff@example.com", full_name="Again"), users.admin)

    def test_unknown_role(self, db, users):
        with pytest.raises(ValidationError):
            UserService(db).create_user(
                UserCreate(email="x@example.com", full_name="X", role="janitor"), users.admin
            )

    def test_staff_cannot_manage_users(self, db, users):
        with pytest.raises(PermissionDeniedError):
            UserService(db).create_user(UserCreate(email="x@example.com", full_name="X"), users.staff)

    def test_update_and_toggle(self, db, users):
        service = UserService(db)
        service.update_user(users.staff.id, UserUpdate(role="viewer"), users.admin)
        assert service.get_user(users.staff.id).role == "viewer"

        service.toggle_active(users.staff.id, users.admin)
        assert service.get_user(users.staff.id).is_active is False
        assert [u.email for u in service.list_users(include_inactive=False)] == [
            "admin@example.com", "viewer@example.com"
        ]

    def test_cannot_deactivate_yourself(self, db, users):
        service = UserService(db)
        with pytest.raises(ValidationError):
            service.toggle_active(users.admin.id, users.admin)
        with pytest.raises(ValidationError):
            service.update_user(users.admin.id, UserUpdate(is_active=False), users.admin)

    def test_unknown_user(self, db, users):
        with pytest.raises(NotFoundError):
            UserService(db).update_user("missing", UserUpdate(full_name="Ghost"), users.admin)


class TestRoles:

    def test_create_role_and_assign(self, db, users):
        service = UserService(db)
        role = service.create_role(
            RoleCreate(name="night-auditor", permissions=["view", "manage_blocks", "view"]),
            users.admin
        )
        assert role.permissions == ["manage_blocks", "view"]

        service.update_user(users.viewer.id, UserUpdate(role="night-auditor"), users.admin)
        assert service.role_permissions("night-auditor") == ["manage_blocks", "view"]

    def test_unknown_permission(self, db, users):
        with pytest.raises(ValidationError):
            UserService(db).create_role(RoleCreate(name="odd", permissions=["fly"]), users.admin)

    def test_duplicate_role(self, db, users):
        service = UserService(db)
        service.create_role(RoleCreate(name="auditor"), users.admin)
        with pytest.raises(ValidationError):
            service.create_role(RoleCreate(name="auditor"), users.admin)

    def test_rename_carries_users_along(self, db, users):
        service = UserService(db)
        role = service.create_role(RoleCreate(name="auditor", permissions=["view"]), users.admin)
        service.update_user(users.viewer.id, UserUpdate(role="auditor"), users.admin)

        service.update_role(role.id, RoleUpdate(name="night-auditor"), users.admin)

        assert db.query(AppUser).filter(AppUser.id == users.viewer.id).one().role == "night-auditor"
        assert [r.name for r in service.list_roles()] == ["night-auditor"]

    def test_staff_cannot_manage_roles(self, db, users):
        with pytest.raises(PermissionDeniedError):
            UserService(db).create_role(RoleCreate(name="x"), users.staff)
