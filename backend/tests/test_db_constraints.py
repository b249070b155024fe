"""
Unique constraints on the permission junction tables.

Repeated assignments and grants must reuse the existing row (reactivating it)
instead of adding a second one.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from temple_api.models import PagePermission, Role, RolePermission, User, UserRole


class TestUserRoleUniqueConstraint:
    """UNIQUE(user_id, role_id) on user_roles."""

    @pytest.mark.anyio
    async def test_duplicate_role_assignment_prevented(self, session):
        user = User(username="priest")
        role = Role(name="Administrator")
        session.add_all([user, role])
        await session.commit()

        session.add(UserRole(user_id=user.id, role_id=role.id))
        await session.commit()

        session.add(UserRole(user_id=user.id, role_id=role.id, is_active=False))
        with pytest.raises(IntegrityError):
            await session.commit()

    @pytest.mark.anyio
    async def test_same_role_different_users_allowed(self, session):
        first = User(username="first")
        second = User(username="second")
        role = Role(name="Cashier")
        session.add_all([first, second, role])
        await session.commit()

        session.add_all(
            [
                UserRole(user_id=first.id, role_id=role.id),
                UserRole(user_id=second.id, role_id=role.id),
            ]
        )
        await session.commit()


class TestRolePermissionUniqueConstraint:
    """UNIQUE(role_id, page_permission_id) on role_permissions."""

    @pytest.mark.anyio
    async def test_duplicate_permission_grant_prevented(self, session):
        role = Role(name="Accountant")
        page_permission = PagePermission(page_name="Donations", page_url="/donations", permission_id=1)
        session.add_all([role, page_permission])
        await session.commit()

        session.add(RolePermission(role_id=role.id, page_permission_id=page_permission.id))
        await session.commit()

        session.add(RolePermission(role_id=role.id, page_permission_id=page_permission.id))
        with pytest.raises(IntegrityError):
            await session.commit()

    @pytest.mark.anyio
    async def test_same_role_different_permissions_allowed(self, session):
        role = Role(name="Clerk")
        view = PagePermission(page_name="Sales", page_url="/sales", permission_id=1)
        create = PagePermission(page_name="Sales", page_url="/sales", permission_id=2)
        session.add_all([role, view, create])
        await session.commit()

        session.add_all(
            [
                RolePermission(role_id=role.id, page_permission_id=view.id),
                RolePermission(role_id=role.id, page_permission_id=create.id),
            ]
        )
        await session.commit()


class TestPagePermissionUniqueConstraint:
    """UNIQUE(page_name, permission_id) on page_permissions."""

    @pytest.mark.anyio
    async def test_duplicate_page_permission_prevented(self, session):
        session.add(PagePermission(page_name="Roles", page_url="/roles", permission_id=1))
        await session.commit()

        session.add(PagePermission(page_name="Roles", page_url="/roles", permission_id=1))
        with pytest.raises(IntegrityError):
            await session.commit()

    @pytest.mark.anyio
    async def test_new_rows_default_to_active(self, session):
        page_permission = PagePermission(page_name="Events", page_url="/events", permission_id=3)
        session.add(page_permission)
        await session.commit()

        assert page_permission.is_active is True
        assert page_permission.permission.label == "Edit"
