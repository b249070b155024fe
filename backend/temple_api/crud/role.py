from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.role import Role
from ..models.role_permission import RolePermission
from ..models.user_role import UserRole


class RoleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str, description: str | None = None) -> Role:
        role = Role(name=name, description=description)
        self.session.add(role)
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def get_by_name(self, name: str) -> Role | None:
        result = await self.session.execute(
            select(Role).where(Role.name == name)
        )
        return result.scalar_one_or_none()

    async def grant_page_permission(self, role_id: int, page_permission_id: int) -> RolePermission:
        """Grant a page permission, reactivating a soft-disabled grant if one exists."""
        result = await self.session.execute(
            select(RolePermission).where(
                RolePermission.role_id == role_id,
                RolePermission.page_permission_id == page_permission_id,
            )
        )
        role_permission = result.scalar_one_or_none()
        if role_permission is None:
            role_permission = RolePermission(
                role_id=role_id, page_permission_id=page_permission_id
            )
            self.session.add(role_permission)
        else:
            role_permission.is_active = True
        await self.session.flush()
        await self.session.refresh(role_permission)
        return role_permission

    async def revoke_page_permission(self, role_id: int, page_permission_id: int) -> None:
        result = await self.session.execute(
            select(RolePermission).where(
                RolePermission.role_id == role_id,
                RolePermission.page_permission_id == page_permission_id,
            )
        )
        role_permission = result.scalar_one_or_none()
        if role_permission:
            role_permission.is_active = False
            await self.session.flush()

    async def assign_to_user(self, user_id: int, role_id: int) -> UserRole:
        result = await self.session.execute(
            select(UserRole).where(
                UserRole.user_id == user_id,
                UserRole.role_id == role_id,
            )
        )
        user_role = result.scalar_one_or_none()
        if user_role is None:
            user_role = UserRole(user_id=user_id, role_id=role_id)
            self.session.add(user_role)
        else:
            user_role.is_active = True
        await self.session.flush()
        await self.session.refresh(user_role)
        return user_role

    async def remove_from_user(self, user_id: int, role_id: int) -> None:
        result = await self.session.execute(
            select(UserRole).where(
                UserRole.user_id == user_id,
                UserRole.role_id == role_id,
            )
        )
        user_role = result.scalar_one_or_none()
        if user_role:
            user_role.is_active = False
            await self.session.flush()
