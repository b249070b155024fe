from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.page_permission import PagePermission
from ..models.role_permission import RolePermission
from ..models.user_role import UserRole


def _active_grants_for_user(user_id: int, *columns) -> Select:
    """user_roles -> role_permissions -> page_permissions, all links active."""
    return (
        select(*(columns or (PagePermission.page_url, PagePermission.permission_id)))
        .join(RolePermission, RolePermission.page_permission_id == PagePermission.id)
        .join(UserRole, UserRole.role_id == RolePermission.role_id)
        .where(UserRole.user_id == user_id)
        .where(UserRole.is_active.is_(True))
        .where(RolePermission.is_active.is_(True))
        .where(PagePermission.is_active.is_(True))
    )


class PagePermissionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, page_name: str, page_url: str, permission_id: int, is_active: bool = True
    ) -> PagePermission:
        page_permission = PagePermission(
            page_name=page_name,
            page_url=page_url,
            permission_id=permission_id,
            is_active=is_active,
        )
        self.session.add(page_permission)
        await self.session.flush()
        await self.session.refresh(page_permission)
        return page_permission

    async def get_by_page(self, page_url: str, permission_id: int) -> PagePermission | None:
        result = await self.session.execute(
            select(PagePermission).where(
                PagePermission.page_url == page_url,
                PagePermission.permission_id == permission_id,
            )
        )
        return result.scalars().first()

    async def list_all(self, include_inactive: bool = False) -> list[PagePermission]:
        query = select(PagePermission).order_by(PagePermission.page_url, PagePermission.permission_id)
        if not include_inactive:
            query = query.where(PagePermission.is_active.is_(True))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def has_active_permission(self, user_id: int, page_url: str, permission_id: int) -> bool:
        grants = (
            _active_grants_for_user(user_id)
            .where(PagePermission.page_url == page_url)
            .where(PagePermission.permission_id == permission_id)
        )
        result = await self.session.execute(select(grants.exists()))
        return bool(result.scalar())

    async def list_permission_ids_for_page(self, user_id: int, page_url: str) -> list[int]:
        query = (
            _active_grants_for_user(user_id, PagePermission.permission_id)
            .where(PagePermission.page_url == page_url)
            .distinct()
            .order_by(PagePermission.permission_id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_user_grants(self, user_id: int) -> list[tuple[str, int]]:
        query = _active_grants_for_user(user_id).distinct().order_by(
            PagePermission.page_url, PagePermission.permission_id
        )
        result = await self.session.execute(query)
        return [(page_url, permission_id) for page_url, permission_id in result.all()]
