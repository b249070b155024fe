from __future__ import annotations

from typing import Callable, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from ..result import Result


class PermissionStore(Protocol):
    async def has_active_permission(
        self, user_id: int, page_url: str, permission_code: int
    ) -> Result[bool, str]:
        ...


SessionFactory = Callable[[], AsyncSession]
