import asyncio
import logging

from ..auth.permissions import Permission
from ..crud.page_permission import PagePermissionRepository
from ..database import AsyncSessionLocal
from ..domain.ports.permission_store import SessionFactory
from ..domain.result import Failure, Result, Success

logger = logging.getLogger("temple_api.permissions")


class PermissionService:
    """Read-only access to the user -> role -> page permission chain.

    Every call opens its own short-lived session, so role and grant changes
    made by administrators are visible on the very next check. Nothing is
    cached between calls.

    Store faults never escape this class: ``has_active_permission`` reports
    them as ``Failure`` and the listing helpers fall back to empty results.
    Failed checks are not retried.
    """

    def __init__(
        self,
        session_factory: SessionFactory = AsyncSessionLocal,
        timeout_seconds: float | None = None,
    ):
        self.session_factory = session_factory
        self.timeout_seconds = timeout_seconds

    async def _bounded(self, awaitable):
        if self.timeout_seconds is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)

    async def has_active_permission(
        self, user_id: int, page_url: str, permission_code: int
    ) -> Result[bool, str]:
        """Check for an active grant of ``permission_code`` on ``page_url``.

        Args:
            user_id: The user to check
            page_url: Frontend page route the grant is stored under
            permission_code: Integer code from the permission catalog

        Returns:
            Success(True/False) when the store answered, Failure(reason) when
            it raised or timed out
        """
        try:
            async with self.session_factory() as session:
                repo = PagePermissionRepository(session)
                granted = await self._bounded(
                    repo.has_active_permission(user_id, page_url, int(permission_code))
                )
        except asyncio.TimeoutError:
            logger.error(
                "Permission check timed out for user %s on page %s", user_id, page_url
            )
            return Failure(error="timeout")
        except Exception as exc:
            logger.error(
                "Error checking permission for user %s on page %s",
                user_id,
                page_url,
                exc_info=exc,
            )
            return Failure(error=f"{type(exc).__name__}: {exc}")
        return Success(value=granted)

    async def get_user_permissions_for_page(self, user_id: int, page_url: str) -> list[str]:
        """Permission labels the user holds on one page, empty on store failure."""
        try:
            async with self.session_factory() as session:
                repo = PagePermissionRepository(session)
                codes = await self._bounded(repo.list_permission_ids_for_page(user_id, page_url))
        except Exception as exc:
            logger.error(
                "Error getting permissions for user %s on page %s",
                user_id,
                page_url,
                exc_info=exc,
            )
            return []
        return [Permission(code).label for code in codes if code in Permission._value2member_map_]

    async def get_all_user_permissions(self, user_id: int) -> dict[str, list[str]]:
        """Page url -> permission labels for every active grant of the user."""
        try:
            async with self.session_factory() as session:
                repo = PagePermissionRepository(session)
                grants = await self._bounded(repo.list_user_grants(user_id))
        except Exception as exc:
            logger.error(
                "Error getting all permissions for user %s", user_id, exc_info=exc
            )
            return {}

        permissions: dict[str, list[str]] = {}
        for page_url, code in grants:
            if code not in Permission._value2member_map_:
                continue
            permissions.setdefault(page_url, []).append(Permission(code).label)
        return permissions
