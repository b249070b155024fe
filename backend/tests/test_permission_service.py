"""Permission store queries against an in-memory database."""
import asyncio
import logging
from unittest.mock import MagicMock

import pytest

from temple_api.crud.page_permission import PagePermissionRepository
from temple_api.crud.role import RoleRepository
from temple_api.domain.result import Failure, Success
from temple_api.models import PagePermission, User
from temple_api.services.permission_service import PermissionService


async def seed_grant(session, *, username="priest", page_url="/roles", permission_id=1):
    user = User(username=username)
    session.add(user)
    await session.flush()

    pages = PagePermissionRepository(session)
    roles = RoleRepository(session)
    page_permission = await pages.get_by_page(page_url, permission_id)
    if page_permission is None:
        page_permission = await pages.create(
            page_name=f"{page_url.strip('/') or 'home'}-{permission_id}",
            page_url=page_url,
            permission_id=permission_id,
        )
    role = await roles.create(name=f"{username}-role")
    await roles.grant_page_permission(role.id, page_permission.id)
    await roles.assign_to_user(user.id, role.id)
    await session.commit()
    return user, role, page_permission


@pytest.mark.anyio
async def test_active_chain_grants_permission(session, session_factory) -> None:
    user, _, _ = await seed_grant(session)
    service = PermissionService(session_factory=session_factory)

    assert await service.has_active_permission(user.id, "/roles", 1) == Success(value=True)
    assert await service.has_active_permission(user.id, "/roles", 2) == Success(value=False)
    assert await service.has_active_permission(user.id, "/donations", 1) == Success(value=False)


@pytest.mark.anyio
async def test_unknown_user_has_no_permission(session, session_factory) -> None:
    await seed_grant(session)
    service = PermissionService(session_factory=session_factory)

    assert await service.has_active_permission(999, "/roles", 1) == Success(value=False)


@pytest.mark.anyio
async def test_any_active_role_with_the_grant_suffices(session, session_factory) -> None:
    user, granting_role, _ = await seed_grant(session)
    roles = RoleRepository(session)
    other_role = await roles.create(name="Volunteer")
    other_page = await PagePermissionRepository(session).create(
        page_name="Donations", page_url="/donations", permission_id=1
    )
    await roles.grant_page_permission(other_role.id, other_page.id)
    await roles.assign_to_user(user.id, other_role.id)
    await session.commit()
    service = PermissionService(session_factory=session_factory)

    assert await service.has_active_permission(user.id, "/roles", 1) == Success(value=True)

    await roles.remove_from_user(user.id, granting_role.id)
    await session.commit()

    assert await service.has_active_permission(user.id, "/roles", 1) == Success(value=False)
    assert await service.has_active_permission(user.id, "/donations", 1) == Success(value=True)


@pytest.mark.anyio
async def test_inactive_role_assignment_revokes_access(session, session_factory) -> None:
    user, role, _ = await seed_grant(session)
    await RoleRepository(session).remove_from_user(user.id, role.id)
    await session.commit()
    service = PermissionService(session_factory=session_factory)

    assert await service.has_active_permission(user.id, "/roles", 1) == Success(value=False)


@pytest.mark.anyio
async def test_inactive_role_grant_revokes_access(session, session_factory) -> None:
    user, role, page_permission = await seed_grant(session)
    await RoleRepository(session).revoke_page_permission(role.id, page_permission.id)
    await session.commit()
    service = PermissionService(session_factory=session_factory)

    assert await service.has_active_permission(user.id, "/roles", 1) == Success(value=False)


@pytest.mark.anyio
async def test_inactive_page_permission_revokes_access(session, session_factory) -> None:
    user, _, page_permission = await seed_grant(session)
    page_permission.is_active = False
    await session.commit()
    service = PermissionService(session_factory=session_factory)

    assert await service.has_active_permission(user.id, "/roles", 1) == Success(value=False)
    repo = PagePermissionRepository(session)
    assert await repo.list_all() == []
    assert await repo.list_all(include_inactive=True) == [page_permission]


@pytest.mark.anyio
async def test_regranting_reactivates_existing_rows(session, session_factory) -> None:
    user, role, page_permission = await seed_grant(session)
    roles = RoleRepository(session)
    await roles.revoke_page_permission(role.id, page_permission.id)
    await roles.remove_from_user(user.id, role.id)
    await session.commit()

    await roles.grant_page_permission(role.id, page_permission.id)
    await roles.assign_to_user(user.id, role.id)
    await session.commit()
    service = PermissionService(session_factory=session_factory)

    assert await service.has_active_permission(user.id, "/roles", 1) == Success(value=True)


@pytest.mark.anyio
async def test_permission_listings(session, session_factory) -> None:
    user, role, _ = await seed_grant(session)
    pages = PagePermissionRepository(session)
    roles = RoleRepository(session)
    for page_url, permission_id in (("/roles", 3), ("/donations", 1)):
        page_permission = await pages.create(
            page_name=f"{page_url.strip('/')}-{permission_id}",
            page_url=page_url,
            permission_id=permission_id,
        )
        await roles.grant_page_permission(role.id, page_permission.id)
    await session.commit()
    service = PermissionService(session_factory=session_factory)

    assert await service.get_user_permissions_for_page(user.id, "/roles") == ["View", "Edit"]
    assert await service.get_all_user_permissions(user.id) == {
        "/donations": ["View"],
        "/roles": ["View", "Edit"],
    }


@pytest.mark.anyio
async def test_store_fault_is_reported_as_failure(caplog: pytest.LogCaptureFixture) -> None:
    def broken_factory():
        raise ConnectionError("database unreachable")

    service = PermissionService(session_factory=broken_factory)

    with caplog.at_level(logging.ERROR, logger="temple_api.permissions"):
        result = await service.has_active_permission(7, "/roles", 1)

    assert result == Failure(error="ConnectionError: database unreachable")
    assert any("Error checking permission for user 7" in r.getMessage() for r in caplog.records)
    assert await service.get_user_permissions_for_page(7, "/roles") == []
    assert await service.get_all_user_permissions(7) == {}


@pytest.mark.anyio
async def test_slow_store_times_out_as_failure() -> None:
    class SlowSession:
        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc_info):
            return False

        async def execute(self, *args, **kwargs):
            await asyncio.sleep(1)
            return MagicMock()

    service = PermissionService(session_factory=SlowSession, timeout_seconds=0.01)

    assert await service.has_active_permission(7, "/roles", 1) == Failure(error="timeout")


def test_page_permission_rejects_unknown_code() -> None:
    with pytest.raises(ValueError, match="Invalid permission code"):
        PagePermission(page_name="roles-9", page_url="/roles", permission_id=9)
