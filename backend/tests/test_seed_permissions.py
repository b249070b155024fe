import pytest

from scripts.seed_permissions import (
    EXTRA_PAGES,
    page_name_for,
    seed_admin_role,
    seed_page_permissions,
)
from temple_api.auth.page_mapper import known_pages
from temple_api.crud.page_permission import PagePermissionRepository
from temple_api.crud.role import RoleRepository
from temple_api.models import User
from temple_api.services.permission_service import PermissionService


def test_page_name_for() -> None:
    assert page_name_for("/") == "Home"
    assert page_name_for("/event-expense-items") == "Event Expense Items"
    assert page_name_for("/admin/users") == "Admin Users"


@pytest.mark.anyio
async def test_seed_is_idempotent(session) -> None:
    first_ids = await seed_page_permissions(session)
    role_id = await seed_admin_role(session, first_ids)
    await session.commit()

    second_ids = await seed_page_permissions(session)
    assert await seed_admin_role(session, second_ids) == role_id
    await session.commit()

    assert first_ids == second_ids
    assert len(first_ids) == (len(known_pages()) + len(EXTRA_PAGES)) * 4
    assert len(await PagePermissionRepository(session).list_all()) == len(first_ids)


@pytest.mark.anyio
async def test_administrator_can_do_everything(session, session_factory) -> None:
    user = User(username="admin")
    session.add(user)
    await session.flush()
    role_id = await seed_admin_role(session, await seed_page_permissions(session))
    await RoleRepository(session).assign_to_user(user.id, role_id)
    await session.commit()

    pages = await PermissionService(session_factory=session_factory).get_all_user_permissions(user.id)

    assert pages["/roles"] == ["View", "Create", "Edit", "Delete"]
    assert set(pages) == set(known_pages()) | set(EXTRA_PAGES)
