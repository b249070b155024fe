"""
Seed page permissions and the default Administrator role.

Creates one page permission per known page and catalog permission, then
grants all of them to an ``Administrator`` role. Safe to re-run: existing
rows are reused.

Usage:
    python -m scripts.seed_permissions
    python -m scripts.seed_permissions --assign-user 1
"""
import argparse
import asyncio
import logging
import os
import sys

# Add parent directory to path to import temple_api modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.ext.asyncio import AsyncSession

from temple_api.auth.page_mapper import known_pages
from temple_api.auth.permissions import Permission
from temple_api.crud.page_permission import PagePermissionRepository
from temple_api.crud.role import RoleRepository
from temple_api.database import AsyncSessionLocal

logger = logging.getLogger("temple_api.seed")

ADMIN_ROLE = {
    "name": "Administrator",
    "description": "Full access to every page",
}

EXTRA_PAGES = [
    "/admin/roles",
    "/admin/permissions",
]


def page_name_for(page_url: str) -> str:
    if page_url == "/":
        return "Home"
    return page_url.strip("/").replace("/", " ").replace("-", " ").title()


async def seed_page_permissions(session: AsyncSession) -> list[int]:
    repo = PagePermissionRepository(session)
    page_permission_ids: list[int] = []
    for page_url in [*known_pages(), *EXTRA_PAGES]:
        for permission in Permission:
            existing = await repo.get_by_page(page_url, int(permission))
            if existing is None:
                existing = await repo.create(
                    page_name=page_name_for(page_url)[:50],
                    page_url=page_url,
                    permission_id=int(permission),
                )
                logger.info("Created page permission %s %s", permission, page_url)
            page_permission_ids.append(existing.id)
    return page_permission_ids


async def seed_admin_role(session: AsyncSession, page_permission_ids: list[int]) -> int:
    repo = RoleRepository(session)
    role = await repo.get_by_name(ADMIN_ROLE["name"])
    if role is None:
        role = await repo.create(**ADMIN_ROLE)
        logger.info("Created role %s", role.name)
    for page_permission_id in page_permission_ids:
        await repo.grant_page_permission(role.id, page_permission_id)
    return role.id


async def seed(assign_user_id: int | None = None) -> None:
    async with AsyncSessionLocal() as session:
        page_permission_ids = await seed_page_permissions(session)
        role_id = await seed_admin_role(session, page_permission_ids)
        if assign_user_id is not None:
            await RoleRepository(session).assign_to_user(assign_user_id, role_id)
            logger.info("Assigned Administrator role to user %s", assign_user_id)
        await session.commit()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--assign-user", type=int, default=None, help="user id to make Administrator")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    asyncio.run(seed(args.assign_user))


if __name__ == "__main__":
    main()
