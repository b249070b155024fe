from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..auth.permissions import catalog
from ..dependencies import get_current_user_id, get_permission_service
from ..services.permission_service import PermissionService

router = APIRouter(prefix="/api/permissions", tags=["permissions"])


class PermissionRead(BaseModel):
    code: int
    label: str


class PagePermissionsRead(BaseModel):
    page_url: str
    permissions: list[str]


class UserPermissionsRead(BaseModel):
    user_id: int
    pages: dict[str, list[str]]


@router.get("/catalog", response_model=list[PermissionRead])
async def list_permission_catalog() -> list[PermissionRead]:
    return [PermissionRead(**entry) for entry in catalog()]


@router.get("/me", response_model=UserPermissionsRead)
async def read_my_permissions(
    user_id: int = Depends(get_current_user_id),
    service: PermissionService = Depends(get_permission_service),
) -> UserPermissionsRead:
    """Every page the caller holds an active grant on, for client-side guards."""
    pages = await service.get_all_user_permissions(user_id)
    return UserPermissionsRead(user_id=user_id, pages=pages)


@router.get("/me/pages", response_model=PagePermissionsRead)
async def read_my_page_permissions(
    page_url: str = Query(..., min_length=1, max_length=50),
    user_id: int = Depends(get_current_user_id),
    service: PermissionService = Depends(get_permission_service),
) -> PagePermissionsRead:
    permissions = await service.get_user_permissions_for_page(user_id, page_url)
    return PagePermissionsRead(page_url=page_url, permissions=permissions)
