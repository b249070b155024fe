from .base import Base
from .user import User
from .role import Role
from .user_role import UserRole
from .page_permission import PagePermission
from .role_permission import RolePermission

__all__ = [
    "Base",
    "User",
    "Role",
    "UserRole",
    "PagePermission",
    "RolePermission",
]
