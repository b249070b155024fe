from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from ..auth.permissions import Permission
from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .role_permission import RolePermission


class PagePermission(TimestampMixin, Base):
    """The grantable unit: one permission on one frontend page."""

    __tablename__ = "page_permissions"
    __table_args__ = (
        UniqueConstraint(
            "page_name", "permission_id", name="uq_page_permissions_page_name_permission_id"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    page_name: Mapped[str] = mapped_column(String(50), nullable=False)
    page_url: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    permission_id: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    role_permissions: Mapped[list["RolePermission"]] = relationship(
        "RolePermission", back_populates="page_permission", cascade="all, delete-orphan"
    )

    @property
    def permission(self) -> Permission:
        return Permission(self.permission_id)

    @validates("permission_id")
    def validate_permission_id(self, key: str, value: int) -> int:
        """Only catalog codes may be stored.

        Raises:
            ValueError: If ``value`` is not a known permission code
        """
        try:
            return int(Permission(int(value)))
        except ValueError:
            raise ValueError(f"Invalid permission code {value!r}") from None
