from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .page_permission import PagePermission
    from .role import Role


class RolePermission(TimestampMixin, Base):
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint(
            "role_id",
            "page_permission_id",
            name="uq_role_permissions_role_id_page_permission_id",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    page_permission_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("page_permissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    role: Mapped["Role"] = relationship("Role", back_populates="role_permissions")
    page_permission: Mapped["PagePermission"] = relationship(
        "PagePermission", back_populates="role_permissions"
    )
