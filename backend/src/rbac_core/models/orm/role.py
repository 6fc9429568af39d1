"""Role ORM model."""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rbac_core.models.orm.base import Base, IntegerIdMixin, TimestampMixin


class RoleORM(Base, IntegerIdMixin, TimestampMixin):
    """Role database model."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Informational only, does not block mutation
    is_system_role: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    permissions: Mapped[list["PermissionORM"]] = relationship(
        "PermissionORM",
        secondary="role_permissions",
        back_populates="roles",
        order_by="PermissionORM.name",
        viewonly=True,
    )
