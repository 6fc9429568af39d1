"""Permission ORM model."""

from sqlalchemy import Boolean, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rbac_core.models.orm.base import Base, CreatedAtMixin, IntegerIdMixin


class PermissionORM(Base, IntegerIdMixin, CreatedAtMixin):
    """Permission database model."""

    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("resource", "action", name="uq_permissions_resource_action"),
    )

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    resource: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    roles: Mapped[list["RoleORM"]] = relationship(
        "RoleORM",
        secondary="role_permissions",
        back_populates="permissions",
        viewonly=True,
    )
