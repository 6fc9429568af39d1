"""Role-Permission grant ORM model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from rbac_core.models.orm.base import Base, utcnow


class RolePermissionORM(Base):
    """Role-Permission junction table."""

    __tablename__ = "role_permissions"

    role_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    permission_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    granted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    granted_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("actors.id", ondelete="SET NULL"),
        nullable=True,
    )
