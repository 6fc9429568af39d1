"""Actor-Role assignment ORM model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rbac_core.models.orm.base import Base, IntegerIdMixin, utcnow


class ActorRoleORM(Base, IntegerIdMixin):
    """Actor-Role assignment ledger.

    One row per (actor, role) pair. Revoking flips ``is_active`` instead of
    deleting, so the row keeps the assignment history.
    """

    __tablename__ = "actor_role_assignments"
    __table_args__ = (
        UniqueConstraint("actor_id", "role_id", name="uq_actor_role_assignments_actor_role"),
    )

    actor_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("actors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    assigned_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("actors.id", ondelete="SET NULL"),
        nullable=True,
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    role: Mapped["RoleORM"] = relationship("RoleORM", lazy="joined")
