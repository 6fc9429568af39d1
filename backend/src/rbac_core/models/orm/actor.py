"""Actor ORM model.

Local mirror of the identity directory's actor records. The engine only reads
it to validate references and to migrate legacy role strings.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from rbac_core.models.orm.base import Base, CreatedAtMixin, IntegerIdMixin


class ActorORM(Base, IntegerIdMixin, CreatedAtMixin):
    """Actor database model."""

    __tablename__ = "actors"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Free-text role from the pre-RBAC user model, only read by the migration
    legacy_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
