"""Actor repository."""

from sqlalchemy import select

from rbac_core.models.orm.actor import ActorORM
from rbac_core.repositories.base import BaseRepository


class ActorRepository(BaseRepository[ActorORM]):
    """Repository for actor directory lookups."""

    model = ActorORM

    async def get_with_legacy_roles(self) -> list[ActorORM]:
        """Get active actors that still carry a legacy role string.

        Returns:
            List of ActorORM ordered by email
        """
        result = await self.session.execute(
            select(ActorORM)
            .where(ActorORM.is_active == True)  # noqa: E712
            .where(ActorORM.legacy_role.is_not(None))
            .where(ActorORM.legacy_role != "")
            .order_by(ActorORM.email)
        )
        return list(result.scalars().all())
