"""Actor-role assignment repository.

Holds the ledger lookups and the active-chain queries used for decisions:
assignment (active, not expired) -> role (active) -> grant -> permission (active).
"""

from datetime import datetime

from sqlalchemy import Select, delete, func, or_, select, update

from rbac_core.models.orm.actor_role import ActorRoleORM
from rbac_core.models.orm.permission import PermissionORM
from rbac_core.models.orm.role import RoleORM
from rbac_core.models.orm.role_permission import RolePermissionORM
from rbac_core.repositories.base import BaseRepository


class AssignmentRepository(BaseRepository[ActorRoleORM]):
    """Repository for the actor-role assignment ledger."""

    model = ActorRoleORM

    async def get_for_actor_and_role(self, actor_id: int, role_id: int) -> ActorRoleORM | None:
        """Get the ledger row for an (actor, role) pair, active or not.

        Args:
            actor_id: Actor ID
            role_id: Role ID

        Returns:
            ActorRoleORM or None if the pair was never assigned
        """
        result = await self.session.execute(
            select(ActorRoleORM)
            .where(ActorRoleORM.actor_id == actor_id)
            .where(ActorRoleORM.role_id == role_id)
        )
        return result.scalar_one_or_none()

    async def deactivate(self, actor_id: int, role_id: int) -> int:
        """Flip the active row for a pair to inactive.

        Returns:
            Number of rows changed (0 or 1)
        """
        result = await self.session.execute(
            update(ActorRoleORM)
            .where(ActorRoleORM.actor_id == actor_id)
            .where(ActorRoleORM.role_id == role_id)
            .where(ActorRoleORM.is_active == True)  # noqa: E712
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def count_active_for_role(self, role_id: int) -> int:
        """Count active assignments to a role.

        Args:
            role_id: Role ID

        Returns:
            Number of actors actively holding the role
        """
        result = await self.session.execute(
            select(func.count(ActorRoleORM.id))
            .where(ActorRoleORM.role_id == role_id)
            .where(ActorRoleORM.is_active == True)  # noqa: E712
        )
        return result.scalar_one()

    async def delete_for_role(self, role_id: int) -> None:
        """Hard-delete every ledger row for a role."""
        await self.session.execute(delete(ActorRoleORM).where(ActorRoleORM.role_id == role_id))

    # =========================================================================
    # Active-chain queries
    # =========================================================================

    @staticmethod
    def _active_assignment_filter(query: Select, actor_id: int, now: datetime | None) -> Select:
        """Restrict a query joined to the ledger and roles to the active chain.

        Args:
            query: Query already joined to ActorRoleORM and RoleORM
            actor_id: Actor ID
            now: Reference time for expiry, None to ignore expires_at
        """
        query = (
            query.where(ActorRoleORM.actor_id == actor_id)
            .where(ActorRoleORM.is_active == True)  # noqa: E712
            .where(RoleORM.is_active == True)  # noqa: E712
        )
        if now is not None:
            query = query.where(
                or_(ActorRoleORM.expires_at.is_(None), ActorRoleORM.expires_at > now)
            )
        return query

    def _permission_chain(self, actor_id: int, now: datetime | None, *entities) -> Select:
        query = (
            select(*entities)
            .select_from(PermissionORM)
            .join(RolePermissionORM, RolePermissionORM.permission_id == PermissionORM.id)
            .join(RoleORM, RoleORM.id == RolePermissionORM.role_id)
            .join(ActorRoleORM, ActorRoleORM.role_id == RoleORM.id)
            .where(PermissionORM.is_active == True)  # noqa: E712
        )
        return self._active_assignment_filter(query, actor_id, now)

    async def actor_has_any_permission(
        self, actor_id: int, permission_names: list[str], now: datetime | None
    ) -> bool:
        """Check whether the active chain reaches any of the named permissions."""
        if not permission_names:
            return False
        query = (
            self._permission_chain(actor_id, now, PermissionORM.id)
            .where(PermissionORM.name.in_(permission_names))
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.first() is not None

    async def get_actor_permissions(self, actor_id: int, now: datetime | None) -> list[PermissionORM]:
        """Get the effective permission set of an actor.

        Returns:
            Distinct PermissionORM ordered by resource and action
        """
        query = (
            self._permission_chain(actor_id, now, PermissionORM)
            .distinct()
            .order_by(PermissionORM.resource, PermissionORM.action)
        )
        result = await self.session.execute(query)
        return list(result.scalars().unique().all())

    async def actor_has_role(self, actor_id: int, role_name: str, now: datetime | None) -> bool:
        """Check whether an actor actively holds a role by name."""
        query = self._active_assignment_filter(
            select(ActorRoleORM.id).join(RoleORM, RoleORM.id == ActorRoleORM.role_id),
            actor_id,
            now,
        )
        result = await self.session.execute(query.where(RoleORM.name == role_name).limit(1))
        return result.first() is not None

    async def get_active_for_actor(self, actor_id: int, now: datetime | None) -> list[ActorRoleORM]:
        """Get active assignments to active roles, with roles loaded.

        Returns:
            List of ActorRoleORM ordered by role display name
        """
        query = self._active_assignment_filter(
            select(ActorRoleORM).join(RoleORM, RoleORM.id == ActorRoleORM.role_id),
            actor_id,
            now,
        )
        result = await self.session.execute(query.order_by(RoleORM.display_name))
        return list(result.scalars().unique().all())
