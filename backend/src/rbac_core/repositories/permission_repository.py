"""Permission repository."""

from sqlalchemy import or_, select

from rbac_core.models.orm.permission import PermissionORM
from rbac_core.models.orm.role_permission import RolePermissionORM
from rbac_core.repositories.base import BaseRepository


class PermissionRepository(BaseRepository[PermissionORM]):
    """Repository for permission operations."""

    model = PermissionORM

    async def get_by_name(self, name: str) -> PermissionORM | None:
        """Get permission by name.

        Args:
            name: Permission name

        Returns:
            PermissionORM or None if not found
        """
        result = await self.session.execute(select(PermissionORM).where(PermissionORM.name == name))
        return result.scalar_one_or_none()

    async def get_conflicting(self, name: str, resource: str, action: str) -> PermissionORM | None:
        """Get a permission that shares the name or the resource/action pair."""
        result = await self.session.execute(
            select(PermissionORM)
            .where(
                or_(
                    PermissionORM.name == name,
                    (PermissionORM.resource == resource) & (PermissionORM.action == action),
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_all(self, include_inactive: bool = False) -> list[PermissionORM]:
        """Get permissions ordered by resource and action.

        Args:
            include_inactive: Include deactivated permissions

        Returns:
            List of PermissionORM
        """
        query = select(PermissionORM).order_by(PermissionORM.resource, PermissionORM.action)
        if not include_inactive:
            query = query.where(PermissionORM.is_active == True)  # noqa: E712
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_for_role(self, role_id: int) -> list[PermissionORM]:
        """Get active permissions granted to a role.

        Args:
            role_id: Role ID

        Returns:
            List of PermissionORM ordered by resource and action
        """
        result = await self.session.execute(
            select(PermissionORM)
            .join(RolePermissionORM, RolePermissionORM.permission_id == PermissionORM.id)
            .where(RolePermissionORM.role_id == role_id)
            .where(PermissionORM.is_active == True)  # noqa: E712
            .order_by(PermissionORM.resource, PermissionORM.action)
        )
        return list(result.scalars().all())
