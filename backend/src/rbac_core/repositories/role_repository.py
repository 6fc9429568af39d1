"""Role repository."""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from rbac_core.models.orm.role import RoleORM
from rbac_core.models.orm.role_permission import RolePermissionORM
from rbac_core.repositories.base import BaseRepository


class RoleRepository(BaseRepository[RoleORM]):
    """Repository for role and grant operations."""

    model = RoleORM

    async def get_by_name(self, name: str) -> RoleORM | None:
        """Get role by name.

        Args:
            name: Role name

        Returns:
            RoleORM or None if not found
        """
        result = await self.session.execute(select(RoleORM).where(RoleORM.name == name))
        return result.scalar_one_or_none()

    async def get_by_names(self, names: list[str]) -> list[RoleORM]:
        """Get roles by names."""
        result = await self.session.execute(select(RoleORM).where(RoleORM.name.in_(names)))
        return list(result.scalars().all())

    async def get_with_permissions(self, role_id: int) -> RoleORM | None:
        """Get role with permissions loaded.

        Args:
            role_id: Role ID

        Returns:
            RoleORM with permissions or None
        """
        result = await self.session.execute(
            select(RoleORM)
            .options(selectinload(RoleORM.permissions))
            .where(RoleORM.id == role_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_all_with_permissions(self, include_inactive: bool = False) -> list[RoleORM]:
        """Get roles with permissions, ordered by display name.

        Args:
            include_inactive: Include deactivated roles

        Returns:
            List of RoleORM with permissions
        """
        query = (
            select(RoleORM)
            .options(selectinload(RoleORM.permissions))
            .order_by(RoleORM.display_name)
            .execution_options(populate_existing=True)
        )
        if not include_inactive:
            query = query.where(RoleORM.is_active == True)  # noqa: E712
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_granted_permission_ids(self, role_id: int) -> set[int]:
        """Get IDs of all permissions granted to a role, active or not."""
        result = await self.session.execute(
            select(RolePermissionORM.permission_id).where(RolePermissionORM.role_id == role_id)
        )
        return set(result.scalars().all())

    async def set_permissions(
        self,
        role_id: int,
        permission_ids: list[int],
        granted_by: int | None,
        granted_at: datetime,
    ) -> None:
        """Set permissions for a role (replaces existing).

        The caller owns the transaction so the delete and inserts commit
        together.

        Args:
            role_id: Role ID
            permission_ids: Permission IDs, duplicates are ignored
            granted_by: Actor granting the permissions
            granted_at: Grant timestamp
        """
        await self.session.execute(
            delete(RolePermissionORM).where(RolePermissionORM.role_id == role_id)
        )

        for perm_id in dict.fromkeys(permission_ids):
            self.session.add(
                RolePermissionORM(
                    role_id=role_id,
                    permission_id=perm_id,
                    granted_by=granted_by,
                    granted_at=granted_at,
                )
            )

        await self.session.flush()

    async def add_permissions(
        self,
        role_id: int,
        permission_ids: list[int],
        granted_by: int | None,
        granted_at: datetime,
    ) -> int:
        """Grant permissions a role does not hold yet.

        Returns:
            Number of grants added
        """
        existing = await self.get_granted_permission_ids(role_id)
        added = 0
        for perm_id in dict.fromkeys(permission_ids):
            if perm_id in existing:
                continue
            self.session.add(
                RolePermissionORM(
                    role_id=role_id,
                    permission_id=perm_id,
                    granted_by=granted_by,
                    granted_at=granted_at,
                )
            )
            added += 1

        if added > 0:
            await self.session.flush()
        return added

    async def delete_permissions(self, role_id: int) -> None:
        """Delete all grants of a role."""
        await self.session.execute(
            delete(RolePermissionORM).where(RolePermissionORM.role_id == role_id)
        )
