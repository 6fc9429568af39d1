"""Permission sync service for catalog seeding and system role updates.

This service makes sure every catalog permission and system role exists,
then grants system roles the permissions they are missing. It never removes
a grant, so permissions granted by hand survive a restart.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.config import Settings, get_settings
from rbac_core.constants.permissions import (
    ADMIN_EXCLUDED_RESOURCES,
    PERMISSIONS,
    SYSTEM_ROLES,
    RoleName,
)
from rbac_core.models.orm.base import utcnow
from rbac_core.models.orm.permission import PermissionORM
from rbac_core.models.orm.role import RoleORM
from rbac_core.repositories.permission_repository import PermissionRepository
from rbac_core.repositories.role_repository import RoleRepository
from rbac_core.utils.store import run_store_call

logger = logging.getLogger(__name__)


class PermissionSyncService:
    """Synchronizes the catalog and system roles with the defined permissions.

    Rules:
    - The configured super admin role: Gets ALL active permissions
    - admin: Gets ALL active permissions EXCEPT the rbac resource
    - standard_admin, user, viewer: Get their fixed permission sets
    """

    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        """Initialize the service.

        Args:
            session: Database session
            settings: Application settings
        """
        self.session = session
        self.settings = settings or get_settings()
        self.permission_repo = PermissionRepository(session)
        self.role_repo = RoleRepository(session)

    async def sync_catalog(self) -> dict[str, int]:
        """Synchronize permissions, system roles, and their grants.

        Runs as one bounded transaction; nothing is kept if any step fails.

        Returns:
            Dict with counts of grants added per role

        Raises:
            StoreUnavailableError: If the store is unreachable or timed out
        """

        async def _sync() -> tuple[int, dict[str, int]]:
            created = await self._ensure_permissions()
            roles = await self._ensure_system_roles()
            all_permissions = await self.permission_repo.get_all()
            results: dict[str, int] = {}

            for definition in SYSTEM_ROLES:
                role = roles[definition.name]
                wanted = self._permissions_for(definition.name, definition.permissions, all_permissions)
                results[definition.name.value] = await self._grant(role, wanted)

            super_admin_name = self.settings.super_admin_role
            if super_admin_name not in results:
                super_admin = await self.role_repo.get_by_name(super_admin_name)
                if super_admin is None:
                    logger.warning(f"Super admin role '{super_admin_name}' not found, no grants synced")
                else:
                    results[super_admin_name] = await self._grant(super_admin, all_permissions)

            await self.session.commit()
            return created, results

        try:
            created_permissions, results = await run_store_call(
                _sync(), self.settings.store_timeout_seconds
            )
        except Exception:
            await self.session.rollback()
            raise

        total_added = sum(results.values())
        if created_permissions or total_added:
            logger.info(
                f"Permission sync completed: {created_permissions} permissions created, "
                f"{total_added} grants added"
            )
        else:
            logger.debug("Permission sync: no changes needed")

        return results

    async def _grant(self, role: RoleORM, permissions: list[PermissionORM]) -> int:
        return await self.role_repo.add_permissions(
            role.id,
            [p.id for p in permissions],
            granted_by=None,
            granted_at=utcnow(),
        )

    async def _ensure_permissions(self) -> int:
        """Insert catalog permissions that are missing.

        Returns:
            Number of permissions created
        """
        created = 0
        for definition in PERMISSIONS:
            if await self.permission_repo.get_by_name(definition.name.value) is not None:
                continue
            await self.permission_repo.create(
                name=definition.name.value,
                resource=definition.resource,
                action=definition.action,
                display_name=definition.display_name,
                description=definition.description,
                is_active=True,
            )
            created += 1
        return created

    async def _ensure_system_roles(self) -> dict[RoleName, RoleORM]:
        """Insert system roles that are missing.

        Returns:
            Dict of system roles by name
        """
        roles: dict[RoleName, RoleORM] = {}
        for definition in SYSTEM_ROLES:
            role = await self.role_repo.get_by_name(definition.name.value)
            if role is None:
                role = await self.role_repo.create(
                    name=definition.name.value,
                    display_name=definition.display_name,
                    description=definition.description,
                    is_active=True,
                    is_system_role=True,
                )
                logger.info(f"Created system role '{definition.name.value}'")
            roles[definition.name] = role
        return roles

    def _permissions_for(
        self,
        role_name: RoleName,
        fixed: frozenset,
        all_permissions: list[PermissionORM],
    ) -> list[PermissionORM]:
        """Get the permissions a system role should hold.

        Args:
            role_name: System role name
            fixed: Fixed permission set of the role definition
            all_permissions: All active permissions

        Returns:
            List of permissions for the role
        """
        if role_name.value == self.settings.super_admin_role:
            return all_permissions
        if role_name == RoleName.ADMIN:
            return [p for p in all_permissions if p.resource not in ADMIN_EXCLUDED_RESOURCES]
        names = {str(name) for name in fixed}
        return [p for p in all_permissions if p.name in names]


async def sync_catalog_on_startup() -> dict[str, int]:
    """Convenience function to sync the catalog.

    Called from application startup.

    Returns:
        Dict with counts of grants added per role
    """
    from rbac_core.database import get_session_maker

    async with get_session_maker()() as session:
        service = PermissionSyncService(session)
        return await service.sync_catalog()
