"""Catalog sync tests."""

import pytest
from sqlalchemy import select

from rbac_core.config import Settings
from rbac_core.constants.permissions import PERMISSIONS, RoleName
from rbac_core.exceptions import StoreUnavailableError
from rbac_core.models.dto.rbac import PermissionCreateRequest
from rbac_core.models.orm.role import RoleORM
from rbac_core.services.authorization_service import AuthorizationService
from rbac_core.services.permission_sync_service import PermissionSyncService
from rbac_core.services.rbac_service import RbacService


@pytest.fixture
def sync(session, settings) -> PermissionSyncService:
    return PermissionSyncService(session, settings)


class TestSyncCatalog:
    """sync_catalog seeds and tops up system roles."""

    @pytest.mark.asyncio
    async def test_first_sync_seeds_everything(self, sync, session) -> None:
        results = await sync.sync_catalog()

        assert results == {
            "super_admin": len(PERMISSIONS),
            "admin": len(PERMISSIONS) - 4,
            "standard_admin": 8,
            "user": 5,
            "viewer": 3,
        }
        roles = (await session.execute(select(RoleORM))).scalars().all()
        assert sorted(r.name for r in roles) == sorted(r.value for r in RoleName)
        assert all(r.is_system_role for r in roles)

    @pytest.mark.asyncio
    async def test_second_sync_is_a_no_op(self, sync) -> None:
        await sync.sync_catalog()

        results = await sync.sync_catalog()

        assert set(results.values()) == {0}

    @pytest.mark.asyncio
    async def test_new_permissions_reach_admin_roles(self, sync, rbac, catalog) -> None:
        await rbac.create_permission(
            PermissionCreateRequest(resource="reports", action="export", display_name="Export Reports")
        )

        results = await sync.sync_catalog()

        # super_admin already received it on creation
        assert results["super_admin"] == 0
        assert results["admin"] == 1
        assert results["viewer"] == 0

    @pytest.mark.asyncio
    async def test_removed_grants_are_restored(self, sync, rbac, catalog) -> None:
        role_id = catalog.roles[RoleName.VIEWER]
        await rbac.set_role_permissions(role_id, [], granted_by=None)

        results = await sync.sync_catalog()

        assert results["viewer"] == 3
        assert len(await rbac.get_role_permissions(role_id)) == 3

    @pytest.mark.asyncio
    async def test_extra_grants_are_kept(self, sync, rbac, catalog) -> None:
        role_id = catalog.roles[RoleName.VIEWER]
        extra = catalog.permissions["users:view"]
        current = [p.id for p in await rbac.get_role_permissions(role_id)]
        await rbac.set_role_permissions(role_id, current + [extra], granted_by=None)

        await sync.sync_catalog()

        names = [p.name for p in await rbac.get_role_permissions(role_id)]
        assert "users:view" in names


class TestSyncSuperAdminRole:
    """Full grants follow the configured super admin role."""

    @pytest.mark.asyncio
    async def test_configured_role_gets_every_permission(self, session, settings) -> None:
        session.add(RoleORM(name="root", display_name="Root", is_active=True, is_system_role=False))
        await session.commit()
        custom = Settings(_env_file=None, database_url=settings.database_url, super_admin_role="root")

        results = await PermissionSyncService(session, custom).sync_catalog()

        assert results["root"] == len(PERMISSIONS)
        assert results["super_admin"] == 0
        assert results["admin"] == len(PERMISSIONS) - 4

    @pytest.mark.asyncio
    async def test_configured_role_is_recognized_as_super_admin(
        self, session, settings, create_actor
    ) -> None:
        session.add(RoleORM(name="root", display_name="Root", is_active=True, is_system_role=False))
        await session.commit()
        custom = Settings(_env_file=None, database_url=settings.database_url, super_admin_role="root")
        await PermissionSyncService(session, custom).sync_catalog()
        root_id = (
            await session.execute(select(RoleORM.id).where(RoleORM.name == "root"))
        ).scalar_one()
        actor = await create_actor("root@example.com")

        await RbacService(session, custom).assign_role(actor, root_id, assigned_by=None)
        authz = AuthorizationService(session, custom)

        assert await authz.is_super_admin(actor) is True
        assert len(await authz.get_user_permissions(actor)) == len(PERMISSIONS)

    @pytest.mark.asyncio
    async def test_missing_configured_role_is_skipped(self, session, settings) -> None:
        custom = Settings(_env_file=None, database_url=settings.database_url, super_admin_role="root")

        results = await PermissionSyncService(session, custom).sync_catalog()

        assert "root" not in results
        assert results["super_admin"] == 0


class TestSyncStoreFailures:
    """Store failures surface as StoreUnavailableError."""

    @pytest.mark.asyncio
    async def test_unreachable_store(self, unreachable_session, settings) -> None:
        with pytest.raises(StoreUnavailableError):
            await PermissionSyncService(unreachable_session, settings).sync_catalog()

    @pytest.mark.asyncio
    async def test_timeout(self, slow_session, settings) -> None:
        fast = Settings(_env_file=None, database_url=settings.database_url, store_timeout_seconds=0.05)

        with pytest.raises(StoreUnavailableError):
            await PermissionSyncService(slow_session, fast).sync_catalog()
