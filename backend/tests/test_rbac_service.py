"""Assignment manager tests: ledger lifecycle, grants, and catalog mutations."""

import pydantic
import pytest
from sqlalchemy import func, select

from rbac_core.config import Settings
from rbac_core.constants.permissions import PermissionName, RoleName
from rbac_core.exceptions import (
    ActorNotFoundError,
    AlreadyAssignedError,
    ConflictError,
    PermissionAlreadyExistsError,
    PermissionNotFoundError,
    RoleAlreadyExistsError,
    RoleHasActorsError,
    RoleNotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from rbac_core.models.domain.assignment import AssignmentState
from rbac_core.models.dto.rbac import (
    PermissionCreateRequest,
    PermissionUpdateRequest,
    RoleCreateRequest,
    RoleUpdateRequest,
)
from rbac_core.models.orm.actor_role import ActorRoleORM
from rbac_core.models.orm.role_permission import RolePermissionORM
from rbac_core.services.rbac_service import RbacService


async def count_ledger_rows(session, actor_id: int, role_id: int) -> int:
    result = await session.execute(
        select(func.count(ActorRoleORM.id))
        .where(ActorRoleORM.actor_id == actor_id)
        .where(ActorRoleORM.role_id == role_id)
    )
    return result.scalar_one()


class TestAssignRole:
    """assign_role lifecycle."""

    @pytest.mark.asyncio
    async def test_assign_returns_active_assignment(self, rbac, catalog, create_actor) -> None:
        admin = await create_actor("admin@example.com")
        actor = await create_actor("alice@example.com")
        role_id = catalog.roles[RoleName.VIEWER]

        assignment = await rbac.assign_role(actor, role_id, assigned_by=admin)

        assert assignment.actor_id == actor
        assert assignment.role_id == role_id
        assert assignment.assigned_by == admin
        assert assignment.is_active is True
        assert assignment.state is AssignmentState.ACTIVE
        assert assignment.role.name == "viewer"

    @pytest.mark.asyncio
    async def test_assign_twice_conflicts(self, rbac, session, catalog, create_actor) -> None:
        actor = await create_actor("alice@example.com")
        role_id = catalog.roles[RoleName.VIEWER]
        await rbac.assign_role(actor, role_id, assigned_by=None)

        with pytest.raises(AlreadyAssignedError) as exc_info:
            await rbac.assign_role(actor, role_id, assigned_by=None)

        assert isinstance(exc_info.value, ConflictError)
        assert await count_ledger_rows(session, actor, role_id) == 1

    @pytest.mark.asyncio
    async def test_reassign_after_revoke_reuses_row(self, rbac, session, catalog, create_actor) -> None:
        first_admin = await create_actor("first@example.com")
        second_admin = await create_actor("second@example.com")
        actor = await create_actor("alice@example.com")
        role_id = catalog.roles[RoleName.USER]

        first = await rbac.assign_role(actor, role_id, assigned_by=first_admin)
        first_id = first.id
        first_assigned_at = first.assigned_at
        await rbac.revoke_role(actor, role_id)
        second = await rbac.assign_role(actor, role_id, assigned_by=second_admin)

        assert second.id == first_id
        assert second.is_active is True
        assert second.assigned_by == second_admin
        assert second.assigned_at >= first_assigned_at
        assert await count_ledger_rows(session, actor, role_id) == 1

    @pytest.mark.asyncio
    async def test_unknown_actor(self, rbac, catalog) -> None:
        with pytest.raises(ActorNotFoundError):
            await rbac.assign_role(9999, catalog.roles[RoleName.USER], assigned_by=None)

    @pytest.mark.asyncio
    async def test_unknown_assigner(self, rbac, catalog, create_actor) -> None:
        actor = await create_actor("alice@example.com")

        with pytest.raises(ActorNotFoundError):
            await rbac.assign_role(actor, catalog.roles[RoleName.USER], assigned_by=9999)

    @pytest.mark.asyncio
    async def test_unknown_role(self, rbac, catalog, create_actor) -> None:
        actor = await create_actor("alice@example.com")

        with pytest.raises(RoleNotFoundError):
            await rbac.assign_role(actor, 9999, assigned_by=None)

    @pytest.mark.asyncio
    async def test_concurrent_insert_conflicts(
        self, rbac, session, catalog, create_actor, monkeypatch
    ) -> None:
        actor = await create_actor("alice@example.com")
        role_id = catalog.roles[RoleName.VIEWER]
        await rbac.assign_role(actor, role_id, assigned_by=None)

        # The lookup misses the row another request inserted first
        async def _not_seen(actor_id: int, role_id: int) -> None:
            return None

        monkeypatch.setattr(rbac.assignment_repo, "get_for_actor_and_role", _not_seen)

        with pytest.raises(AlreadyAssignedError):
            await rbac.assign_role(actor, role_id, assigned_by=None)

        assert await count_ledger_rows(session, actor, role_id) == 1


class TestRevokeRole:
    """revoke_role keeps the ledger row and is idempotent."""

    @pytest.mark.asyncio
    async def test_revoke_keeps_row_inactive(self, rbac, session, catalog, create_actor) -> None:
        actor = await create_actor("alice@example.com")
        role_id = catalog.roles[RoleName.USER]
        await rbac.assign_role(actor, role_id, assigned_by=None)

        await rbac.revoke_role(actor, role_id)

        result = await session.execute(
            select(ActorRoleORM.is_active)
            .where(ActorRoleORM.actor_id == actor)
            .where(ActorRoleORM.role_id == role_id)
        )
        assert result.scalar_one() is False

    @pytest.mark.asyncio
    async def test_revoke_twice_succeeds(self, rbac, catalog, create_actor) -> None:
        actor = await create_actor("alice@example.com")
        role_id = catalog.roles[RoleName.USER]
        await rbac.assign_role(actor, role_id, assigned_by=None)

        await rbac.revoke_role(actor, role_id)
        await rbac.revoke_role(actor, role_id)

    @pytest.mark.asyncio
    async def test_revoke_never_assigned_succeeds(self, rbac, session, catalog, create_actor) -> None:
        actor = await create_actor("alice@example.com")
        role_id = catalog.roles[RoleName.USER]

        await rbac.revoke_role(actor, role_id)

        assert await count_ledger_rows(session, actor, role_id) == 0


class TestSetRolePermissions:
    """set_role_permissions replaces grants atomically."""

    @pytest.mark.asyncio
    async def test_full_replace(self, rbac, catalog) -> None:
        role_id = catalog.roles[RoleName.VIEWER]
        perms = catalog.permissions

        await rbac.set_role_permissions(
            role_id, [perms["users:view"], perms["users:create"]], granted_by=None
        )
        await rbac.set_role_permissions(
            role_id, [perms["users:create"], perms["users:update"]], granted_by=None
        )

        names = [p.name for p in await rbac.get_role_permissions(role_id)]
        assert names == ["users:create", "users:update"]

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_granted_once(self, rbac, session, catalog) -> None:
        role_id = catalog.roles[RoleName.VIEWER]
        perm_id = catalog.permissions["users:view"]

        await rbac.set_role_permissions(role_id, [perm_id, perm_id], granted_by=None)

        result = await session.execute(
            select(func.count()).select_from(RolePermissionORM).where(RolePermissionORM.role_id == role_id)
        )
        assert result.scalar_one() == 1

    @pytest.mark.asyncio
    async def test_unknown_permission_leaves_grants_unchanged(self, rbac, catalog) -> None:
        role_id = catalog.roles[RoleName.VIEWER]
        before = [p.name for p in await rbac.get_role_permissions(role_id)]

        with pytest.raises(PermissionNotFoundError) as exc_info:
            await rbac.set_role_permissions(
                role_id, [catalog.permissions["users:view"], 9999], granted_by=None
            )

        assert exc_info.value.details == {"permission_ids": [9999]}
        assert [p.name for p in await rbac.get_role_permissions(role_id)] == before

    @pytest.mark.asyncio
    async def test_unknown_role(self, rbac, catalog) -> None:
        with pytest.raises(RoleNotFoundError):
            await rbac.set_role_permissions(9999, [], granted_by=None)


class TestRoleCatalog:
    """Role creation, update, deletion, and listing."""

    @pytest.mark.asyncio
    async def test_create_role_with_permissions(self, rbac, catalog, create_actor) -> None:
        creator = await create_actor("root@example.com")
        request = RoleCreateRequest(
            name="auditor",
            display_name="Auditor",
            description="Read-only audit access",
            permission_ids=[catalog.permissions["system:history"], catalog.permissions["billing:read"]],
        )

        role = await rbac.create_role(request, created_by=creator)

        assert role.name == "auditor"
        assert role.is_system_role is False
        assert sorted(role.permission_names) == ["billing:read", "system:history"]

    @pytest.mark.asyncio
    async def test_create_duplicate_role(self, rbac, catalog) -> None:
        with pytest.raises(RoleAlreadyExistsError):
            await rbac.create_role(RoleCreateRequest(name="viewer", display_name="Viewer Again"))

    @pytest.mark.asyncio
    async def test_create_role_with_unknown_permission(self, rbac, catalog) -> None:
        request = RoleCreateRequest(name="auditor", display_name="Auditor", permission_ids=[9999])

        with pytest.raises(PermissionNotFoundError):
            await rbac.create_role(request)

        names = [r.name for r in await rbac.list_roles(include_inactive=True)]
        assert "auditor" not in names

    @pytest.mark.asyncio
    async def test_update_role_fields_and_permissions(self, rbac, catalog) -> None:
        role_id = catalog.roles[RoleName.VIEWER]
        request = RoleUpdateRequest(
            display_name="Read Only",
            description="Updated",
            permission_ids=[catalog.permissions["orders:read"]],
        )

        role = await rbac.update_role(role_id, request)

        assert role.display_name == "Read Only"
        assert role.description == "Updated"
        assert role.updated_at is not None
        assert role.permission_names == ["orders:read"]

    @pytest.mark.asyncio
    async def test_update_role_name_conflict(self, rbac, catalog) -> None:
        with pytest.raises(RoleAlreadyExistsError):
            await rbac.update_role(catalog.roles[RoleName.VIEWER], RoleUpdateRequest(name="user"))

    @pytest.mark.asyncio
    async def test_system_role_can_be_edited(self, rbac, catalog) -> None:
        role = await rbac.update_role(
            catalog.roles[RoleName.SUPER_ADMIN], RoleUpdateRequest(display_name="Root")
        )

        assert role.is_system_role is True
        assert role.display_name == "Root"

    @pytest.mark.asyncio
    async def test_delete_role_with_active_actor(self, rbac, catalog, create_actor) -> None:
        actor = await create_actor("alice@example.com")
        role_id = catalog.roles[RoleName.VIEWER]
        await rbac.assign_role(actor, role_id, assigned_by=None)

        with pytest.raises(RoleHasActorsError) as exc_info:
            await rbac.delete_role(role_id)

        assert exc_info.value.details["actor_count"] == 1
        assert (await rbac.get_role(role_id)).name == "viewer"

    @pytest.mark.asyncio
    async def test_delete_role_removes_grants_and_revoked_rows(
        self, rbac, session, catalog, create_actor
    ) -> None:
        actor = await create_actor("alice@example.com")
        role_id = catalog.roles[RoleName.VIEWER]
        await rbac.assign_role(actor, role_id, assigned_by=None)
        await rbac.revoke_role(actor, role_id)

        await rbac.delete_role(role_id)

        with pytest.raises(RoleNotFoundError):
            await rbac.get_role(role_id)
        grants = await session.execute(
            select(func.count()).select_from(RolePermissionORM).where(RolePermissionORM.role_id == role_id)
        )
        assert grants.scalar_one() == 0
        assert await count_ledger_rows(session, actor, role_id) == 0

    @pytest.mark.asyncio
    async def test_delete_unknown_role(self, rbac, catalog) -> None:
        with pytest.raises(RoleNotFoundError):
            await rbac.delete_role(9999)

    @pytest.mark.asyncio
    async def test_list_roles_ordered_by_display_name(self, rbac, catalog) -> None:
        await rbac.update_role(catalog.roles[RoleName.VIEWER], RoleUpdateRequest(is_active=False))

        active = [r.display_name for r in await rbac.list_roles()]
        everything = [r.display_name for r in await rbac.list_roles(include_inactive=True)]

        assert active == ["Administrator", "Standard Administrator", "Super Administrator", "User"]
        assert everything == active + ["Viewer"]


class TestPermissionCatalog:
    """Permission creation, update, and listing."""

    @pytest.mark.asyncio
    async def test_create_permission_grants_super_admin(self, rbac, catalog) -> None:
        request = PermissionCreateRequest(
            resource="reports",
            action="export",
            display_name="Export Reports",
        )

        permission = await rbac.create_permission(request)

        assert permission.name == "reports:export"
        names = [p.name for p in await rbac.get_role_permissions(catalog.roles[RoleName.SUPER_ADMIN])]
        assert "reports:export" in names
        admin_names = [p.name for p in await rbac.get_role_permissions(catalog.roles[RoleName.ADMIN])]
        assert "reports:export" not in admin_names

    @pytest.mark.asyncio
    async def test_create_duplicate_permission(self, rbac, catalog) -> None:
        request = PermissionCreateRequest(resource="users", action="view", display_name="View Users")

        with pytest.raises(PermissionAlreadyExistsError):
            await rbac.create_permission(request)

    def test_request_rejects_mismatched_name(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            PermissionCreateRequest(
                resource="reports",
                action="export",
                name="reports.export",
                display_name="Export Reports",
            )

    @pytest.mark.asyncio
    async def test_service_rejects_mismatched_name(self, rbac, catalog) -> None:
        request = PermissionCreateRequest.model_construct(
            resource="reports",
            action="export",
            name="reports.export",
            display_name="Export Reports",
            description=None,
            is_active=True,
        )

        with pytest.raises(ValidationError):
            await rbac.create_permission(request)

    @pytest.mark.asyncio
    async def test_update_permission(self, rbac, catalog) -> None:
        permission_id = catalog.permissions[PermissionName.SYSTEM_HISTORY]

        permission = await rbac.update_permission(
            permission_id,
            PermissionUpdateRequest(display_name="Audit History", is_active=False),
        )

        assert permission.display_name == "Audit History"
        assert permission.is_active is False
        active = [p.name for p in await rbac.list_permissions()]
        everything = [p.name for p in await rbac.list_permissions(include_inactive=True)]
        assert "system:history" not in active
        assert "system:history" in everything

    @pytest.mark.asyncio
    async def test_update_unknown_permission(self, rbac, catalog) -> None:
        with pytest.raises(PermissionNotFoundError):
            await rbac.update_permission(9999, PermissionUpdateRequest(display_name="Missing"))

    @pytest.mark.asyncio
    async def test_list_permissions_ordered(self, rbac, catalog) -> None:
        permissions = await rbac.list_permissions()
        keys = [(p.resource, p.action) for p in permissions]

        assert len(permissions) == len(PermissionName)
        assert keys == sorted(keys)


class TestStoreFailures:
    """Mutations raise when the store is unavailable."""

    @pytest.mark.asyncio
    async def test_timeout_raises(self, slow_session, settings) -> None:
        fast = Settings(_env_file=None, database_url=settings.database_url, store_timeout_seconds=0.05)
        rbac = RbacService(slow_session, fast)

        with pytest.raises(StoreUnavailableError):
            await rbac.assign_role(1, 1, assigned_by=None)

    @pytest.mark.asyncio
    async def test_unreachable_raises(self, unreachable_session, settings) -> None:
        rbac = RbacService(unreachable_session, settings)

        with pytest.raises(StoreUnavailableError):
            await rbac.revoke_role(1, 1)
        with pytest.raises(StoreUnavailableError):
            await rbac.list_roles()
