"""RBAC service for role, permission, and assignment management."""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.config import Settings, get_settings
from rbac_core.constants.permissions import build_permission_name, is_valid_permission_name
from rbac_core.exceptions import (
    ActorNotFoundError,
    AlreadyAssignedError,
    PermissionAlreadyExistsError,
    PermissionNotFoundError,
    RoleAlreadyExistsError,
    RoleHasActorsError,
    RoleNotFoundError,
    ValidationError,
)
from rbac_core.models.domain.assignment import (
    ActorRoleAssignment,
    AssignmentState,
    next_state_on_assign,
    next_state_on_revoke,
)
from rbac_core.models.domain.permission import Permission
from rbac_core.models.domain.role import RoleWithPermissions
from rbac_core.models.dto.rbac import (
    PermissionCreateRequest,
    PermissionUpdateRequest,
    RoleCreateRequest,
    RoleUpdateRequest,
)
from rbac_core.models.orm.actor_role import ActorRoleORM
from rbac_core.models.orm.base import utcnow
from rbac_core.models.orm.permission import PermissionORM
from rbac_core.models.orm.role import RoleORM
from rbac_core.repositories.actor_repository import ActorRepository
from rbac_core.repositories.assignment_repository import AssignmentRepository
from rbac_core.repositories.permission_repository import PermissionRepository
from rbac_core.repositories.role_repository import RoleRepository
from rbac_core.utils.security_events import SecurityEventType, log_security_event
from rbac_core.utils.store import run_store_call

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RbacService:
    """Service for RBAC mutations and catalog reads."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        """Initialize service with database session."""
        self.session = session
        self.settings = settings or get_settings()
        self.actor_repo = ActorRepository(session)
        self.role_repo = RoleRepository(session)
        self.permission_repo = PermissionRepository(session)
        self.assignment_repo = AssignmentRepository(session)

    async def _transaction(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run a mutation as one bounded transaction.

        Commits on success, rolls back on any failure.
        """

        async def _run() -> T:
            result = await operation()
            await self.session.commit()
            return result

        try:
            return await run_store_call(_run(), self.settings.store_timeout_seconds)
        except Exception:
            await self.session.rollback()
            raise

    async def _read(self, call: Awaitable[T]) -> T:
        """Run a bounded catalog read."""
        return await run_store_call(call, self.settings.store_timeout_seconds)

    # =========================================================================
    # Validation helpers
    # =========================================================================

    async def _require_actor(self, actor_id: int | None) -> None:
        """Ensure an optional actor reference exists."""
        if actor_id is not None and not await self.actor_repo.exists(actor_id):
            raise ActorNotFoundError(actor_id)

    async def _require_role(self, role_id: int) -> RoleORM:
        role = await self.role_repo.get_by_id(role_id)
        if role is None:
            raise RoleNotFoundError(role_id=role_id)
        return role

    async def _require_permissions(self, permission_ids: list[int]) -> list[int]:
        """Ensure every permission exists. Returns the IDs deduplicated in order."""
        unique_ids = list(dict.fromkeys(permission_ids))
        found = {p.id for p in await self.permission_repo.get_by_ids(unique_ids)}
        missing = [pid for pid in unique_ids if pid not in found]
        if missing:
            raise PermissionNotFoundError(missing)
        return unique_ids

    async def _load_role(self, role_id: int) -> RoleWithPermissions:
        role = await self.role_repo.get_with_permissions(role_id)
        if role is None:
            raise RoleNotFoundError(role_id=role_id)
        return RoleWithPermissions.model_validate(role)

    # =========================================================================
    # Assignment Ledger
    # =========================================================================

    async def assign_role(
        self,
        actor_id: int,
        role_id: int,
        assigned_by: int | None,
        expires_at: datetime | None = None,
    ) -> ActorRoleAssignment:
        """Assign a role to an actor.

        A revoked assignment is reactivated in place with refreshed metadata;
        a new row is inserted only the first time the pair is assigned.

        Args:
            actor_id: Actor receiving the role
            role_id: Role to assign
            assigned_by: Actor performing the assignment
            expires_at: Optional expiry of the assignment

        Returns:
            The active assignment

        Raises:
            ActorNotFoundError: If the actor or assigner does not exist
            RoleNotFoundError: If the role does not exist
            AlreadyAssignedError: If the assignment is already active
            StoreUnavailableError: If the store is unreachable
        """
        # Stored in UTC; SQLite drops the offset
        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            else:
                expires_at = expires_at.astimezone(timezone.utc)

        async def _assign() -> ActorRoleORM:
            await self._require_actor(actor_id)
            await self._require_actor(assigned_by)
            await self._require_role(role_id)

            existing = await self.assignment_repo.get_for_actor_and_role(actor_id, role_id)
            current = AssignmentState.of(existing.is_active if existing else None)
            next_state_on_assign(current, actor_id, role_id)

            now = utcnow()
            if existing is None:
                assignment = ActorRoleORM(
                    actor_id=actor_id,
                    role_id=role_id,
                    assigned_at=now,
                    assigned_by=assigned_by,
                    expires_at=expires_at,
                    is_active=True,
                )
                self.session.add(assignment)
            else:
                assignment = existing
                assignment.is_active = True
                assignment.assigned_at = now
                assignment.assigned_by = assigned_by
                assignment.expires_at = expires_at

            try:
                await self.session.flush()
            except IntegrityError as e:
                # A concurrent assign inserted the pair first
                raise AlreadyAssignedError(actor_id, role_id) from e
            await self.session.refresh(assignment, attribute_names=["role"])
            return assignment

        assignment = await self._transaction(_assign)

        log_security_event(
            SecurityEventType.ROLE_ASSIGNED,
            actor_id=assigned_by,
            target_actor_id=actor_id,
            details={"role_id": role_id, "expires_at": expires_at.isoformat() if expires_at else None},
        )
        return ActorRoleAssignment.model_validate(assignment)

    async def revoke_role(self, actor_id: int, role_id: int, revoked_by: int | None = None) -> None:
        """Revoke a role from an actor.

        The ledger row is kept and marked inactive. Revoking an assignment
        that is absent or already revoked succeeds without changes.

        Raises:
            StoreUnavailableError: If the store is unreachable
        """

        async def _revoke() -> bool:
            existing = await self.assignment_repo.get_for_actor_and_role(actor_id, role_id)
            current = AssignmentState.of(existing.is_active if existing else None)
            if current is not AssignmentState.ACTIVE:
                return False
            next_state_on_revoke(current)
            return await self.assignment_repo.deactivate(actor_id, role_id) > 0

        changed = await self._transaction(_revoke)

        if changed:
            log_security_event(
                SecurityEventType.ROLE_REMOVED,
                actor_id=revoked_by,
                target_actor_id=actor_id,
                details={"role_id": role_id},
            )
        else:
            logger.debug(f"Revoke of role {role_id} for actor {actor_id}: no active assignment")

    # =========================================================================
    # Role-Permission Map
    # =========================================================================

    async def set_role_permissions(
        self,
        role_id: int,
        permission_ids: list[int],
        granted_by: int | None,
    ) -> None:
        """Replace the full permission set of a role.

        Existing grants are deleted and one grant per permission is inserted
        in the same transaction.

        Raises:
            RoleNotFoundError: If the role does not exist
            PermissionNotFoundError: If any permission does not exist
            ActorNotFoundError: If the granting actor does not exist
            StoreUnavailableError: If the store is unreachable
        """

        async def _set() -> list[int]:
            await self._require_role(role_id)
            await self._require_actor(granted_by)
            ids = await self._require_permissions(permission_ids)
            await self.role_repo.set_permissions(role_id, ids, granted_by=granted_by, granted_at=utcnow())
            return ids

        ids = await self._transaction(_set)

        log_security_event(
            SecurityEventType.PERMISSION_CHANGED,
            actor_id=granted_by,
            details={"role_id": role_id, "permission_ids": ids},
        )

    # =========================================================================
    # Role Catalog
    # =========================================================================

    async def list_roles(self, include_inactive: bool = False) -> list[RoleWithPermissions]:
        """List roles with their permissions, ordered by display name."""
        roles = await self._read(self.role_repo.get_all_with_permissions(include_inactive))
        return [RoleWithPermissions.model_validate(r) for r in roles]

    async def get_role(self, role_id: int) -> RoleWithPermissions:
        """Get a role with its permissions.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        return await self._read(self._load_role(role_id))

    async def create_role(
        self,
        request: RoleCreateRequest,
        created_by: int | None = None,
    ) -> RoleWithPermissions:
        """Create a role.

        Args:
            request: Role creation request
            created_by: Actor creating the role, stamped on its grants

        Returns:
            Created role

        Raises:
            RoleAlreadyExistsError: If the role name already exists
            PermissionNotFoundError: If any permission does not exist
        """

        async def _create() -> RoleWithPermissions:
            if await self.role_repo.get_by_name(request.name) is not None:
                raise RoleAlreadyExistsError(request.name)
            await self._require_actor(created_by)
            ids = await self._require_permissions(request.permission_ids)

            try:
                role = await self.role_repo.create(
                    name=request.name,
                    display_name=request.display_name,
                    description=request.description,
                    is_active=request.is_active,
                    is_system_role=False,
                )
            except IntegrityError as e:
                raise RoleAlreadyExistsError(request.name) from e

            if ids:
                await self.role_repo.set_permissions(role.id, ids, granted_by=created_by, granted_at=utcnow())
            return await self._load_role(role.id)

        role = await self._transaction(_create)

        log_security_event(
            SecurityEventType.ROLE_CREATED,
            actor_id=created_by,
            details={"role": role.name, "permissions": role.permission_names},
        )
        return role

    async def update_role(
        self,
        role_id: int,
        request: RoleUpdateRequest,
        updated_by: int | None = None,
    ) -> RoleWithPermissions:
        """Update a role.

        System roles can be edited like any other role.

        Args:
            role_id: Role ID to update
            request: Update request, ``permission_ids`` replaces all grants
            updated_by: Actor making the update

        Returns:
            Updated role

        Raises:
            RoleNotFoundError: If the role does not exist
            RoleAlreadyExistsError: If the new name belongs to another role
            PermissionNotFoundError: If any permission does not exist
        """

        async def _update() -> RoleWithPermissions:
            role = await self._require_role(role_id)
            await self._require_actor(updated_by)

            if request.name is not None and request.name != role.name:
                other = await self.role_repo.get_by_name(request.name)
                if other is not None and other.id != role_id:
                    raise RoleAlreadyExistsError(request.name)
                role.name = request.name

            if request.display_name is not None:
                role.display_name = request.display_name

            if request.description is not None:
                role.description = request.description

            if request.is_active is not None:
                role.is_active = request.is_active

            role.updated_at = utcnow()

            try:
                await self.session.flush()
            except IntegrityError as e:
                raise RoleAlreadyExistsError(request.name) from e

            if request.permission_ids is not None:
                ids = await self._require_permissions(request.permission_ids)
                await self.role_repo.set_permissions(role_id, ids, granted_by=updated_by, granted_at=utcnow())

            return await self._load_role(role_id)

        role = await self._transaction(_update)

        log_security_event(
            SecurityEventType.ROLE_UPDATED,
            actor_id=updated_by,
            details={
                "role": role.name,
                "fields": sorted(request.model_dump(exclude_none=True).keys()),
            },
        )
        return role

    async def delete_role(self, role_id: int, deleted_by: int | None = None) -> None:
        """Delete a role.

        Grants are deleted before the role. Revoked ledger rows for the role
        are removed with it.

        Raises:
            RoleNotFoundError: If the role does not exist
            RoleHasActorsError: If actors still actively hold the role
        """

        async def _delete() -> str:
            role = await self._require_role(role_id)

            actor_count = await self.assignment_repo.count_active_for_role(role_id)
            if actor_count > 0:
                raise RoleHasActorsError(role.name, actor_count)

            await self.role_repo.delete_permissions(role_id)
            await self.assignment_repo.delete_for_role(role_id)
            await self.role_repo.delete(role)
            return role.name

        role_name = await self._transaction(_delete)

        log_security_event(
            SecurityEventType.ROLE_DELETED,
            actor_id=deleted_by,
            details={"role": role_name},
        )

    # =========================================================================
    # Permission Catalog
    # =========================================================================

    async def list_permissions(self, include_inactive: bool = False) -> list[Permission]:
        """List permissions ordered by resource and action."""
        permissions = await self._read(self.permission_repo.get_all(include_inactive))
        return [Permission.model_validate(p) for p in permissions]

    async def get_role_permissions(self, role_id: int) -> list[Permission]:
        """Get the active permissions granted to a role.

        Raises:
            RoleNotFoundError: If the role does not exist
        """

        async def _get() -> list[PermissionORM]:
            await self._require_role(role_id)
            return await self.permission_repo.get_for_role(role_id)

        permissions = await self._read(_get())
        return [Permission.model_validate(p) for p in permissions]

    async def create_permission(
        self,
        request: PermissionCreateRequest,
        created_by: int | None = None,
    ) -> Permission:
        """Create a permission.

        The new permission is granted to the super administrator role, when
        it exists, so that role keeps holding every permission.

        Raises:
            ValidationError: If the name does not follow ``resource:action``
            PermissionAlreadyExistsError: If the name or resource/action pair exists
        """
        name = request.name or build_permission_name(request.resource, request.action)
        if name != build_permission_name(request.resource, request.action) or not is_valid_permission_name(name):
            raise ValidationError(
                "Permission name must be 'resource:action'",
                {"name": name},
            )

        async def _create() -> PermissionORM:
            if await self.permission_repo.get_conflicting(name, request.resource, request.action):
                raise PermissionAlreadyExistsError(name)
            await self._require_actor(created_by)

            try:
                permission = await self.permission_repo.create(
                    name=name,
                    resource=request.resource,
                    action=request.action,
                    display_name=request.display_name,
                    description=request.description,
                    is_active=request.is_active,
                )
            except IntegrityError as e:
                raise PermissionAlreadyExistsError(name) from e

            super_admin = await self.role_repo.get_by_name(self.settings.super_admin_role)
            if super_admin is not None:
                await self.role_repo.add_permissions(
                    super_admin.id, [permission.id], granted_by=created_by, granted_at=utcnow()
                )
            return permission

        permission = await self._transaction(_create)

        log_security_event(
            SecurityEventType.PERMISSION_CREATED,
            actor_id=created_by,
            details={"permission": name},
        )
        return Permission.model_validate(permission)

    async def update_permission(
        self,
        permission_id: int,
        request: PermissionUpdateRequest,
        updated_by: int | None = None,
    ) -> Permission:
        """Update a permission's display fields or active flag.

        Deactivating a permission stops it from granting anything while its
        grants stay in place.

        Raises:
            PermissionNotFoundError: If the permission does not exist
        """

        async def _update() -> PermissionORM:
            permission = await self.permission_repo.get_by_id(permission_id)
            if permission is None:
                raise PermissionNotFoundError([permission_id])

            if request.display_name is not None:
                permission.display_name = request.display_name
            if request.description is not None:
                permission.description = request.description
            if request.is_active is not None:
                permission.is_active = request.is_active

            await self.session.flush()
            return permission

        permission = await self._transaction(_update)

        log_security_event(
            SecurityEventType.PERMISSION_CHANGED,
            actor_id=updated_by,
            details={
                "permission": permission.name,
                "fields": sorted(request.model_dump(exclude_none=True).keys()),
            },
        )
        return Permission.model_validate(permission)
