"""Authorization engine: read-only permission and role decisions.

Every decision follows the active chain
assignment (active, not expired) -> role (active) -> grant -> permission (active).
Boolean checks fail closed: if the store is unreachable they answer ``False``.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.config import Settings, get_settings
from rbac_core.constants.permissions import is_valid_permission_name
from rbac_core.exceptions import StoreUnavailableError
from rbac_core.models.domain.assignment import ActorRoleAssignment
from rbac_core.models.domain.permission import Permission
from rbac_core.models.orm.base import utcnow
from rbac_core.repositories.assignment_repository import AssignmentRepository
from rbac_core.utils.secure_logging import log_error, log_warning
from rbac_core.utils.store import run_store_call

logger = logging.getLogger(__name__)


class AuthorizationService:
    """Answers permission and role questions for an explicit actor."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        """Initialize service with database session."""
        self.session = session
        self.settings = settings or get_settings()
        self.assignment_repo = AssignmentRepository(session)

    def _now(self) -> datetime | None:
        """Reference time for expiry filtering, None when expiry is not enforced."""
        return utcnow() if self.settings.enforce_assignment_expiry else None

    def _valid_names(self, permission_names: Iterable[str]) -> list[str]:
        """Drop names that do not follow ``resource:action``."""
        valid = []
        for name in permission_names:
            if is_valid_permission_name(name):
                valid.append(str(name))
            else:
                log_warning(logger, f"Malformed permission name '{name}' can never match")
        return valid

    async def _decide(self, check, description: str) -> bool:
        """Run a boolean store check, denying on any store failure."""
        try:
            return await run_store_call(check, self.settings.store_timeout_seconds)
        except (StoreUnavailableError, SQLAlchemyError) as e:
            log_error(logger, f"Authorization check failed closed ({description})", e)
            return False

    async def has_permission(self, actor_id: int, permission_name: str) -> bool:
        """Check whether an actor holds a permission.

        Args:
            actor_id: Authenticated actor ID
            permission_name: Exact permission name, e.g. ``users:view``

        Returns:
            True if an active chain reaches the permission
        """
        return await self.has_any_permission(actor_id, [permission_name])

    async def has_any_permission(self, actor_id: int, permission_names: Iterable[str]) -> bool:
        """Check whether an actor holds at least one of the permissions.

        An empty list never grants access.

        Args:
            actor_id: Authenticated actor ID
            permission_names: Exact permission names

        Returns:
            True if an active chain reaches any of the permissions
        """
        names = self._valid_names(permission_names)
        if not names:
            return False
        return await self._decide(
            self.assignment_repo.actor_has_any_permission(actor_id, names, self._now()),
            "permission",
        )

    async def has_role(self, actor_id: int, role_name: str) -> bool:
        """Check whether an actor actively holds a role. Permissions are not consulted."""
        return await self._decide(
            self.assignment_repo.actor_has_role(actor_id, role_name, self._now()),
            "role",
        )

    async def is_super_admin(self, actor_id: int) -> bool:
        """Check whether an actor holds the super administrator role.

        This is a role check only; the role's authority comes from its
        explicit grants.
        """
        return await self.has_role(actor_id, self.settings.super_admin_role)

    async def get_user_permissions(self, actor_id: int) -> list[Permission]:
        """Get the effective permission set of an actor.

        Args:
            actor_id: Authenticated actor ID

        Returns:
            Permissions reachable through active chains, each listed once

        Raises:
            StoreUnavailableError: If the store is unreachable or timed out
        """
        permissions = await run_store_call(
            self.assignment_repo.get_actor_permissions(actor_id, self._now()),
            self.settings.store_timeout_seconds,
        )
        seen: set[int] = set()
        result = []
        for permission in permissions:
            if permission.id in seen:
                continue
            seen.add(permission.id)
            result.append(Permission.model_validate(permission))
        return result

    async def get_user_roles(self, actor_id: int) -> list[ActorRoleAssignment]:
        """Get an actor's active assignments to active roles.

        Raises:
            StoreUnavailableError: If the store is unreachable or timed out
        """
        assignments = await run_store_call(
            self.assignment_repo.get_active_for_actor(actor_id, self._now()),
            self.settings.store_timeout_seconds,
        )
        return [ActorRoleAssignment.model_validate(a) for a in assignments]
