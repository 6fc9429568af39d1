"""Guard functions for protected operations.

The guards turn an authorization decision into a pass/fail outcome. Both
resolve through the same ``AuthorizationService`` active-chain lookup, so a
route protected by a permission and a route protected by the super admin
role can never disagree about an actor.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends

from rbac_core.dependencies import get_authorization_service
from rbac_core.exceptions import AuthenticationRequiredError, AuthorizationDeniedError
from rbac_core.security.identity import get_current_actor_id
from rbac_core.services.authorization_service import AuthorizationService
from rbac_core.utils.security_events import SecurityEventType, log_security_event


async def require_permission(
    authz: AuthorizationService,
    actor_id: int | None,
    permission: str,
) -> int:
    """Require an actor to hold a permission.

    Args:
        authz: Authorization engine
        actor_id: Authenticated actor ID, None if unauthenticated
        permission: Required permission name

    Returns:
        The actor ID when access is granted

    Raises:
        AuthenticationRequiredError: If there is no authenticated actor
        AuthorizationDeniedError: If the actor lacks the permission
    """
    if actor_id is None:
        raise AuthenticationRequiredError()

    if not await authz.has_permission(actor_id, permission):
        log_security_event(
            SecurityEventType.ACCESS_DENIED,
            actor_id=actor_id,
            details={"permission": str(permission)},
            success=False,
        )
        raise AuthorizationDeniedError(f"permission '{permission}' required", actor_id=actor_id)

    return actor_id


async def require_super_admin(authz: AuthorizationService, actor_id: int | None) -> int:
    """Require an actor to hold the super administrator role.

    Args:
        authz: Authorization engine
        actor_id: Authenticated actor ID, None if unauthenticated

    Returns:
        The actor ID when access is granted

    Raises:
        AuthenticationRequiredError: If there is no authenticated actor
        AuthorizationDeniedError: If the actor is not a super administrator
    """
    if actor_id is None:
        raise AuthenticationRequiredError()

    if not await authz.is_super_admin(actor_id):
        log_security_event(
            SecurityEventType.ACCESS_DENIED,
            actor_id=actor_id,
            details={"role": authz.settings.super_admin_role},
            success=False,
        )
        raise AuthorizationDeniedError("Super admin access required", actor_id=actor_id)

    return actor_id


def permission_required(permission: str) -> Callable[..., Awaitable[int]]:
    """Create a dependency that requires a permission.

    Usage:
        @router.get("/users", dependencies=[Depends(permission_required(PermissionName.USERS_VIEW))])

    Args:
        permission: Required permission name

    Returns:
        Dependency resolving to the authorized actor ID
    """

    async def dependency(
        actor_id: Annotated[int | None, Depends(get_current_actor_id)],
        authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> int:
        return await require_permission(authz, actor_id, permission)

    return dependency


def super_admin_required() -> Callable[..., Awaitable[int]]:
    """Create a dependency that requires the super administrator role.

    Returns:
        Dependency resolving to the authorized actor ID
    """

    async def dependency(
        actor_id: Annotated[int | None, Depends(get_current_actor_id)],
        authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> int:
        return await require_super_admin(authz, actor_id)

    return dependency
