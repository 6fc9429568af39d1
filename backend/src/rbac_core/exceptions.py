"""Domain-specific exceptions for the RBAC core.

These exceptions keep service-layer failures separate from HTTP responses;
the error handler maps each family to a status code.
"""

from typing import Any


class RbacError(Exception):
    """Base exception for all RBAC errors."""

    def __init__(self, message: str = "An error occurred", details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# =============================================================================
# Authentication / Authorization Errors (401 / 403)
# =============================================================================


class AuthenticationRequiredError(RbacError):
    """Raised when no authenticated actor is present."""

    def __init__(self) -> None:
        super().__init__("Authentication required")


class AuthorizationDeniedError(RbacError):
    """Raised when an authenticated actor lacks a permission or role."""

    def __init__(self, message: str = "Access denied", actor_id: int | None = None) -> None:
        details = {"actor_id": actor_id} if actor_id is not None else {}
        super().__init__(message, details)


# =============================================================================
# Resource Not Found Errors (404)
# =============================================================================


class NotFoundError(RbacError):
    """Base class for resource not found errors."""

    pass


class ActorNotFoundError(NotFoundError):
    """Raised when an actor cannot be found."""

    def __init__(self, actor_id: int | None = None) -> None:
        details = {"actor_id": actor_id} if actor_id is not None else {}
        super().__init__("Actor not found", details)


class RoleNotFoundError(NotFoundError):
    """Raised when a role cannot be found."""

    def __init__(self, role_id: int | None = None, role_name: str | None = None) -> None:
        details: dict[str, Any] = {}
        if role_id is not None:
            details["role_id"] = role_id
        if role_name:
            details["role_name"] = role_name
        super().__init__("Role not found", details)


class PermissionNotFoundError(NotFoundError):
    """Raised when one or more permissions cannot be found."""

    def __init__(self, permission_ids: list[int] | None = None) -> None:
        details = {"permission_ids": permission_ids} if permission_ids else {}
        super().__init__("Permission not found", details)


# =============================================================================
# Conflict Errors (409)
# =============================================================================


class ConflictError(RbacError):
    """Base class for resource conflict errors."""

    pass


class RoleAlreadyExistsError(ConflictError):
    """Raised when trying to create a role whose name is taken."""

    def __init__(self, name: str | None = None) -> None:
        details = {"name": name} if name else {}
        super().__init__("Role with this name already exists", details)


class PermissionAlreadyExistsError(ConflictError):
    """Raised when a permission name or resource/action pair is taken."""

    def __init__(self, name: str | None = None) -> None:
        details = {"name": name} if name else {}
        super().__init__("Permission with this name already exists", details)


class AlreadyAssignedError(ConflictError):
    """Raised when an actor already holds an active assignment to the role."""

    def __init__(self, actor_id: int, role_id: int) -> None:
        super().__init__(
            "Actor already has this role assigned",
            {"actor_id": actor_id, "role_id": role_id},
        )


class RoleHasActorsError(ConflictError):
    """Raised when deleting a role that still has active assignments."""

    def __init__(self, role_name: str, actor_count: int) -> None:
        super().__init__(
            f"Role is assigned to {actor_count} actor(s)",
            {"role_name": role_name, "actor_count": actor_count},
        )


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(RbacError):
    """Base class for validation errors."""

    pass


# =============================================================================
# Store Errors (503)
# =============================================================================


class StoreUnavailableError(RbacError):
    """Raised when the relational store is unreachable or timed out."""

    def __init__(self, message: str = "Store unavailable") -> None:
        super().__init__(message)
