"""Security package."""

from rbac_core.security.guards import (
    permission_required,
    require_permission,
    require_super_admin,
    super_admin_required,
)
from rbac_core.security.identity import get_current_actor_id

__all__ = [
    "get_current_actor_id",
    "permission_required",
    "require_permission",
    "require_super_admin",
    "super_admin_required",
]
