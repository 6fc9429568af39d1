"""Domain models package."""

from rbac_core.models.domain.assignment import ActorRoleAssignment, AssignmentState
from rbac_core.models.domain.permission import Permission
from rbac_core.models.domain.role import Role, RoleWithPermissions

__all__ = [
    "ActorRoleAssignment",
    "AssignmentState",
    "Permission",
    "Role",
    "RoleWithPermissions",
]
