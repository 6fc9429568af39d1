"""SQLAlchemy ORM models package."""

from rbac_core.models.orm.base import Base
from rbac_core.models.orm.actor import ActorORM
from rbac_core.models.orm.permission import PermissionORM
from rbac_core.models.orm.role import RoleORM
from rbac_core.models.orm.role_permission import RolePermissionORM
from rbac_core.models.orm.actor_role import ActorRoleORM

__all__ = [
    "Base",
    "ActorORM",
    "PermissionORM",
    "RoleORM",
    "RolePermissionORM",
    "ActorRoleORM",
]
