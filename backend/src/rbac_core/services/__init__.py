"""Services package."""

from rbac_core.services.authorization_service import AuthorizationService
from rbac_core.services.legacy_role_service import LegacyRoleMigrationService
from rbac_core.services.permission_sync_service import PermissionSyncService
from rbac_core.services.rbac_service import RbacService

__all__ = [
    "AuthorizationService",
    "LegacyRoleMigrationService",
    "PermissionSyncService",
    "RbacService",
]
