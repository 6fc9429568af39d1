"""Central permission and role catalog.

Permission names always use ``resource:action``. Call sites reference the
``PermissionName`` members instead of free-text strings.
"""

import re
from dataclasses import dataclass, field
from enum import StrEnum

# resource and action segments: lowercase, digits, underscores
PERMISSION_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*:[a-z][a-z0-9_]*$")
PERMISSION_SEPARATOR = ":"


class PermissionName(StrEnum):
    """Permission names known to the application."""

    # Users
    USERS_VIEW = "users:view"
    USERS_CREATE = "users:create"
    USERS_UPDATE = "users:update"
    USERS_DELETE = "users:delete"
    USERS_APPROVE = "users:approve"

    # Pricing
    PRICING_VIEW = "pricing:view"
    PRICING_CREATE = "pricing:create"
    PRICING_UPDATE = "pricing:update"
    PRICING_DELETE = "pricing:delete"

    # Billing
    BILLING_READ = "billing:read"
    BILLING_MANAGE = "billing:manage"

    # Orders
    ORDERS_READ = "orders:read"
    ORDERS_CREATE = "orders:create"

    # Admin areas
    ADMIN_ANNOUNCEMENTS = "admin:announcements"
    ADMIN_CHAT = "admin:chat"
    ADMIN_MINIMUM_ENTRIES = "admin:minimum_entries"
    ADMIN_ORDERS = "admin:orders"
    ADMIN_REPORTS = "admin:reports"
    ADMIN_SETTINGS = "admin:settings"
    ADMIN_STATS = "admin:stats"

    # RBAC management
    RBAC_VIEW = "rbac:view"
    RBAC_CREATE = "rbac:create"
    RBAC_UPDATE = "rbac:update"
    RBAC_DELETE = "rbac:delete"

    # System
    SYSTEM_NOTIFICATIONS = "system:notifications"
    SYSTEM_HISTORY = "system:history"

    @property
    def resource(self) -> str:
        """Resource segment of the name."""
        return self.value.split(PERMISSION_SEPARATOR, 1)[0]

    @property
    def action(self) -> str:
        """Action segment of the name."""
        return self.value.split(PERMISSION_SEPARATOR, 1)[1]


class RoleName(StrEnum):
    """System role names."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    STANDARD_ADMIN = "standard_admin"
    USER = "user"
    VIEWER = "viewer"


def is_valid_permission_name(name: str) -> bool:
    """Check that a permission name follows ``resource:action``."""
    return bool(PERMISSION_NAME_PATTERN.match(name))


def build_permission_name(resource: str, action: str) -> str:
    """Join a resource and action into a permission name."""
    return f"{resource}{PERMISSION_SEPARATOR}{action}"


@dataclass(frozen=True)
class PermissionDefinition:
    """Seed definition for a catalog permission."""

    name: PermissionName
    display_name: str
    description: str

    @property
    def resource(self) -> str:
        return self.name.resource

    @property
    def action(self) -> str:
        return self.name.action


@dataclass(frozen=True)
class RoleDefinition:
    """Seed definition for a system role.

    ``permissions`` is ignored for roles whose grants are computed
    (``super_admin`` and ``admin``).
    """

    name: RoleName
    display_name: str
    description: str
    permissions: frozenset[PermissionName] = field(default_factory=frozenset)


PERMISSIONS: tuple[PermissionDefinition, ...] = (
    PermissionDefinition(PermissionName.USERS_VIEW, "View Users", "View user accounts and profiles"),
    PermissionDefinition(PermissionName.USERS_CREATE, "Create Users", "Create new user accounts"),
    PermissionDefinition(PermissionName.USERS_UPDATE, "Update Users", "Update user accounts and profiles"),
    PermissionDefinition(PermissionName.USERS_DELETE, "Delete Users", "Delete user accounts"),
    PermissionDefinition(PermissionName.USERS_APPROVE, "Approve Users", "Approve pending user registrations"),
    PermissionDefinition(PermissionName.PRICING_VIEW, "View Pricing", "View pricing profiles and configurations"),
    PermissionDefinition(PermissionName.PRICING_CREATE, "Create Pricing", "Create new pricing profiles"),
    PermissionDefinition(PermissionName.PRICING_UPDATE, "Update Pricing", "Update pricing profiles and configurations"),
    PermissionDefinition(PermissionName.PRICING_DELETE, "Delete Pricing", "Delete pricing profiles"),
    PermissionDefinition(PermissionName.BILLING_READ, "View Billing", "View billing information and invoices"),
    PermissionDefinition(PermissionName.BILLING_MANAGE, "Manage Billing", "Full billing and payment management"),
    PermissionDefinition(PermissionName.ORDERS_READ, "View Orders", "View orders"),
    PermissionDefinition(PermissionName.ORDERS_CREATE, "Create Orders", "Submit new orders"),
    PermissionDefinition(PermissionName.ADMIN_ANNOUNCEMENTS, "Manage Announcements", "Create and manage system announcements"),
    PermissionDefinition(PermissionName.ADMIN_CHAT, "Manage Chat Support", "Handle user chat support requests"),
    PermissionDefinition(PermissionName.ADMIN_MINIMUM_ENTRIES, "Manage Minimum Entries", "Set minimum order entry requirements for users"),
    PermissionDefinition(PermissionName.ADMIN_ORDERS, "View Order Reports", "Access order reports and analytics"),
    PermissionDefinition(PermissionName.ADMIN_REPORTS, "Admin Reports", "Access to system reports and analytics"),
    PermissionDefinition(PermissionName.ADMIN_SETTINGS, "Admin Settings", "Modify system settings and configuration"),
    PermissionDefinition(PermissionName.ADMIN_STATS, "Admin Statistics", "View dashboard statistics"),
    PermissionDefinition(PermissionName.RBAC_VIEW, "View RBAC", "View roles and permissions configuration"),
    PermissionDefinition(PermissionName.RBAC_CREATE, "Create RBAC", "Create new roles and permissions"),
    PermissionDefinition(PermissionName.RBAC_UPDATE, "Update RBAC", "Update roles, permissions and assignments"),
    PermissionDefinition(PermissionName.RBAC_DELETE, "Delete RBAC", "Delete roles and revoke assignments"),
    PermissionDefinition(PermissionName.SYSTEM_NOTIFICATIONS, "System Notifications", "Access to system notifications"),
    PermissionDefinition(PermissionName.SYSTEM_HISTORY, "System History", "Access to system audit logs and history"),
)

SYSTEM_ROLES: tuple[RoleDefinition, ...] = (
    RoleDefinition(
        RoleName.SUPER_ADMIN,
        "Super Administrator",
        "Full system access with all permissions",
    ),
    RoleDefinition(
        RoleName.ADMIN,
        "Administrator",
        "Administrative access with most permissions",
    ),
    RoleDefinition(
        RoleName.STANDARD_ADMIN,
        "Standard Administrator",
        "Standard administrative access with selected permissions",
        frozenset(
            {
                PermissionName.USERS_VIEW,
                PermissionName.USERS_CREATE,
                PermissionName.USERS_UPDATE,
                PermissionName.PRICING_VIEW,
                PermissionName.PRICING_CREATE,
                PermissionName.PRICING_UPDATE,
                PermissionName.ADMIN_MINIMUM_ENTRIES,
                PermissionName.ADMIN_ORDERS,
            }
        ),
    ),
    RoleDefinition(
        RoleName.USER,
        "User",
        "Standard user access",
        frozenset(
            {
                PermissionName.ORDERS_READ,
                PermissionName.ORDERS_CREATE,
                PermissionName.BILLING_READ,
                PermissionName.PRICING_VIEW,
                PermissionName.SYSTEM_NOTIFICATIONS,
            }
        ),
    ),
    RoleDefinition(
        RoleName.VIEWER,
        "Viewer",
        "Read-only access",
        frozenset(
            {
                PermissionName.ORDERS_READ,
                PermissionName.BILLING_READ,
                PermissionName.PRICING_VIEW,
            }
        ),
    ),
)

# Resources withheld from the admin role
ADMIN_EXCLUDED_RESOURCES = frozenset({"rbac"})

# Legacy free-text role strings and the RBAC role each maps to
LEGACY_ROLE_MAPPING: dict[str, RoleName] = {
    "superadmin": RoleName.SUPER_ADMIN,
    "super_admin": RoleName.SUPER_ADMIN,
    "admin": RoleName.ADMIN,
    "standard_admin": RoleName.STANDARD_ADMIN,
    "user": RoleName.USER,
    "viewer": RoleName.VIEWER,
}
