"""Security event logging for role and permission changes.

Mutations of the RBAC ledgers are logged to a dedicated ``security`` logger
so they can be routed separately from application logs.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class SecurityEventType(str, Enum):
    """Types of security events that are logged."""

    # Assignment ledger
    ROLE_ASSIGNED = "role_assigned"
    ROLE_REMOVED = "role_removed"

    # Role catalog
    ROLE_CREATED = "role_created"
    ROLE_UPDATED = "role_updated"
    ROLE_DELETED = "role_deleted"

    # Permission catalog and grants
    PERMISSION_CREATED = "permission_created"
    PERMISSION_CHANGED = "permission_changed"

    # Decisions
    ACCESS_DENIED = "access_denied"


security_logger = logging.getLogger("security")


def log_security_event(
    event_type: SecurityEventType,
    actor_id: int | None = None,
    target_actor_id: int | None = None,
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Log a security event.

    Args:
        event_type: The type of security event
        actor_id: The actor performing the action
        target_actor_id: The actor being affected, for assignment changes
        details: Additional event-specific details
        success: Whether the operation succeeded
    """
    event_data: dict[str, Any] = {
        "event_type": event_type.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "success": success,
        "actor": {"actor_id": actor_id},
    }

    if target_actor_id is not None:
        event_data["target"] = {"actor_id": target_actor_id}

    if details:
        event_data["details"] = details

    if success:
        security_logger.info(
            f"Security event: {event_type.value}",
            extra={"security_event": event_data},
        )
    else:
        security_logger.warning(
            f"Security event (failed): {event_type.value}",
            extra={"security_event": event_data},
        )
