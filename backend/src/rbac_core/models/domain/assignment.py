"""Actor-role assignment domain model and lifecycle."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel

from rbac_core.exceptions import AlreadyAssignedError
from rbac_core.models.domain.role import Role


class AssignmentState(StrEnum):
    """Lifecycle state of an (actor, role) assignment row."""

    ACTIVE = "active"
    REVOKED = "revoked"

    @classmethod
    def of(cls, is_active: bool | None) -> "AssignmentState | None":
        """State for a stored ``is_active`` flag, ``None`` when no row exists."""
        if is_active is None:
            return None
        return cls.ACTIVE if is_active else cls.REVOKED


def next_state_on_assign(
    current: AssignmentState | None, actor_id: int, role_id: int
) -> AssignmentState:
    """Apply the ``assign`` transition.

    Absent and revoked rows become active; an active row is a conflict.

    Raises:
        AlreadyAssignedError: If the assignment is already active
    """
    if current is AssignmentState.ACTIVE:
        raise AlreadyAssignedError(actor_id, role_id)
    return AssignmentState.ACTIVE


def next_state_on_revoke(current: AssignmentState | None) -> AssignmentState | None:
    """Apply the ``revoke`` transition. Revoking an absent row leaves it absent."""
    if current is None:
        return None
    return AssignmentState.REVOKED


class ActorRoleAssignment(BaseModel):
    """Assignment of a role to an actor, enriched with the role definition."""

    id: int
    actor_id: int
    role_id: int
    assigned_at: datetime
    assigned_by: int | None = None
    expires_at: datetime | None = None
    is_active: bool
    role: Role

    class Config:
        """Pydantic config."""

        from_attributes = True

    @property
    def state(self) -> AssignmentState:
        """Lifecycle state of this assignment."""
        return AssignmentState.ACTIVE if self.is_active else AssignmentState.REVOKED
