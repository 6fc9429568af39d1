"""Assignment lifecycle transition tests."""

import pytest

from rbac_core.exceptions import AlreadyAssignedError
from rbac_core.models.domain.assignment import (
    AssignmentState,
    next_state_on_assign,
    next_state_on_revoke,
)


class TestAssignmentState:
    """Two-state lifecycle of an (actor, role) row."""

    def test_of(self) -> None:
        assert AssignmentState.of(None) is None
        assert AssignmentState.of(True) is AssignmentState.ACTIVE
        assert AssignmentState.of(False) is AssignmentState.REVOKED

    @pytest.mark.parametrize("current", [None, AssignmentState.REVOKED])
    def test_assign_activates(self, current) -> None:
        assert next_state_on_assign(current, 1, 2) is AssignmentState.ACTIVE

    def test_assign_active_conflicts(self) -> None:
        with pytest.raises(AlreadyAssignedError) as exc_info:
            next_state_on_assign(AssignmentState.ACTIVE, 1, 2)

        assert exc_info.value.details == {"actor_id": 1, "role_id": 2}

    def test_revoke(self) -> None:
        assert next_state_on_revoke(AssignmentState.ACTIVE) is AssignmentState.REVOKED
        assert next_state_on_revoke(AssignmentState.REVOKED) is AssignmentState.REVOKED
        assert next_state_on_revoke(None) is None
