"""Role domain model."""

from datetime import datetime

from pydantic import BaseModel

from rbac_core.models.domain.permission import Permission


class Role(BaseModel):
    """Role domain model."""

    id: int
    name: str
    display_name: str
    description: str | None = None
    is_active: bool = True
    is_system_role: bool = False
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        """Pydantic config."""

        from_attributes = True


class RoleWithPermissions(Role):
    """Role with its granted permissions."""

    permissions: list[Permission] = []

    @property
    def permission_names(self) -> list[str]:
        """Names of the granted permissions."""
        return [p.name for p in self.permissions]
