"""Permission domain model."""

from datetime import datetime

from pydantic import BaseModel


class Permission(BaseModel):
    """Permission domain model."""

    id: int
    name: str
    resource: str
    action: str
    display_name: str
    description: str | None = None
    is_active: bool = True
    created_at: datetime

    class Config:
        """Pydantic config."""

        from_attributes = True
