"""RBAC request DTOs."""

from pydantic import BaseModel, Field, model_validator

from rbac_core.constants.permissions import build_permission_name

# Lowercase identifiers for role names and permission segments
NAME_SEGMENT_PATTERN = r"^[a-z][a-z0-9_]*$"


class RoleCreateRequest(BaseModel):
    """Role creation request."""

    name: str = Field(min_length=2, max_length=50, pattern=NAME_SEGMENT_PATTERN)
    display_name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool = True
    permission_ids: list[int] = Field(default=[], max_length=200)  # Max 200 permissions per role


class RoleUpdateRequest(BaseModel):
    """Role update request.

    ``permission_ids`` replaces the full grant set when provided.
    """

    name: str | None = Field(default=None, min_length=2, max_length=50, pattern=NAME_SEGMENT_PATTERN)
    display_name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None
    permission_ids: list[int] | None = Field(default=None, max_length=200)


class PermissionCreateRequest(BaseModel):
    """Permission creation request.

    ``name`` defaults to ``resource:action`` and must equal it when given.
    """

    resource: str = Field(min_length=2, max_length=50, pattern=NAME_SEGMENT_PATTERN)
    action: str = Field(min_length=2, max_length=50, pattern=NAME_SEGMENT_PATTERN)
    name: str | None = Field(default=None, max_length=100)
    display_name: str = Field(min_length=2, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool = True

    @model_validator(mode="after")
    def fill_name(self) -> "PermissionCreateRequest":
        """Derive the name from resource and action."""
        expected = build_permission_name(self.resource, self.action)
        if self.name is None:
            self.name = expected
        elif self.name != expected:
            raise ValueError(f"Permission name must be '{expected}'")
        return self


class PermissionUpdateRequest(BaseModel):
    """Permission update request."""

    display_name: str | None = Field(default=None, min_length=2, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None
