"""
Pydantic schemas for role management.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from accessgraph.features.roles.models import Role


class RoleBase(BaseModel):
    """Base role schema."""
    name: str = Field(..., min_length=1, max_length=50, description="Unique role name")
    description: str = Field("", max_length=1000, description="Role description")


class RoleCreate(RoleBase):
    """Schema for creating a new role."""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        """Reject whitespace-only names."""
        if not v.strip():
            raise ValueError("Role name cannot be empty")
        return v.strip()


class RoleUpdate(BaseModel):
    """Schema for updating a role."""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=1000)


class RoleResponse(RoleBase):
    """Schema for role response."""
    id: str
    created_at: datetime
    parent_roles: List[str] = []
    permissions: List[str] = []

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_entity(cls, role: Role) -> "RoleResponse":
        return cls(
            id=str(role.id),
            name=role.name,
            description=role.description,
            created_at=role.created_at,
            parent_roles=sorted(str(rid) for rid in role.parent_roles),
            permissions=sorted(str(pid) for pid in role.permissions),
        )


class RoleHierarchyResponse(BaseModel):
    """A role with every ancestor and every descendant role."""
    role: RoleResponse
    ancestors: List[RoleResponse] = []
    descendants: List[RoleResponse] = []
