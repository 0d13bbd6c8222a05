"""
Pydantic schemas for permission management.

Request and response models for permissions and the permission hierarchy.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from accessgraph.features.permissions.models import (
    Permission,
    ScopeLevel,
    TargetSpec,
    target_from_fields,
)


# ============================================================================
# Permission Schemas
# ============================================================================

class PermissionBase(BaseModel):
    """Base permission schema."""
    action: str = Field(..., min_length=1, max_length=50, description="Action (e.g., 'read', 'update', 'manage')")
    resource_type: str = Field(..., min_length=1, max_length=100, description="Resource type (e.g., 'document') or '*'")
    description: str = Field("", max_length=1000, description="Permission description")

    @field_validator("action", "resource_type")
    @classmethod
    def lowercase_token(cls, v: str) -> str:
        """Ensure action and resource type are stripped and lowercase."""
        v = v.strip().lower()
        if not v:
            raise ValueError("must not be blank")
        return v


class PermissionCreate(PermissionBase):
    """
    Schema for creating a new permission.

    Exactly one of ``target_id`` (a resource id or '*') and ``scope`` must be set.
    """
    target_id: Optional[str] = Field(None, min_length=1, description="Specific resource id or '*' for all")
    scope: Optional[ScopeLevel] = Field(None, description="Dynamic scope: own, team, org or global")

    @model_validator(mode="after")
    def target_xor_scope(self) -> "PermissionCreate":
        if (self.target_id is None) == (self.scope is None):
            raise ValueError("Exactly one of target_id or scope must be provided")
        return self

    def to_target(self) -> TargetSpec:
        return target_from_fields(self.target_id, self.scope)


class PermissionUpdate(BaseModel):
    """
    Schema for updating a permission.

    Setting ``target_id`` replaces any scope and setting ``scope`` replaces any
    target. Both cannot be set in the same update.
    """
    action: Optional[str] = Field(None, min_length=1, max_length=50)
    resource_type: Optional[str] = Field(None, min_length=1, max_length=100)
    target_id: Optional[str] = Field(None, min_length=1)
    scope: Optional[ScopeLevel] = None
    description: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def not_both(self) -> "PermissionUpdate":
        if self.target_id is not None and self.scope is not None:
            raise ValueError("target_id and scope are mutually exclusive")
        return self


class PermissionResponse(BaseModel):
    """Schema for permission response."""
    id: str
    action: str
    resource_type: str
    target_id: Optional[str] = None
    scope: Optional[ScopeLevel] = None
    description: str
    created_at: datetime
    parent_permissions: List[str] = []

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_entity(cls, permission: Permission) -> "PermissionResponse":
        return cls(
            id=str(permission.id),
            action=permission.action,
            resource_type=permission.resource_type,
            target_id=permission.target_id,
            scope=permission.scope,
            description=permission.description,
            created_at=permission.created_at,
            parent_permissions=sorted(str(pid) for pid in permission.parent_permissions),
        )


class PermissionHierarchyResponse(BaseModel):
    """A permission with its full dependency closure and its dependents."""
    permission: PermissionResponse
    ancestors: List[PermissionResponse] = []
    descendants: List[PermissionResponse] = []
