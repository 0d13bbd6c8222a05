"""
Pydantic schemas for authorization decisions.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from accessgraph.features.permissions.schemas import PermissionResponse


class DecisionReason(str, Enum):
    """Why a decision came out the way it did."""

    DIRECT_DENIAL = "direct_denial"
    DIRECT_GRANT = "direct_grant"
    ROLE_GRANT = "role_grant"
    NO_ROLES_ASSIGNED = "no_roles_assigned"
    NO_MATCHING_PERMISSION = "no_matching_permission"


REASON_MESSAGES = {
    DecisionReason.DIRECT_DENIAL: "Direct permission denial",
    DecisionReason.DIRECT_GRANT: "Direct permission grant",
    DecisionReason.ROLE_GRANT: "Permission granted through role assignment",
    DecisionReason.NO_ROLES_ASSIGNED: "User has no roles assigned",
    DecisionReason.NO_MATCHING_PERMISSION: "No matching permission found",
}


class AuthorizationDecision(BaseModel):
    """
    Outcome of one authorization check.

    ``granted_by`` names the permission that allowed the request;
    ``denied_by`` names the direct denial that blocked it.
    """
    allowed: bool
    reason: DecisionReason
    granted_by: Optional[str] = None
    denied_by: Optional[str] = None

    @property
    def message(self) -> str:
        return REASON_MESSAGES[self.reason]


class PermissionCheckRequest(BaseModel):
    """Schema for checking if a user may perform an action."""
    user_id: str = Field(..., description="User ID")
    action: str = Field(..., min_length=1, description="Action")
    resource_type: str = Field(..., min_length=1, description="Resource type")
    resource_owner_id: Optional[str] = Field(None, description="Owner of the resource (own scope)")
    team_id: Optional[str] = Field(None, description="Team of the resource (team scope)")
    organization_id: Optional[str] = Field(None, description="Organization of the resource (org scope)")
    specific_resource_id: Optional[str] = Field(None, description="Resource instance id (specific target)")


class PermissionCheckResponse(BaseModel):
    """Schema for permission check response."""
    has_permission: bool
    reason: DecisionReason
    message: str
    granted_by: Optional[PermissionResponse] = None
