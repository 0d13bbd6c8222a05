"""
Pydantic schemas for user-related requests and responses.
"""
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from accessgraph.features.users.models import User


class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)


class UserCreate(UserBase):
    """Schema for creating a new user."""


class UserResponse(UserBase):
    """Schema for user responses."""
    id: str
    created_at: datetime
    assigned_roles: List[str] = []
    direct_permission_grants: List[str] = []
    direct_permission_denials: List[str] = []

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(
            id=str(user.id),
            email=user.email,
            name=user.name,
            created_at=user.created_at,
            assigned_roles=sorted(str(rid) for rid in user.assigned_roles),
            direct_permission_grants=sorted(str(pid) for pid in user.direct_permission_grants),
            direct_permission_denials=sorted(str(pid) for pid in user.direct_permission_denials),
        )
