"""
In-memory snapshot of roles, permissions and users.

The core never talks to storage. Callers load the entities they need into an
AccessSnapshot, run graph queries, use cases and decisions against it, and
persist whatever the use cases changed. A snapshot must stay stable for the
duration of one decision or one check-then-commit mutation.
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional, Union

from accessgraph.core.exceptions import EntityNotFoundError
from accessgraph.core.identifiers import PermissionId, RoleId, UserId

if TYPE_CHECKING:
    from accessgraph.features.permissions.models import Permission, TargetSpec
    from accessgraph.features.roles.models import Role
    from accessgraph.features.users.models import User


@dataclass
class AccessSnapshot:
    """Identifier-keyed maps of every entity a decision may touch."""

    roles: dict[RoleId, "Role"] = field(default_factory=dict)
    permissions: dict[PermissionId, "Permission"] = field(default_factory=dict)
    users: dict[UserId, "User"] = field(default_factory=dict)

    @classmethod
    def from_entities(
        cls,
        roles: Iterable["Role"] = (),
        permissions: Iterable["Permission"] = (),
        users: Iterable["User"] = (),
    ) -> "AccessSnapshot":
        """Build a snapshot from entity lists loaded by the caller."""
        return cls(
            roles={role.id: role for role in roles},
            permissions={permission.id: permission for permission in permissions},
            users={user.id: user for user in users},
        )

    # --- Storage ---

    def add_role(self, role: "Role") -> "Role":
        self.roles[role.id] = role
        return role

    def add_permission(self, permission: "Permission") -> "Permission":
        self.permissions[permission.id] = permission
        return permission

    def add_user(self, user: "User") -> "User":
        self.users[user.id] = user
        return user

    # --- Required lookups ---

    def get_role(self, role_id: Union[RoleId, str]) -> "Role":
        role_id = RoleId.coerce(role_id)
        role = self.roles.get(role_id)
        if role is None:
            raise EntityNotFoundError("Role", role_id)
        return role

    def get_permission(self, permission_id: Union[PermissionId, str]) -> "Permission":
        permission_id = PermissionId.coerce(permission_id)
        permission = self.permissions.get(permission_id)
        if permission is None:
            raise EntityNotFoundError("Permission", permission_id)
        return permission

    def get_user(self, user_id: Union[UserId, str]) -> "User":
        user_id = UserId.coerce(user_id)
        user = self.users.get(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        return user

    # --- Optional lookups ---

    def find_role_by_name(self, name: str) -> Optional["Role"]:
        wanted = name.strip().lower()
        for role in self.roles.values():
            if role.name.lower() == wanted:
                return role
        return None

    def find_permission_by_key(
        self, action: str, resource_type: str, target: "TargetSpec"
    ) -> Optional["Permission"]:
        key = (action.strip().lower(), resource_type.strip().lower(), target)
        for permission in self.permissions.values():
            if permission.key == key:
                return permission
        return None

    def find_user_by_email(self, email: str) -> Optional["User"]:
        wanted = email.strip().lower()
        for user in self.users.values():
            if user.email == wanted:
                return user
        return None
